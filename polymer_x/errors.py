"""Error taxonomy for the committee decision engine.

Only ``ValidationError`` is raised past the engine boundary. The remote
errors are recovered by falling back to the deterministic pipeline, and a
``PipelineFault`` is reported inside a failure envelope.
"""


class CommitteeError(Exception):
    """Base class for all engine errors."""


class ValidationError(CommitteeError, ValueError):
    """Raw sample reading is malformed or out of range."""

    def __init__(self, message: str, errors: list[str] | None = None):
        super().__init__(message)
        self.errors = errors or []


class RemoteTransportError(CommitteeError):
    """The remote inference call failed or timed out."""


class RemoteParseError(CommitteeError):
    """The remote response did not contain a well-formed design payload."""


class PipelineFault(CommitteeError):
    """Unexpected fault while running a committee phase."""

    def __init__(self, phase: str, cause: BaseException):
        super().__init__(f"{phase} phase failed: {cause}")
        self.phase = phase
        self.cause = cause

"""Committee Orchestrator - runs the three-agent design debate.

Implements the committee state sequence:
- PROPOSE -> REVIEW -> (REVIEW_RETRY ->)? SIMULATE -> ASSEMBLE -> DONE
- Remote delegation with fallback to the deterministic pipeline
- Failure envelopes that keep whatever monologue was produced
"""

import asyncio
import inspect
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from polymer_x.committee.remote import (
    RemoteBackend,
    RemoteInferenceAdapter,
    delegation_entry,
    to_proposal,
    validation_entry,
)
from polymer_x.contracts.schemas import (
    AgentRole,
    CommitteeConfig,
    CommitteePhase,
    CommitteeResponse,
    EnzymeDesign,
    ExecutionMode,
    FailureResponse,
    MonologueEntry,
    SuccessResponse,
    WaterAnalysis,
    utc_now,
)
from polymer_x.contracts.validators import normalize_sample
from polymer_x.errors import PipelineFault, RemoteParseError, RemoteTransportError
from polymer_x.kb.catalog import REFERENCES
from polymer_x.log import get_logger
from polymer_x.soul.architect import propose
from polymer_x.soul.llm_client import GeminiClient
from polymer_x.soul.simulator import simulate
from polymer_x.verify.safety import retry_acknowledgement, review_proposal
from polymer_x.verify.scoring import SCORE_CEILING

logger = get_logger(__name__)


@dataclass
class CommitteeRun:
    """State owned by a single invocation."""
    sample: WaterAnalysis
    mode: ExecutionMode
    monologue: list[MonologueEntry] = field(default_factory=list)
    phase: CommitteePhase = CommitteePhase.PROPOSE

    def record(self, entry: MonologueEntry) -> None:
        self.monologue.append(entry)


def build_backend(config: CommitteeConfig) -> RemoteBackend | None:
    """Gemini backend when remote use is enabled and a key is configured."""
    if not config.enable_remote:
        return None
    client = GeminiClient(model=config.remote_model, timeout=config.remote_timeout)
    return client if client.has_keys else None


class CommitteeOrchestrator:
    """Runs one committee decision per call to :meth:`run_decision`.

    The orchestrator holds configuration only; every invocation builds its
    own :class:`CommitteeRun`, so concurrent calls do not interfere.
    """

    def __init__(
        self,
        config: CommitteeConfig | None = None,
        backend: RemoteBackend | None = None,
        callbacks: dict[str, Any] | None = None,
    ):
        self.config = config or CommitteeConfig()
        self.backend = backend
        self.callbacks = callbacks or {}
        self.adapter = (
            RemoteInferenceAdapter(backend, timeout=self.config.remote_timeout)
            if backend is not None
            else None
        )

    @classmethod
    def from_config(
        cls,
        config: CommitteeConfig | None = None,
        callbacks: dict[str, Any] | None = None,
    ) -> "CommitteeOrchestrator":
        config = config or CommitteeConfig.from_env()
        return cls(config=config, backend=build_backend(config), callbacks=callbacks)

    @property
    def mode(self) -> ExecutionMode:
        return ExecutionMode.REMOTE if self.backend is not None else ExecutionMode.LOCAL

    async def run_decision(self, sample: WaterAnalysis | Mapping[str, Any]) -> CommitteeResponse:
        """Run the committee for one water sample.

        Raises:
            ValidationError: the sample is malformed. Every other problem is
                reported through a failure envelope.
        """
        sample = normalize_sample(sample)
        logger.info(
            "committee.start",
            mode=self.mode.value,
            plastic=sample.plastic_type.value,
            salinity=sample.salinity,
            stress=sample.stress_signal_bool,
        )

        if self.adapter is not None:
            response = await self._run_remote(sample)
        else:
            response = await self._run_local(sample)

        logger.info(
            "committee.complete",
            success=response.success,
            mode=response.mode.value,
            entries=len(response.internal_monologue),
        )
        return response

    # ------------------------------------------------------------------
    # Local pipeline
    # ------------------------------------------------------------------

    async def _run_local(
        self,
        sample: WaterAnalysis,
        preamble: Iterable[MonologueEntry] = (),
    ) -> CommitteeResponse:
        run = CommitteeRun(sample=sample, mode=ExecutionMode.LOCAL, monologue=list(preamble))
        try:
            await self._enter_phase(run, CommitteePhase.PROPOSE, "Architect drafting proposal")
            architect = propose(sample)
            run.record(architect.entry)

            await self._enter_phase(run, CommitteePhase.REVIEW, "Safety Officer reviewing proposal")
            review = review_proposal(architect.proposal)
            run.record(review.entry)
            if not review.approved:
                # The corrected proposal is compliant, so one cycle is enough
                await self._emit_status(run, CommitteePhase.REVIEW_RETRY, review.entry.retry_reason)
                run.record(retry_acknowledgement())
            proposal = review.proposal

            await self._enter_phase(run, CommitteePhase.SIMULATE, "Simulator predicting efficiency")
            outcome = simulate(proposal, sample)
            run.record(outcome.entry)

            await self._emit_status(run, CommitteePhase.ASSEMBLE)
            design = EnzymeDesign(
                enzyme_name=proposal.enzyme_name,
                mutation_list=list(proposal.mutation_list),
                predicted_efficiency_score=outcome.efficiency,
                safety_lock_type=proposal.safety_lock_type,
                chassis_type=proposal.chassis_type,
                design_rationale=(
                    f"[COMMITTEE CONSENSUS] Organism: {proposal.organism} "
                    f"({proposal.organism_description}). {proposal.rationale} "
                    f"Safety: {proposal.safety_lock_type.value} verified. "
                    f"Simulation: {outcome.efficiency * 100:.0f}% efficiency."
                ),
                references=list(REFERENCES),
            )
            return await self._succeed(run, design)
        except Exception as e:
            return self._fail(run, e)

    # ------------------------------------------------------------------
    # Remote pipeline
    # ------------------------------------------------------------------

    async def _run_remote(self, sample: WaterAnalysis) -> CommitteeResponse:
        run = CommitteeRun(sample=sample, mode=ExecutionMode.REMOTE)
        try:
            run.record(delegation_entry(sample))
            await self._emit_status(run, CommitteePhase.PROPOSE, "Delegating design to remote model")
            result = await self.adapter.design(sample)

            await self._emit_status(run, CommitteePhase.REVIEW, "Safety Officer reviewing remote design")
            run.record(result.safety_entry)
            # Remote designs get the same correction as local ones
            review = review_proposal(to_proposal(sample, result.payload))
            if not review.approved:
                await self._emit_status(run, CommitteePhase.REVIEW_RETRY, review.entry.retry_reason)
                run.record(review.entry)
                run.record(retry_acknowledgement())
            proposal = review.proposal

            await self._emit_status(run, CommitteePhase.SIMULATE, "Simulator validating remote score")
            score = min(SCORE_CEILING, result.payload.predicted_efficiency_score)
            run.record(validation_entry(score))

            await self._emit_status(run, CommitteePhase.ASSEMBLE)
            design = EnzymeDesign(
                enzyme_name=proposal.enzyme_name,
                mutation_list=list(proposal.mutation_list),
                predicted_efficiency_score=score,
                safety_lock_type=proposal.safety_lock_type,
                chassis_type=proposal.chassis_type,
                design_rationale=proposal.rationale,
                references=list(result.payload.references) or list(REFERENCES),
            )
            return await self._succeed(run, design)
        except (RemoteTransportError, RemoteParseError) as e:
            logger.warning("committee.remote_failed", error=str(e), kind=type(e).__name__)
            return await self._fallback(sample, e)
        except Exception as e:
            return self._fail(run, e)

    async def _fallback(self, sample: WaterAnalysis, error: Exception) -> CommitteeResponse:
        """Rerun deterministically, leading with an entry that explains why."""
        notice = MonologueEntry(
            agent=AgentRole.ARCHITECT,
            thought=f"Gemini API call failed ({error}). Falling back to local simulation.",
            decision="Switching to deterministic mode.",
        )
        return await self._run_local(sample, preamble=[notice])

    # ------------------------------------------------------------------
    # Envelope assembly
    # ------------------------------------------------------------------

    async def _succeed(self, run: CommitteeRun, design: EnzymeDesign) -> SuccessResponse:
        response = SuccessResponse(
            data=design,
            timestamp=utc_now(),
            internal_monologue=list(run.monologue),
            mode=run.mode,
        )
        await self._emit_status(run, CommitteePhase.DONE)
        return response

    def _fail(self, run: CommitteeRun, error: Exception) -> FailureResponse:
        fault = PipelineFault(run.phase.value, error)
        logger.error("committee.fault", phase=run.phase.value, mode=run.mode.value, error=str(error))
        return FailureResponse(
            error=str(fault),
            timestamp=utc_now(),
            internal_monologue=list(run.monologue),
            mode=run.mode,
        )

    # ------------------------------------------------------------------
    # Phase transitions
    # ------------------------------------------------------------------

    async def _enter_phase(self, run: CommitteeRun, phase: CommitteePhase, detail: str) -> None:
        """Pause for the configured phase latency, then announce the phase."""
        await asyncio.sleep(self.config.phase_delay)
        await self._emit_status(run, phase, detail)

    async def _emit_status(
        self,
        run: CommitteeRun,
        phase: CommitteePhase,
        detail: str | None = None,
    ) -> None:
        """Emit a phase update via callback."""
        run.phase = phase
        payload = {
            "phase": phase.value,
            "mode": run.mode.value,
            "detail": detail,
            "timestamp": utc_now().isoformat(),
        }

        callback = self.callbacks.get("on_status_change")
        if callback is None:
            return
        try:
            if inspect.iscoroutinefunction(callback):
                await callback(payload)
            else:
                callback(payload)
        except Exception as e:
            logger.warning("committee.callback_error", error=str(e))


async def run_decision(
    sample: WaterAnalysis | Mapping[str, Any],
    config: CommitteeConfig | None = None,
) -> CommitteeResponse:
    """Run one committee decision with a backend chosen from ``config``."""
    return await CommitteeOrchestrator.from_config(config).run_decision(sample)

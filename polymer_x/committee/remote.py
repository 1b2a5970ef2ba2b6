"""Remote inference adapter: delegates design generation to a hosted model.

The adapter serializes the sample into a prompt, calls the backend with the
fixed rule text as system instruction, and parses the reply strictly. Any
transport problem surfaces as ``RemoteTransportError`` and any malformed
reply as ``RemoteParseError`` so the orchestrator can fall back.
"""

import asyncio
from dataclasses import dataclass
from typing import Optional, Protocol

from polymer_x.contracts.schemas import (
    MANDATORY_SAFETY_LOCK,
    AgentRole,
    ArchitectProposal,
    ChassisType,
    GenerationResponse,
    MonologueEntry,
    RemoteDesignPayload,
    SafetyLockType,
    WaterAnalysis,
)
from polymer_x.contracts.validators import parse_design_payload
from polymer_x.errors import RemoteParseError, RemoteTransportError
from polymer_x.kb.catalog import lookup
from polymer_x.soul.architect import describe_sample
from polymer_x.soul.prompts import SYSTEM_PROMPT, build_design_prompt


class RemoteBackend(Protocol):
    """Anything that can turn a prompt into generated text."""

    async def generate_content(
        self,
        prompt: str,
        system_instruction: Optional[str] = None,
    ) -> GenerationResponse: ...


@dataclass(frozen=True)
class RemoteResult:
    """Parsed remote design plus the Safety Officer's first look at it."""
    payload: RemoteDesignPayload
    safety_entry: MonologueEntry


def delegation_entry(sample: WaterAnalysis) -> MonologueEntry:
    return MonologueEntry(
        agent=AgentRole.ARCHITECT,
        thought=describe_sample(sample),
        decision="Consulting Gemini AI for optimal enzyme design...",
    )


def validation_entry(score: float) -> MonologueEntry:
    return MonologueEntry(
        agent=AgentRole.SIMULATOR,
        thought="Validating efficiency prediction from Gemini...",
        decision=f"Efficiency: {score * 100:.1f}%. Design validated.",
    )


def to_proposal(sample: WaterAnalysis, payload: RemoteDesignPayload) -> ArchitectProposal:
    """Express a remote design as a proposal the Safety Officer can review.

    Lock values outside the known set are treated as missing.
    """
    entry = lookup(sample.plastic_type)
    try:
        lock = SafetyLockType(payload.safety_lock_type) if payload.safety_lock_type else None
    except ValueError:
        lock = None

    return ArchitectProposal(
        organism=entry.organism,
        organism_description=entry.description,
        chassis_type=ChassisType(payload.chassis_type),
        enzyme_name=payload.enzyme_name,
        mutation_list=list(payload.mutation_list),
        rationale=payload.design_rationale,
        safety_lock_type=lock,
    )


class RemoteInferenceAdapter:
    """Calls a remote backend and parses its design."""

    def __init__(self, backend: RemoteBackend, timeout: float = 60.0):
        self.backend = backend
        self.timeout = timeout

    async def design(self, sample: WaterAnalysis) -> RemoteResult:
        """Request a design for ``sample``.

        A missing or wrong containment lock is only flagged here with a
        warning entry; correcting it is left to the orchestrator.

        Raises:
            RemoteTransportError: the call failed or timed out.
            RemoteParseError: the reply held no well-formed design.
        """
        try:
            response = await asyncio.wait_for(
                self.backend.generate_content(
                    build_design_prompt(sample),
                    system_instruction=SYSTEM_PROMPT,
                ),
                timeout=self.timeout,
            )
        except RemoteTransportError:
            raise
        except (asyncio.TimeoutError, TimeoutError) as e:
            raise RemoteTransportError(f"Remote call timed out after {self.timeout}s") from e
        except Exception as e:
            raise RemoteTransportError(f"Remote call failed: {e}") from e

        content = getattr(response, "content", None)
        if not isinstance(content, str):
            raise RemoteParseError("Remote response carried no text content")

        payload = parse_design_payload(content)

        if payload.safety_lock_type == MANDATORY_SAFETY_LOCK.value:
            decision = f"APPROVED - {MANDATORY_SAFETY_LOCK.value} verified."
        else:
            decision = "WARNING - Safety lock may need review."

        return RemoteResult(
            payload=payload,
            safety_entry=MonologueEntry(
                agent=AgentRole.SAFETY_OFFICER,
                thought="Reviewing Gemini-generated design. Verifying Zhang et al. 2025 compliance...",
                decision=decision,
            ),
        )

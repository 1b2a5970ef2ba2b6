"""Safety Officer: containment review for architect proposals.

Every engineered organism must carry the mandatory quorum-sensing kill
switch (Zhang et al. 2025). A proposal without it is not discarded: the
review rejects it and hands back a corrected copy so the committee can
retry exactly once.
"""

from dataclasses import dataclass

from polymer_x.contracts.schemas import (
    MANDATORY_SAFETY_LOCK,
    AgentRole,
    ArchitectProposal,
    MonologueEntry,
)

RETRY_REASON = (
    f"Forcing retry with mandatory safety lock. Zhang et al. 2025 requires "
    f"{MANDATORY_SAFETY_LOCK.value} for all engineered organisms."
)


@dataclass(frozen=True)
class SafetyReview:
    """Verdict of a single safety review."""
    approved: bool
    proposal: ArchitectProposal  # Compliant proposal to carry forward
    entry: MonologueEntry


def review_proposal(proposal: ArchitectProposal) -> SafetyReview:
    """Approve a compliant proposal, or reject it with a corrected copy."""
    if proposal.safety_lock_type == MANDATORY_SAFETY_LOCK:
        return SafetyReview(
            approved=True,
            proposal=proposal,
            entry=MonologueEntry(
                agent=AgentRole.SAFETY_OFFICER,
                thought=(
                    f"Reviewing proposal for {proposal.organism}. "
                    "Verifying Zhang et al. 2025 compliance..."
                ),
                decision=(
                    "APPROVED - All safety constraints satisfied. "
                    f"{MANDATORY_SAFETY_LOCK.value} verified."
                ),
            ),
        )

    found = proposal.safety_lock_type.value if proposal.safety_lock_type else "no"
    return SafetyReview(
        approved=False,
        proposal=proposal.with_safety_lock(MANDATORY_SAFETY_LOCK),
        entry=MonologueEntry(
            agent=AgentRole.SAFETY_OFFICER,
            thought=(
                f"Reviewing proposal for {proposal.organism}. "
                f"Checking safety constraints... found {found} containment lock."
            ),
            decision=f"REJECTED - Architect proposal lacks {MANDATORY_SAFETY_LOCK.value} lock!",
            rejected=True,
            retry_reason=RETRY_REASON,
        ),
    )


def retry_acknowledgement() -> MonologueEntry:
    """Architect's acceptance of a safety correction."""
    return MonologueEntry(
        agent=AgentRole.ARCHITECT,
        thought="Received rejection from Safety Officer. Acknowledging mandatory safety requirement.",
        decision=(
            f"Retry accepted. Adding {MANDATORY_SAFETY_LOCK.value} lock to proposal "
            "as required by Zhang et al. 2025."
        ),
    )

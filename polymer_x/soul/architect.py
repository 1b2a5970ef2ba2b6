"""Architect: proposes a chassis organism and enzyme for a water sample."""

from dataclasses import dataclass

from polymer_x.contracts.schemas import (
    AgentRole,
    ArchitectProposal,
    MonologueEntry,
    WaterAnalysis,
)
from polymer_x.kb.catalog import enzyme_name_for, lookup
from polymer_x.kb.chassis import select_chassis


@dataclass(frozen=True)
class ArchitectResult:
    proposal: ArchitectProposal
    entry: MonologueEntry


def describe_sample(sample: WaterAnalysis) -> str:
    """Architect's opening observation of a sample."""
    return (
        f"Analyzing water sample at ({sample.lat:.2f}, {sample.lng:.2f}). "
        f"Detected {sample.plastic_type.value} contamination. Salinity: {sample.salinity:g}ppt. "
        f"Stress signals: {'PRESENT' if sample.stress_signal_bool else 'absent'}."
    )


def propose(sample: WaterAnalysis) -> ArchitectResult:
    """Build a proposal from the catalog and the chassis rules.

    The proposal is returned without a containment lock; that is the Safety
    Officer's call.
    """
    entry = lookup(sample.plastic_type)
    chassis = select_chassis(sample.salinity, sample.stress_signal_bool)
    mutations = list(entry.mutations)

    proposal = ArchitectProposal(
        organism=entry.organism,
        organism_description=entry.description,
        chassis_type=chassis,
        enzyme_name=enzyme_name_for(entry, chassis),
        mutation_list=mutations,
        rationale=(
            f"Selected {entry.organism} as chassis organism ({entry.description}). "
            f"Environmental analysis: salinity={sample.salinity:g}ppt, "
            f"stress={str(sample.stress_signal_bool).lower()}. "
            f"Applying {chassis.value} expression system."
        ),
    )

    return ArchitectResult(
        proposal=proposal,
        entry=MonologueEntry(
            agent=AgentRole.ARCHITECT,
            thought=describe_sample(sample),
            decision=(
                f"Proposing {entry.organism} chassis with {entry.base_enzyme} enzyme. "
                f"Expression system: {chassis.value}. Mutations: {', '.join(mutations)}."
            ),
        ),
    )

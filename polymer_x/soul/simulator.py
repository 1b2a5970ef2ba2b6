"""
Simulator: in-silico efficiency prediction for a reviewed proposal.

Runs the deterministic scorer against the sampled environment and reports
the result with a qualitative band and a confidence value.
"""

from dataclasses import dataclass

from polymer_x.contracts.schemas import (
    AgentRole,
    ArchitectProposal,
    EfficiencyBand,
    MonologueEntry,
    WaterAnalysis,
)
from polymer_x.verify.scoring import (
    calculate_efficiency_score,
    classify_efficiency,
    simulation_confidence,
)


@dataclass(frozen=True)
class SimulationOutcome:
    efficiency: float
    band: EfficiencyBand
    confidence: float
    entry: MonologueEntry


def simulate(proposal: ArchitectProposal, sample: WaterAnalysis) -> SimulationOutcome:
    efficiency = calculate_efficiency_score(
        sample.salinity,
        sample.stress_signal_bool,
        proposal.chassis_type,
        len(proposal.mutation_list),
    )
    band = classify_efficiency(efficiency)
    confidence = simulation_confidence(sample.salinity, sample.stress_signal_bool)

    return SimulationOutcome(
        efficiency=efficiency,
        band=band,
        confidence=confidence,
        entry=MonologueEntry(
            agent=AgentRole.SIMULATOR,
            thought=(
                f"Running Evo 2 efficiency simulation for {proposal.enzyme_name}. "
                f"Base chassis: {proposal.chassis_type.value}. "
                f"Environmental parameters: salinity={sample.salinity:g}ppt, "
                f"stress={str(sample.stress_signal_bool).lower()}."
            ),
            decision=(
                f"Prediction complete. Efficiency: {efficiency * 100:.1f}% ({band.value}). "
                f"Confidence: {confidence * 100:.0f}%. Model ready for deployment recommendation."
            ),
        ),
    )

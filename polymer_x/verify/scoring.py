"""Deterministic efficiency scoring for committee designs.

Scores a design on how well its chassis fits the sampled environment:
- Chassis consistency with the salinity regime
- Stress handling (penalizes the neutral chassis under stress)
- Beneficial mutations, counted up to a cap
"""

from polymer_x.contracts.schemas import ChassisType, EfficiencyBand
from polymer_x.kb.chassis import HIGH_SALINITY_PPT

BASE_SCORE = 0.60
CHASSIS_MATCH_BONUS = 0.15
NO_STRESS_BONUS = 0.10
UNADAPTED_STRESS_PENALTY = 0.10
MUTATION_BONUS = 0.05
MAX_COUNTED_MUTATIONS = 3
SCORE_CEILING = 0.95

OPTIMAL_THRESHOLD = 0.85
SUBOPTIMAL_THRESHOLD = 0.70

BASE_CONFIDENCE = 0.85
STRESS_CONFIDENCE_PENALTY = 0.15
HYPERSALINE_PPT = 40.0
HYPERSALINE_CONFIDENCE_PENALTY = 0.10
MIN_CONFIDENCE = 0.50


def chassis_matches_salinity(salinity: float, chassis: ChassisType) -> bool:
    """Halophilic exactly when salinity is high; anything else otherwise."""
    if salinity > HIGH_SALINITY_PPT:
        return chassis == ChassisType.HALOPHILIC
    return chassis != ChassisType.HALOPHILIC


def calculate_efficiency_score(
    salinity: float,
    stress: bool,
    chassis: ChassisType,
    mutation_count: int,
) -> float:
    """Predicted degradation efficiency, at most 0.95, rounded to two decimals."""
    score = BASE_SCORE
    if chassis_matches_salinity(salinity, chassis):
        score += CHASSIS_MATCH_BONUS
    if not stress:
        score += NO_STRESS_BONUS
    if stress and chassis == ChassisType.MESOPHILIC:
        score -= UNADAPTED_STRESS_PENALTY
    score += min(max(mutation_count, 0), MAX_COUNTED_MUTATIONS) * MUTATION_BONUS
    return min(SCORE_CEILING, round(score, 2))


def classify_efficiency(score: float) -> EfficiencyBand:
    if score >= OPTIMAL_THRESHOLD:
        return EfficiencyBand.OPTIMAL
    if score >= SUBOPTIMAL_THRESHOLD:
        return EfficiencyBand.SUBOPTIMAL
    return EfficiencyBand.MARGINAL


def simulation_confidence(salinity: float, stress: bool) -> float:
    """Confidence in the prediction; lower under stress and hypersaline water."""
    confidence = BASE_CONFIDENCE
    if stress:
        confidence -= STRESS_CONFIDENCE_PENALTY
    if salinity > HYPERSALINE_PPT:
        confidence -= HYPERSALINE_CONFIDENCE_PENALTY
    return max(MIN_CONFIDENCE, round(confidence, 2))

"""Chassis selection from salinity and stress (Lee et al. 2025)."""

from polymer_x.contracts.schemas import ChassisType

HIGH_SALINITY_PPT = 35.0


def select_chassis(salinity: float, stress: bool) -> ChassisType:
    """Pick the expression chassis for the sampled environment.

    Salinity above 35 ppt always selects a halophilic host; otherwise a
    stress signal selects a thermophilic host and calm water the mesophilic
    default.
    """
    if salinity > HIGH_SALINITY_PPT:
        return ChassisType.HALOPHILIC
    if stress:
        return ChassisType.THERMOPHILIC
    return ChassisType.MESOPHILIC

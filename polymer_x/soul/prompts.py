"""Prompts for the remote enzyme-design model."""

from polymer_x.contracts.schemas import MANDATORY_SAFETY_LOCK, WaterAnalysis
from polymer_x.kb.catalog import DESIGN_CATALOG


def _enzyme_mapping() -> str:
    return "\n".join(
        f"   - {plastic.value} → {entry.base_enzyme} (mutations: {', '.join(entry.mutations)})"
        for plastic, entry in DESIGN_CATALOG.items()
    )


SYSTEM_PROMPT = f"""You are a synthetic biology expert designing enzymes for plastic bioremediation.

RULES:
1. Chassis Selection:
   - Salinity > 35ppt → Halophilic (Lee et al. 2025)
   - Salinity ≤ 35ppt AND no stress → Mesophilic
   - Salinity ≤ 35ppt AND stress = true → Thermophilic

2. Enzyme-Plastic Mapping:
{_enzyme_mapping()}

3. Efficiency Score:
   Base = 0.60
   + 0.15 if chassis matches salinity requirements
   + 0.10 if stress = false
   - 0.10 if stress = true AND chassis = Mesophilic
   + 0.05 per mutation (max 3 counted)
   Final = min(0.95, calculated)

4. MANDATORY SAFETY: All designs MUST include {MANDATORY_SAFETY_LOCK.value} (Zhang et al. 2025)

Respond ONLY with valid JSON matching this schema:
{{
  "enzyme_name": "string",
  "mutation_list": ["string"],
  "predicted_efficiency_score": number,
  "safety_lock_type": "{MANDATORY_SAFETY_LOCK.value}",
  "chassis_type": "Halophilic" | "Mesophilic" | "Thermophilic",
  "design_rationale": "string explaining your decisions",
  "references": ["Lee et al. 2025...", "Zhang et al. 2025..."]
}}"""


DESIGN_PROMPT = """Design an enzyme for these conditions:
- Location: ({lat}, {lng})
- Salinity: {salinity} ppt
- Plastic Type: {plastic_type}
- Environmental Stress: {stress}

Follow the RULES exactly. Return ONLY valid JSON."""


def build_design_prompt(sample: WaterAnalysis) -> str:
    return DESIGN_PROMPT.format(
        lat=sample.lat,
        lng=sample.lng,
        salinity=sample.salinity,
        plastic_type=sample.plastic_type.value,
        stress=str(sample.stress_signal_bool).lower(),
    )

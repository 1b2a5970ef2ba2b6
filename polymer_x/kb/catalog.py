"""Design catalog: static organism and enzyme tables per plastic type.

Each plastic type maps to a host organism known to metabolize it and a base
enzyme with its beneficial mutations. The tables are read-only and total
over ``PlasticType``.
"""

from dataclasses import dataclass

from polymer_x.contracts.schemas import ChassisType, PlasticType

ENZYME_VERSION = "v4.2"


@dataclass(frozen=True)
class CatalogEntry:
    """Catalog row for one plastic type."""
    organism: str
    description: str
    base_enzyme: str
    mutations: tuple[str, ...]


DESIGN_CATALOG: dict[PlasticType, CatalogEntry] = {
    PlasticType.PET: CatalogEntry(
        organism="Ideonella sakaiensis",
        description="Native PETase producer, optimal for PET degradation",
        base_enzyme="PETase",
        mutations=("S238F", "W159H", "S280A"),
    ),
    PlasticType.HDPE: CatalogEntry(
        organism="Pseudomonas putida",
        description="Robust chassis for hydrocarbon degradation pathways",
        base_enzyme="LacCase-HD",
        mutations=("T241M", "G352V"),
    ),
    PlasticType.PVC: CatalogEntry(
        organism="Sphingomonas sp.",
        description="Known for chlorinated compound metabolism",
        base_enzyme="HaloHyd-VC",
        mutations=("C127S", "L89F"),
    ),
    PlasticType.LDPE: CatalogEntry(
        organism="Rhodococcus ruber",
        description="Alkane-degrading actinobacterium",
        base_enzyme="AlkB-LDPE",
        mutations=("W55L", "F181Y"),
    ),
    PlasticType.PP: CatalogEntry(
        organism="Aspergillus tubingensis",
        description="Fungal chassis with strong cutinase expression",
        base_enzyme="CutinasePP",
        mutations=("L117F", "S141G"),
    ),
    PlasticType.PS: CatalogEntry(
        organism="Exiguobacterium sp.",
        description="Psychrotolerant styrene degrader",
        base_enzyme="StyreneOx",
        mutations=("M108L", "H223Y"),
    ),
}

REFERENCES = [
    "Lee et al. 2025 - Halophilic Enzyme Expression in Marine Bioremediation",
    "Zhang et al. 2025 - Engineered Quorum Sensing Kill Switches for Synthetic Biology Containment",
]

CHASSIS_SUFFIX = {
    ChassisType.HALOPHILIC: "-Halo",
    ChassisType.THERMOPHILIC: "-Thermo",
}


def lookup(plastic_type: PlasticType) -> CatalogEntry:
    return DESIGN_CATALOG[plastic_type]


def enzyme_name_for(entry: CatalogEntry, chassis: ChassisType) -> str:
    """Versioned enzyme name with the chassis expression suffix."""
    return f"{entry.base_enzyme}-{ENZYME_VERSION}{CHASSIS_SUFFIX.get(chassis, '')}"

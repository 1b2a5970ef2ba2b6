"""Core Pydantic schemas for the committee decision engine.

These schemas define the data contracts for:
- Water sample readings and the enumerated domain values
- Architect proposals and final enzyme designs
- Internal monologue entries and the response envelope
- Remote generation responses and engine configuration
"""

import os
from datetime import datetime, timezone
from enum import Enum
from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# Enums
# =============================================================================


class PlasticType(str, Enum):
    """Polymer categories the committee can target."""

    PET = "PET"
    HDPE = "HDPE"
    PVC = "PVC"
    LDPE = "LDPE"
    PP = "PP"
    PS = "PS"


class ChassisType(str, Enum):
    """Thermal/osmotic tolerance class of the host organism."""

    HALOPHILIC = "Halophilic"  # Salt-tolerant
    MESOPHILIC = "Mesophilic"  # Neutral default
    THERMOPHILIC = "Thermophilic"  # Heat-tolerant
    PSYCHROPHILIC = "Psychrophilic"  # Cold-tolerant, never chosen by the rules


class SafetyLockType(str, Enum):
    """Biocontainment mechanisms."""

    QUORUM_SENSING_TYPE_A = "Quorum_Sensing_Type_A"
    QUORUM_SENSING_TYPE_B = "Quorum_Sensing_Type_B"
    TEMPERATURE_SENSITIVE = "Temperature_Sensitive"
    AUXOTROPHIC = "Auxotrophic"
    LIGHT_ACTIVATED = "Light_Activated"


# Zhang et al. 2025: required on every engineered organism
MANDATORY_SAFETY_LOCK = SafetyLockType.QUORUM_SENSING_TYPE_B


class AgentRole(str, Enum):
    """The three fixed committee members."""

    ARCHITECT = "ARCHITECT"
    SAFETY_OFFICER = "SAFETY_OFFICER"
    SIMULATOR = "SIMULATOR"


class ExecutionMode(str, Enum):
    """Which strategy produced a response."""

    REMOTE = "REMOTE"
    LOCAL = "LOCAL"


class CommitteePhase(str, Enum):
    """States of a committee run."""

    PROPOSE = "propose"
    REVIEW = "review"
    REVIEW_RETRY = "review_retry"
    SIMULATE = "simulate"
    ASSEMBLE = "assemble"
    DONE = "done"


class EfficiencyBand(str, Enum):
    """Qualitative environment match reported by the Simulator."""

    OPTIMAL = "OPTIMAL"  # >= 0.85
    SUBOPTIMAL = "SUBOPTIMAL"  # >= 0.70
    MARGINAL = "MARGINAL"


# =============================================================================
# Sample Input
# =============================================================================


class WaterAnalysis(BaseModel):
    """A single water-sample reading at a deployment location."""

    model_config = ConfigDict(frozen=True)

    lat: float = Field(..., ge=-90.0, le=90.0, allow_inf_nan=False, description="Latitude")
    lng: float = Field(..., ge=-180.0, le=180.0, allow_inf_nan=False, description="Longitude")
    salinity: float = Field(
        ..., ge=0.0, allow_inf_nan=False, description="Salinity in ppt (practical range 0-50)"
    )
    plastic_type: PlasticType = Field(..., description="Dominant polymer contamination")
    stress_signal_bool: bool = Field(..., description="Environmental stress signal detected")

    @field_validator("plastic_type", mode="before")
    @classmethod
    def _upper_plastic(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().upper()
        return value


# =============================================================================
# Committee Records
# =============================================================================


class ArchitectProposal(BaseModel):
    """Design proposed by the Architect, before safety review."""

    model_config = ConfigDict(frozen=True)

    organism: str = Field(..., description="Host organism")
    organism_description: str = Field(default="")
    chassis_type: ChassisType
    enzyme_name: str = Field(..., min_length=1)
    mutation_list: list[str] = Field(default_factory=list, description="Ordered mutation codes")
    rationale: str = Field(default="")
    safety_lock_type: SafetyLockType | None = Field(
        default=None, description="Containment mechanism, filled in by the Safety Officer"
    )

    def with_safety_lock(
        self, lock: SafetyLockType = MANDATORY_SAFETY_LOCK
    ) -> "ArchitectProposal":
        """Return a copy carrying ``lock``; returns self if already set."""
        if self.safety_lock_type == lock:
            return self
        return self.model_copy(update={"safety_lock_type": lock})


class MonologueEntry(BaseModel):
    """One audit record of a committee member's reasoning."""

    model_config = ConfigDict(frozen=True)

    agent: AgentRole
    timestamp: datetime = Field(default_factory=utc_now)
    thought: str
    decision: str | None = None
    rejected: bool | None = None
    retry_reason: str | None = None


class EnzymeDesign(BaseModel):
    """Final recommended bioremediation design."""

    model_config = ConfigDict(frozen=True)

    enzyme_name: str = Field(..., min_length=1)
    mutation_list: list[str] = Field(default_factory=list)
    predicted_efficiency_score: float = Field(..., ge=0.0, le=0.95)
    safety_lock_type: SafetyLockType
    chassis_type: ChassisType
    design_rationale: str = Field(default="")
    references: list[str] = Field(default_factory=list)


class RemoteDesignPayload(BaseModel):
    """Untrusted design object parsed from a remote model response."""

    enzyme_name: str = Field(..., min_length=1)
    mutation_list: list[str] = Field(default_factory=list)
    predicted_efficiency_score: float = Field(..., ge=0.0, le=1.0, allow_inf_nan=False)
    safety_lock_type: str | None = Field(default=None)
    chassis_type: ChassisType
    design_rationale: str = Field(default="")
    references: list[str] = Field(default_factory=list)


# =============================================================================
# Response Envelope
# =============================================================================


class SuccessResponse(BaseModel):
    """Envelope for a completed committee run."""

    model_config = ConfigDict(frozen=True)

    success: Literal[True] = True
    data: EnzymeDesign
    timestamp: datetime = Field(default_factory=utc_now)
    internal_monologue: list[MonologueEntry] = Field(..., min_length=1)
    mode: ExecutionMode

    @model_validator(mode="after")
    def _require_containment(self) -> "SuccessResponse":
        if self.data.safety_lock_type != MANDATORY_SAFETY_LOCK:
            raise ValueError(
                f"design must carry {MANDATORY_SAFETY_LOCK.value}, "
                f"got {self.data.safety_lock_type.value}"
            )
        return self


class FailureResponse(BaseModel):
    """Envelope for a run that faulted; carries the partial monologue."""

    model_config = ConfigDict(frozen=True)

    success: Literal[False] = False
    error: str
    timestamp: datetime = Field(default_factory=utc_now)
    internal_monologue: list[MonologueEntry] = Field(default_factory=list)
    mode: ExecutionMode


CommitteeResponse = Union[SuccessResponse, FailureResponse]


# =============================================================================
# Remote Generation
# =============================================================================


class TokenUsage(BaseModel):
    """Token usage statistics."""

    prompt_tokens: int = Field(default=0, ge=0)
    completion_tokens: int = Field(default=0, ge=0)
    total_tokens: int = Field(default=0, ge=0)
    cost_usd: float = Field(default=0.0, ge=0.0)


class GenerationResponse(BaseModel):
    """Standardized response from the remote provider."""

    content: str = Field(..., description="Generated text content")
    usage: TokenUsage = Field(default_factory=TokenUsage, description="Usage statistics")
    model_name: str = Field(default="", description="Model used for generation")
    provider: str = Field(default="", description="Provider used")


# =============================================================================
# Configuration
# =============================================================================


class CommitteeConfig(BaseModel):
    """Configuration for the committee engine."""

    phase_delay: float = Field(default=0.5, ge=0.0, description="Seconds to pause before each local phase")
    remote_model: str = Field(default="gemini-2.0-flash")
    remote_timeout: float = Field(default=60.0, gt=0.0, description="Seconds before a remote call is abandoned")
    history_size: int = Field(default=10, ge=1)
    enable_remote: bool = Field(default=True, description="Use the remote backend when keys are present")

    @classmethod
    def from_env(cls) -> "CommitteeConfig":
        """Build a config from POLYMER_X_* environment variables."""
        values: dict[str, object] = {}
        env_map = {
            "POLYMER_X_PHASE_DELAY": "phase_delay",
            "POLYMER_X_MODEL": "remote_model",
            "POLYMER_X_REMOTE_TIMEOUT": "remote_timeout",
            "POLYMER_X_HISTORY_SIZE": "history_size",
        }
        for env_var, field_name in env_map.items():
            raw = os.getenv(env_var)
            if raw:
                values[field_name] = raw
        if os.getenv("POLYMER_X_OFFLINE", "").lower() in {"1", "true", "yes"}:
            values["enable_remote"] = False
        return cls.model_validate(values)

"""Tests for the committee orchestrator, remote delegation and fallback."""

import asyncio
import json
import time
from unittest.mock import patch

import pytest

from polymer_x.committee.orchestrator import CommitteeOrchestrator, build_backend
from polymer_x.contracts.schemas import (
    MANDATORY_SAFETY_LOCK,
    AgentRole,
    ChassisType,
    CommitteeConfig,
    ExecutionMode,
    FailureResponse,
    GenerationResponse,
    SuccessResponse,
    WaterAnalysis,
)
from polymer_x.errors import RemoteTransportError, ValidationError
from polymer_x.soul.prompts import SYSTEM_PROMPT

FAST = CommitteeConfig(phase_delay=0.0, remote_timeout=1.0)

REMOTE_DESIGN = {
    "enzyme_name": "PETase-v4.2-Halo",
    "mutation_list": ["S238F", "W159H", "S280A"],
    "predicted_efficiency_score": 0.9,
    "safety_lock_type": "Quorum_Sensing_Type_B",
    "chassis_type": "Halophilic",
    "design_rationale": "Halophilic expression for saline Pacific water.",
    "references": ["Lee et al. 2025", "Zhang et al. 2025"],
}


class FakeBackend:
    """Remote backend double that records calls."""

    def __init__(self, content: str | None = None, error: Exception | None = None, delay: float = 0.0):
        self.content = content
        self.error = error
        self.delay = delay
        self.calls: list[tuple[str, str | None]] = []

    async def generate_content(self, prompt: str, system_instruction: str | None = None) -> GenerationResponse:
        self.calls.append((prompt, system_instruction))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return GenerationResponse(content=self.content, model_name="fake", provider="fake")


def _fenced(design: dict) -> str:
    return f"Here is the design:\n```json\n{json.dumps(design)}\n```"


def _sample(**overrides) -> WaterAnalysis:
    raw = {
        "lat": 32.0,
        "lng": -145.0,
        "salinity": 35.5,
        "plastic_type": "PET",
        "stress_signal_bool": True,
    }
    raw.update(overrides)
    return WaterAnalysis(**raw)


def _roles(response) -> list[AgentRole]:
    return [entry.agent for entry in response.internal_monologue]


# =============================================================================
# Local pipeline
# =============================================================================


@pytest.mark.asyncio
async def test_local_end_to_end_example() -> None:
    orch = CommitteeOrchestrator(config=FAST)
    response = await orch.run_decision(_sample())

    assert isinstance(response, SuccessResponse)
    assert response.mode == ExecutionMode.LOCAL
    # 35.5 ppt is above the 35 ppt threshold, so the halophilic host wins
    assert response.data.chassis_type == ChassisType.HALOPHILIC
    assert response.data.enzyme_name == "PETase-v4.2-Halo"
    assert response.data.mutation_list == ["S238F", "W159H", "S280A"]
    assert response.data.predicted_efficiency_score == 0.90
    assert response.data.safety_lock_type == MANDATORY_SAFETY_LOCK
    assert len(response.data.references) == 2


@pytest.mark.asyncio
async def test_local_monologue_records_correction_cycle() -> None:
    response = await CommitteeOrchestrator(config=FAST).run_decision(_sample())

    assert _roles(response) == [
        AgentRole.ARCHITECT,
        AgentRole.SAFETY_OFFICER,
        AgentRole.ARCHITECT,
        AgentRole.SIMULATOR,
    ]
    rejection = response.internal_monologue[1]
    assert rejection.rejected is True
    assert rejection.retry_reason
    assert response.internal_monologue[2].decision.startswith("Retry accepted")
    assert "OPTIMAL" in response.internal_monologue[3].decision
    assert "Confidence: 70%" in response.internal_monologue[3].decision


@pytest.mark.asyncio
async def test_stressed_brackish_water_selects_thermophilic() -> None:
    response = await CommitteeOrchestrator(config=FAST).run_decision(
        _sample(salinity=20.0, plastic_type="HDPE")
    )
    assert response.data.chassis_type == ChassisType.THERMOPHILIC
    assert response.data.enzyme_name == "LacCase-HD-v4.2-Thermo"
    # 0.60 + 0.15 + 2 * 0.05
    assert response.data.predicted_efficiency_score == 0.85


@pytest.mark.asyncio
@pytest.mark.parametrize("plastic", ["PET", "HDPE", "PVC", "LDPE", "PP", "PS"])
@pytest.mark.parametrize("salinity,stress", [(5.0, False), (30.0, True), (38.0, False), (48.0, True)])
async def test_every_local_result_carries_mandatory_lock(plastic, salinity, stress) -> None:
    response = await CommitteeOrchestrator(config=FAST).run_decision(
        _sample(plastic_type=plastic, salinity=salinity, stress_signal_bool=stress)
    )
    assert response.success is True
    assert response.data.safety_lock_type == MANDATORY_SAFETY_LOCK
    assert 0.60 <= response.data.predicted_efficiency_score <= 0.95


@pytest.mark.asyncio
async def test_deterministic_pipeline_is_idempotent() -> None:
    orch = CommitteeOrchestrator(config=CommitteeConfig(phase_delay=0.001))
    first = await orch.run_decision(_sample())
    second = await orch.run_decision(_sample())

    assert first.data == second.data
    assert first.timestamp != second.timestamp


@pytest.mark.asyncio
async def test_accepts_raw_mapping() -> None:
    response = await CommitteeOrchestrator(config=FAST).run_decision(
        {"lat": 10, "lng": 20, "salinity": 12, "plastic_type": "ps", "stress_signal_bool": False}
    )
    assert response.success is True
    assert response.data.enzyme_name == "StyreneOx-v4.2"


@pytest.mark.asyncio
async def test_validation_error_crosses_the_boundary() -> None:
    orch = CommitteeOrchestrator(config=FAST)
    with pytest.raises(ValidationError):
        await orch.run_decision(
            {"lat": 10, "lng": 20, "salinity": 12, "plastic_type": "NYLON", "stress_signal_bool": False}
        )


@pytest.mark.asyncio
async def test_phase_fault_returns_failure_envelope() -> None:
    orch = CommitteeOrchestrator(config=FAST)
    with patch(
        "polymer_x.committee.orchestrator.simulate",
        side_effect=RuntimeError("simulator crashed"),
    ):
        response = await orch.run_decision(_sample())

    assert isinstance(response, FailureResponse)
    assert response.success is False
    assert response.mode == ExecutionMode.LOCAL
    assert "simulator crashed" in response.error
    assert response.error.startswith("simulate")
    # Reasoning up to the fault is kept
    assert _roles(response) == [AgentRole.ARCHITECT, AgentRole.SAFETY_OFFICER, AgentRole.ARCHITECT]


@pytest.mark.asyncio
async def test_status_callbacks_follow_phase_sequence() -> None:
    phases: list[str] = []

    async def on_status(update: dict) -> None:
        phases.append(update["phase"])

    orch = CommitteeOrchestrator(config=FAST, callbacks={"on_status_change": on_status})
    await orch.run_decision(_sample())

    assert phases == ["propose", "review", "review_retry", "simulate", "assemble", "done"]


@pytest.mark.asyncio
async def test_failing_callback_does_not_break_the_run() -> None:
    def on_status(update: dict) -> None:
        raise RuntimeError("display gone")

    orch = CommitteeOrchestrator(config=FAST, callbacks={"on_status_change": on_status})
    response = await orch.run_decision(_sample())
    assert response.success is True


@pytest.mark.asyncio
async def test_concurrent_runs_are_independent() -> None:
    orch = CommitteeOrchestrator(config=CommitteeConfig(phase_delay=0.01))
    samples = [
        _sample(plastic_type="PET", salinity=40.0),
        _sample(plastic_type="PVC", salinity=10.0, stress_signal_bool=False),
        _sample(plastic_type="PP", salinity=30.0),
    ]
    responses = await asyncio.gather(*(orch.run_decision(s) for s in samples))

    assert [r.data.enzyme_name for r in responses] == [
        "PETase-v4.2-Halo",
        "HaloHyd-VC-v4.2",
        "CutinasePP-v4.2-Thermo",
    ]
    assert all(len(r.internal_monologue) == 4 for r in responses)


# =============================================================================
# Remote pipeline
# =============================================================================


@pytest.mark.asyncio
async def test_remote_design_is_used_when_backend_succeeds() -> None:
    backend = FakeBackend(content=_fenced(REMOTE_DESIGN))
    orch = CommitteeOrchestrator(config=FAST, backend=backend)

    assert orch.mode == ExecutionMode.REMOTE
    response = await orch.run_decision(_sample())

    assert response.success is True
    assert response.mode == ExecutionMode.REMOTE
    assert response.data.enzyme_name == "PETase-v4.2-Halo"
    assert response.data.references == ["Lee et al. 2025", "Zhang et al. 2025"]
    assert _roles(response) == [AgentRole.ARCHITECT, AgentRole.SAFETY_OFFICER, AgentRole.SIMULATOR]
    assert response.internal_monologue[1].decision.startswith("APPROVED")

    prompt, system_instruction = backend.calls[0]
    assert system_instruction == SYSTEM_PROMPT
    assert "Plastic Type: PET" in prompt
    assert "Salinity: 35.5 ppt" in prompt


@pytest.mark.asyncio
@pytest.mark.parametrize("lock", [None, "Light_Activated", "Kill_Switch_9000"])
async def test_remote_design_without_mandatory_lock_is_corrected(lock) -> None:
    design = dict(REMOTE_DESIGN)
    if lock is None:
        del design["safety_lock_type"]
    else:
        design["safety_lock_type"] = lock
    orch = CommitteeOrchestrator(config=FAST, backend=FakeBackend(content=_fenced(design)))

    response = await orch.run_decision(_sample())

    assert response.success is True
    assert response.mode == ExecutionMode.REMOTE
    assert response.data.safety_lock_type == MANDATORY_SAFETY_LOCK
    assert _roles(response) == [
        AgentRole.ARCHITECT,
        AgentRole.SAFETY_OFFICER,
        AgentRole.SAFETY_OFFICER,
        AgentRole.ARCHITECT,
        AgentRole.SIMULATOR,
    ]
    warning, rejection = response.internal_monologue[1], response.internal_monologue[2]
    assert warning.decision.startswith("WARNING")
    assert rejection.rejected is True


@pytest.mark.asyncio
async def test_remote_score_is_capped() -> None:
    design = {**REMOTE_DESIGN, "predicted_efficiency_score": 0.99}
    orch = CommitteeOrchestrator(config=FAST, backend=FakeBackend(content=json.dumps(design)))
    response = await orch.run_decision(_sample())
    assert response.data.predicted_efficiency_score == 0.95


@pytest.mark.asyncio
async def test_remote_without_references_uses_catalog_citations() -> None:
    design = {**REMOTE_DESIGN, "references": []}
    orch = CommitteeOrchestrator(config=FAST, backend=FakeBackend(content=json.dumps(design)))
    response = await orch.run_decision(_sample())
    assert any("Zhang et al. 2025" in ref for ref in response.data.references)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "backend",
    [
        FakeBackend(error=ConnectionError("network unreachable")),
        FakeBackend(error=RemoteTransportError("All Gemini keys exhausted")),
        FakeBackend(content="Sorry, I cannot design enzymes."),
        FakeBackend(content=_fenced({**REMOTE_DESIGN, "chassis_type": "Plasmatic"})),
        FakeBackend(content='{"enzyme_name": "X", "predicted_efficiency_score": ' + "1" * 5000 + "}"),
        FakeBackend(content="[" * 100_000 + "]" * 100_000),
    ],
)
async def test_remote_failure_falls_back_to_local(backend: FakeBackend) -> None:
    orch = CommitteeOrchestrator(config=FAST, backend=backend)
    response = await orch.run_decision(_sample())

    assert response.success is True
    assert response.mode == ExecutionMode.LOCAL
    assert response.data.safety_lock_type == MANDATORY_SAFETY_LOCK
    assert response.data.predicted_efficiency_score == 0.90

    notice = response.internal_monologue[0]
    assert notice.agent == AgentRole.ARCHITECT
    assert "Falling back" in notice.thought
    assert notice.decision == "Switching to deterministic mode."
    assert len(response.internal_monologue) == 5


@pytest.mark.asyncio
async def test_remote_timeout_falls_back_to_local() -> None:
    config = CommitteeConfig(phase_delay=0.0, remote_timeout=0.05)
    orch = CommitteeOrchestrator(config=config, backend=FakeBackend(content="{}", delay=1.0))
    response = await orch.run_decision(_sample())

    assert response.success is True
    assert response.mode == ExecutionMode.LOCAL
    assert "timed out" in response.internal_monologue[0].thought


@pytest.mark.asyncio
async def test_hung_key_rotates_within_remote_budget() -> None:
    from polymer_x.soul.llm_client import GeminiClient, ProviderStats

    client = GeminiClient(
        model="gemini-test",
        timeout=0.3,
        stats=ProviderStats("gemini", 0.0, keys=["k1", "k2"]),
    )

    def _run(api_key, prompt, system_instruction):
        if api_key == "k1":
            time.sleep(0.5)
        return _fenced(REMOTE_DESIGN)

    config = CommitteeConfig(phase_delay=0.0, remote_timeout=0.3)
    orch = CommitteeOrchestrator(config=config, backend=client)
    with patch.object(GeminiClient, "_run_sync", side_effect=_run) as run:
        response = await orch.run_decision(_sample())

    assert response.success is True
    assert response.mode == ExecutionMode.REMOTE
    assert [c.args[0] for c in run.call_args_list] == ["k1", "k2"]


@pytest.mark.asyncio
async def test_fault_during_fallback_keeps_notice() -> None:
    orch = CommitteeOrchestrator(config=FAST, backend=FakeBackend(error=ConnectionError("down")))
    with patch(
        "polymer_x.committee.orchestrator.propose",
        side_effect=KeyError("catalog"),
    ):
        response = await orch.run_decision(_sample())

    assert response.success is False
    assert response.mode == ExecutionMode.LOCAL
    assert _roles(response) == [AgentRole.ARCHITECT]
    assert "Falling back" in response.internal_monologue[0].thought


# =============================================================================
# Backend selection
# =============================================================================


def test_no_backend_without_keys(monkeypatch) -> None:
    from polymer_x.soul.llm_client import GeminiClient, ProviderStats

    monkeypatch.setattr(GeminiClient, "_shared_stats", ProviderStats("gemini", 0.0, keys=[]))
    assert build_backend(CommitteeConfig()) is None


def test_backend_with_keys(monkeypatch) -> None:
    from polymer_x.soul.llm_client import GeminiClient, ProviderStats

    monkeypatch.setattr(GeminiClient, "_shared_stats", ProviderStats("gemini", 0.0, keys=["k1"]))
    backend = build_backend(CommitteeConfig(remote_model="gemini-test"))
    assert isinstance(backend, GeminiClient)
    assert backend.model == "gemini-test"


def test_offline_config_disables_backend(monkeypatch) -> None:
    from polymer_x.soul.llm_client import GeminiClient, ProviderStats

    monkeypatch.setattr(GeminiClient, "_shared_stats", ProviderStats("gemini", 0.0, keys=["k1"]))
    orch = CommitteeOrchestrator.from_config(CommitteeConfig(enable_remote=False))
    assert orch.mode == ExecutionMode.LOCAL

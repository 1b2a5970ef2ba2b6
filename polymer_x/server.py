"""
FastAPI Backend Server — Polymer-X Committee Decision Engine

Provides REST API endpoints for the map UI to request deployments and
browse the in-process deployment history.
"""

import os
from collections import deque
from typing import Any

from dotenv import load_dotenv

load_dotenv()

from fastapi import Body, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from polymer_x import __version__
from polymer_x.committee.orchestrator import CommitteeOrchestrator
from polymer_x.contracts.schemas import CommitteeConfig, CommitteeResponse
from polymer_x.errors import ValidationError
from polymer_x.log import configure_logging, get_logger

configure_logging(verbose=os.getenv("POLYMER_X_VERBOSE", "").lower() in {"1", "true", "yes"})
logger = get_logger(__name__)

app = FastAPI(
    title="Polymer-X Committee API",
    description="Committee-reviewed enzyme designs for plastic bioremediation",
    version=__version__,
)

# CORS configuration:
# - default keeps the local Vite dev server working
# - production can override with CORS_ALLOW_ORIGINS
cors_allow_origins_env = os.getenv("CORS_ALLOW_ORIGINS", "")
cors_allow_origins = [origin.strip() for origin in cors_allow_origins_env.split(",") if origin.strip()]
if not cors_allow_origins:
    cors_allow_origins = [
        "http://127.0.0.1:5173",
        "http://localhost:5173",
        "http://127.0.0.1:8000",
        "http://localhost:8000",
    ]
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_allow_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

config = CommitteeConfig.from_env()
orchestrator = CommitteeOrchestrator.from_config(config)

# In-memory deployment history, newest first
deployments: deque[CommitteeResponse] = deque(maxlen=config.history_size)


@app.get("/api/health")
async def health_check() -> dict[str, str]:
    return {"status": "healthy", "mode": orchestrator.mode.value, "version": __version__}


@app.post(
    "/api/decisions",
    response_model=CommitteeResponse,
    response_model_exclude_none=True,
)
async def create_decision(payload: dict[str, Any] = Body(...)) -> CommitteeResponse:
    """Run the committee for one water sample."""
    try:
        response = await orchestrator.run_decision(payload)
    except ValidationError as e:
        logger.info("api.invalid_sample", errors=e.errors)
        raise HTTPException(status_code=422, detail=str(e))

    deployments.appendleft(response)
    return response


@app.get(
    "/api/deployments",
    response_model=list[CommitteeResponse],
    response_model_exclude_none=True,
)
async def list_deployments() -> list[CommitteeResponse]:
    return list(deployments)


@app.get(
    "/api/deployments/{index}",
    response_model=CommitteeResponse,
    response_model_exclude_none=True,
)
async def get_deployment(index: int) -> CommitteeResponse:
    if index < 0 or index >= len(deployments):
        raise HTTPException(status_code=404, detail="Deployment not found")
    return deployments[index]

"""
Health endpoint.

  GET /health -- Liveness probe (always returns 200 if the process is alive)
"""

import time

from fastapi import APIRouter, Request

from ..models.responses import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def liveness(request: Request) -> HealthResponse:
    """Liveness probe with the size of the loaded rule set."""
    workspace = request.app.state.workspace
    start_time = getattr(request.app.state, "start_time", time.time())
    return HealthResponse(
        status="healthy",
        rules_loaded=len(workspace.rules),
        agents_configured=len(workspace.agents),
        uptime_seconds=round(time.time() - start_time, 1),
    )

"""Liveness endpoint."""

import time

from fastapi import APIRouter, Request

from app.api.schemas import HealthResponse
from app.db.models.base import utcnow

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request):
    """Public health check: status, current time and process uptime in seconds."""
    return HealthResponse(
        status="OK",
        timestamp=utcnow(),
        uptime=time.monotonic() - request.app.state.started_at,
    )

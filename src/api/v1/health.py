"""Health check endpoints for the CivicDesk API.

Liveness reports that the process is serving.  Readiness reads the
complaint slot and reports which optional AI collaborators are wired.
"""

from __future__ import annotations

import time

import structlog
from fastapi import APIRouter, Request
from pydantic import BaseModel

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

router = APIRouter(prefix="/health", tags=["health"])


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_seconds: float


class ReadinessResponse(BaseModel):
    status: str
    checks: dict[str, str]


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.get("", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """Liveness probe; does not touch downstream dependencies."""
    start_time: float = getattr(request.app.state, "start_time", time.time())
    return HealthResponse(
        status="healthy",
        version=request.app.version,
        uptime_seconds=round(time.time() - start_time, 2),
    )


@router.get("/ready", response_model=ReadinessResponse)
async def readiness_check(request: Request) -> ReadinessResponse:
    """Readiness probe.

    The store must be readable for the instance to be ready.  Missing AI
    collaborators only degrade features, so they are reported but do not
    fail the check.
    """
    checks: dict[str, str] = {}
    ready = True

    repository = getattr(request.app.state, "repository", None)
    if repository is None:
        checks["storage"] = "not_initialised"
        ready = False
    else:
        try:
            count = len(await repository.list_all())
            checks["storage"] = f"ok ({count} complaints)"
        except Exception as exc:
            checks["storage"] = f"error: {exc!s}"
            ready = False

    for name in ("llm", "tts", "stt"):
        checks[name] = "ok" if getattr(request.app.state, name, None) is not None else "not_configured"

    status = "ready" if ready else "degraded"
    logger.info("health.readiness_check", status=status, checks=checks)
    return ReadinessResponse(status=status, checks=checks)

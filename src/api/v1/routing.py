"""Department routing endpoint.

Wire-compatible with the web client's ``route-complaint`` call: three
required strings in, ``{department, reason}`` out.  Absent, empty or
non-string values are a 400.  Unlike complaint submission, this endpoint
does not fall back to the static table; a failed or malformed
enhancement call is reported as a 500.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, HTTPException, Request
from pydantic import Field, field_validator

from src.models.complaint import CamelModel
from src.services.department_router import RoutingUnavailableError

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["routing"])


class RouteComplaintRequest(CamelModel):
    complaint_text: str | None = Field(default=None, max_length=5000)
    complaint_category: str | None = Field(default=None, max_length=100)
    location: str | None = Field(default=None, max_length=500)

    @field_validator("complaint_text", "complaint_category", "location", mode="before")
    @classmethod
    def _non_string_is_missing(cls, value: object) -> object:
        return value if isinstance(value, str) else None


class RouteComplaintResponse(CamelModel):
    department: str
    reason: str


@router.post("/route-complaint", response_model=RouteComplaintResponse)
async def route_complaint(body: RouteComplaintRequest, request: Request) -> RouteComplaintResponse:
    """Ask the enhancement service which department should handle a complaint."""
    if not body.complaint_text or not body.complaint_category or not body.location:
        raise HTTPException(status_code=400, detail="Missing required fields")

    department_router = getattr(request.app.state, "department_router", None)
    if department_router is None:
        raise HTTPException(status_code=500, detail="Failed to route complaint")

    try:
        decision = await department_router.suggest(
            body.complaint_text,
            body.complaint_category,
            body.location,
        )
    except RoutingUnavailableError as exc:
        logger.error("api.routing.failed", cause=str(exc))
        raise HTTPException(status_code=500, detail="Failed to route complaint") from None

    return RouteComplaintResponse(department=decision.department, reason=decision.reason)

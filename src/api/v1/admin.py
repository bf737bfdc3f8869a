"""Admin dashboard endpoint: counts, chart series and filtered listing."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from src.middleware.auth import require_admin_api_key
from src.models.dashboard import Dashboard
from src.models.enums import ComplaintStatus
from src.services.dashboard import ALL_STATUSES

router = APIRouter(
    prefix="/admin",
    tags=["admin"],
    dependencies=[Depends(require_admin_api_key)],
)

_STATUS_CHOICES = frozenset({ALL_STATUSES, *(s.value for s in ComplaintStatus)})


@router.get("/dashboard", response_model=Dashboard)
async def get_dashboard(
    request: Request,
    status: str = Query(default=ALL_STATUSES, description="All, Submitted, In Progress, Resolved or Rejected"),
    q: str = Query(default="", max_length=200, description="Match on id, category or department"),
) -> Dashboard:
    """Summary counts, category breakdown, 30-day trend and complaint list."""
    if status not in _STATUS_CHOICES:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid status '{status}'. Valid values: {sorted(_STATUS_CHOICES)}",
        )

    dashboard_service = getattr(request.app.state, "dashboard", None)
    if dashboard_service is None:
        raise HTTPException(status_code=503, detail="Dashboard not available")

    return await dashboard_service.build(status_filter=status, query=q)

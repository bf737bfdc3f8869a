"""Resolution-action suggestion endpoint for resolving authorities."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, HTTPException, Request
from pydantic import Field

from src.models.complaint import CamelModel
from src.services.action_suggester import SuggestionUnavailableError

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/actions", tags=["actions"])


class SuggestActionsRequest(CamelModel):
    complaint_description: str = Field(..., min_length=1, max_length=5000)
    department: str = Field(..., min_length=1, max_length=200)
    relevant_protocols: str = Field(default="", max_length=20_000)


class SuggestActionsResponse(CamelModel):
    suggested_actions: list[str]


@router.post("/suggest", response_model=SuggestActionsResponse)
async def suggest_actions(body: SuggestActionsRequest, request: Request) -> SuggestActionsResponse:
    """Suggest ordered actions for resolving a routed complaint."""
    suggester = getattr(request.app.state, "action_suggester", None)
    if suggester is None:
        raise HTTPException(status_code=503, detail="Action suggestions not available")

    try:
        actions = await suggester.suggest(
            body.complaint_description,
            body.department,
            body.relevant_protocols,
        )
    except SuggestionUnavailableError:
        raise HTTPException(
            status_code=503,
            detail="Could not generate suggestions right now. Please try again.",
        ) from None

    return SuggestActionsResponse(suggested_actions=actions)

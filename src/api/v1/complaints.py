"""Complaint filing and tracking endpoints.

Provides submission through the web form, listing and search of stored
complaints, plain tracking by id and deletion.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, HTTPException, Query, Request, Response

from src.models.complaint import CamelModel, Complaint, ComplaintSubmission
from src.services.intake import ComplaintIntakeService, TrackingIdExhaustedError

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/complaints", tags=["complaints"])


class SubmitComplaintResponse(CamelModel):
    complaint: Complaint
    routing_reason: str
    routing_source: str
    message: str


class ComplaintListResponse(CamelModel):
    complaints: list[Complaint]
    total: int


def _intake(request: Request) -> ComplaintIntakeService:
    intake = getattr(request.app.state, "intake", None)
    if intake is None:
        raise HTTPException(status_code=503, detail="Complaint intake not available")
    return intake


@router.post("", response_model=SubmitComplaintResponse, status_code=201)
async def submit_complaint(body: ComplaintSubmission, request: Request) -> SubmitComplaintResponse:
    """File a new complaint and return its tracking id and department."""
    intake = _intake(request)
    try:
        complaint, decision = await intake.submit(body)
    except TrackingIdExhaustedError:
        logger.error("api.complaints.tracking_id_exhausted")
        raise HTTPException(
            status_code=500,
            detail="There was an error submitting your complaint. Please try again.",
        ) from None

    return SubmitComplaintResponse(
        complaint=complaint,
        routing_reason=decision.reason,
        routing_source=decision.source.value,
        message=(
            f"Your complaint ID is {complaint.id}. "
            "We'll keep you updated on the progress."
        ),
    )


@router.get("", response_model=ComplaintListResponse)
async def list_complaints(
    request: Request,
    q: str = Query(default="", max_length=200, description="Match on id or category"),
) -> ComplaintListResponse:
    """List stored complaints, optionally filtered by id or category."""
    complaints = await _intake(request).list_complaints(q)
    return ComplaintListResponse(complaints=complaints, total=len(complaints))


@router.get("/{tracking_id}", response_model=Complaint)
async def track_complaint(tracking_id: str, request: Request) -> Complaint:
    """Look a stored complaint up by tracking id (case-insensitive)."""
    complaint = await _intake(request).track(tracking_id)
    if complaint is None:
        raise HTTPException(
            status_code=404,
            detail="No complaint found with this ID. Please check the ID and try again.",
        )
    return complaint


@router.delete("/{tracking_id}", status_code=204)
async def delete_complaint(tracking_id: str, request: Request) -> Response:
    """Delete a stored complaint by its exact tracking id."""
    if not await _intake(request).delete(tracking_id):
        raise HTTPException(status_code=404, detail="Complaint not found")
    return Response(status_code=204)

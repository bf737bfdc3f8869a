"""Conversational status endpoints.

The tracking id can be typed, taken from a browser speech-recognition
transcript, or heard in an uploaded audio clip.  Every variant returns
the complaint, a friendly summary and, when speech synthesis is
available, the summary as a WAV data URI.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, File, HTTPException, Request, UploadFile
from pydantic import Field

from src.models.complaint import CamelModel, Complaint
from src.services.status_lookup import (
    ComplaintNotFoundError,
    StatusLookupService,
    StatusUnavailableError,
    extract_tracking_id,
)

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/status", tags=["status"])

_MAX_AUDIO_BYTES = 10 * 1024 * 1024


class StatusRequest(CamelModel):
    tracking_id: str = Field(default="", max_length=50)


class TranscriptRequest(CamelModel):
    transcript: str = Field(..., max_length=2000)


class StatusResponse(CamelModel):
    complaint: Complaint
    status_message: str
    audio_response: str | None = None
    tracking_id: str


def _service(request: Request) -> StatusLookupService:
    service = getattr(request.app.state, "status_lookup", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Status lookup not available")
    return service


async def _lookup(service: StatusLookupService, tracking_id: str) -> StatusResponse:
    if not tracking_id.strip():
        raise HTTPException(status_code=400, detail="Please enter a valid tracking ID.")
    try:
        report = await service.lookup(tracking_id.strip())
    except ComplaintNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from None
    except StatusUnavailableError:
        raise HTTPException(
            status_code=503,
            detail="Could not fetch the complaint status right now. Please try again.",
        ) from None

    return StatusResponse(
        complaint=report.complaint,
        status_message=report.status_message,
        audio_response=report.audio_response,
        tracking_id=report.complaint.id,
    )


def _id_from_transcript(transcript: str) -> str:
    tracking_id = extract_tracking_id(transcript)
    if tracking_id is None:
        raise HTTPException(
            status_code=422,
            detail=(
                "Could not find a complaint ID in your speech. "
                "Please say something like 'Check status for CMPT-1234'."
            ),
        )
    return tracking_id


@router.post("", response_model=StatusResponse)
async def get_status(body: StatusRequest, request: Request) -> StatusResponse:
    """Summarise the status of a complaint by tracking id."""
    return await _lookup(_service(request), body.tracking_id)


@router.post("/transcript", response_model=StatusResponse)
async def get_status_from_transcript(body: TranscriptRequest, request: Request) -> StatusResponse:
    """Summarise the status of the complaint named in a speech transcript."""
    service = _service(request)
    tracking_id = _id_from_transcript(body.transcript)
    logger.info("api.status.transcript_parsed", tracking_id=tracking_id)
    return await _lookup(service, tracking_id)


@router.post("/voice", response_model=StatusResponse)
async def get_status_from_voice(
    request: Request,
    audio: UploadFile = File(..., description="Spoken request, e.g. WAV or FLAC"),
) -> StatusResponse:
    """Transcribe an uploaded clip and summarise the complaint it names."""
    service = _service(request)
    stt = getattr(request.app.state, "stt", None)
    if stt is None:
        raise HTTPException(status_code=503, detail="Speech recognition not available")

    data = await audio.read()
    if not data:
        raise HTTPException(status_code=400, detail="Audio file is empty")
    if len(data) > _MAX_AUDIO_BYTES:
        raise HTTPException(status_code=413, detail="Audio file is too large")

    try:
        asr = await stt.transcribe(data)
    except Exception:
        logger.error("api.status.transcription_failed", exc_info=True)
        raise HTTPException(
            status_code=503,
            detail="Could not understand your speech. Please try again.",
        ) from None

    return await _lookup(service, _id_from_transcript(asr.text))

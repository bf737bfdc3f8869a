"""Conversational complaint status lookup.

Finds a complaint by tracking id (bundled seed records first, then the
stored collection), asks the LLM for a short friendly summary of its
status and, when a TTS service is configured, voices the summary as a
WAV data URI.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

import structlog

from src.data.seed import seed_complaints
from src.models.complaint import Complaint, find_by_tracking_id
from src.services.speech import wav_data_uri

if TYPE_CHECKING:
    from collections.abc import Sequence

    from src.services.llm import LLMService
    from src.services.repository import ComplaintRepository
    from src.services.speech import TextToSpeechService

logger = structlog.get_logger(__name__)

_STATUS_PROMPT: Final[str] = """\
A citizen wants to know the status of their complaint. These are the \
complaint details:

Tracking ID: {id}
Category: {category}
Date Submitted: {date}
Assigned Department: {department}
Status: {status}

Write a short, friendly and conversational summary of the status in two \
or three sentences.
- If the complaint is "In Progress", be encouraging.
- If it is "Resolved", be congratulatory.
- If it is "Submitted", let them know it is in the queue.
- If it is "Rejected", be empathetic. No reason is available, so do not \
invent one.\
"""

_SPOKEN_ID: Final[str] = "CMPT"


class ComplaintNotFoundError(LookupError):
    """No complaint matches the tracking id."""

    def __init__(self, tracking_id: str) -> None:
        super().__init__(f'Complaint with ID "{tracking_id}" not found.')
        self.tracking_id = tracking_id


class StatusUnavailableError(RuntimeError):
    """The status summary could not be generated; the caller may try again."""


@dataclass(slots=True)
class StatusReport:
    complaint: Complaint
    status_message: str
    audio_response: str | None = None


def extract_tracking_id(transcript: str) -> str | None:
    """Pick a tracking id out of a spoken transcript.

    Returns the first whitespace-separated token that starts with
    ``CMPT`` once upper-cased, with trailing punctuation removed.

    >>> extract_tracking_id("check status for cmpt-1234 please")
    'CMPT-1234'
    """
    for token in transcript.upper().split():
        if token.startswith(_SPOKEN_ID):
            return token.rstrip(".,!?;:")
    return None


class StatusLookupService:
    """Looks complaints up and narrates their status.

    Parameters
    ----------
    repository:
        Stored complaint collection, searched after the seed records.
    llm:
        LLM service used to write the summary.
    tts:
        Optional speech synthesis for the summary.
    seeds:
        Seed records searched first; defaults to the bundled seed list.
    """

    __slots__ = ("_llm", "_repository", "_seeds", "_tts")

    def __init__(
        self,
        repository: ComplaintRepository,
        llm: LLMService,
        tts: TextToSpeechService | None = None,
        seeds: Sequence[Complaint] | None = None,
    ) -> None:
        self._repository = repository
        self._llm = llm
        self._tts = tts
        self._seeds = tuple(seeds) if seeds is not None else seed_complaints()

    async def find(self, tracking_id: str) -> Complaint:
        """Resolve *tracking_id*, raising :class:`ComplaintNotFoundError`."""
        complaint = find_by_tracking_id(self._seeds, tracking_id)
        if complaint is None:
            complaint = await self._repository.find(tracking_id)
        if complaint is None:
            raise ComplaintNotFoundError(tracking_id)
        return complaint

    async def lookup(self, tracking_id: str) -> StatusReport:
        complaint = await self.find(tracking_id)
        log = logger.bind(complaint_id=complaint.id, status=complaint.status.value)

        prompt = _STATUS_PROMPT.format(
            id=complaint.id,
            category=complaint.category,
            date=complaint.date,
            department=complaint.department,
            status=complaint.status.value,
        )
        try:
            result = await self._llm.generate(prompt, temperature=0.5, max_output_tokens=256)
        except Exception as exc:
            log.exception("status.summary_failed")
            raise StatusUnavailableError("status summary could not be generated") from exc

        message = result.answer.strip()
        if not message:
            log.warning("status.summary_empty")
            raise StatusUnavailableError("status summary was empty")

        audio: str | None = None
        if self._tts is not None:
            try:
                audio = wav_data_uri(await self._tts.synthesize(message))
            except Exception:
                log.warning("status.speech_failed", exc_info=True)

        log.info("status.lookup_completed", has_audio=audio is not None)
        return StatusReport(complaint=complaint, status_message=message, audio_response=audio)

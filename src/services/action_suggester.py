"""LLM-generated resolution actions for routed complaints."""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

import structlog

if TYPE_CHECKING:
    from src.services.llm import LLMService

logger = structlog.get_logger(__name__)

_SUGGESTION_PROMPT: Final[str] = """\
You are helping a resolving authority act on a citizen complaint.

You will receive a complaint description, the department it has been \
routed to, and the public service protocols relevant to that department. \
Based on this information, suggest a series of appropriate actions for \
the resolving authority to take, in the order they should be done.

Complaint Description: {description}
Department: {department}
Relevant Protocols: {protocols}

Return a JSON object with one key, "suggestedActions", holding a list \
of short action strings.

JSON response:\
"""


class SuggestionUnavailableError(RuntimeError):
    """No usable suggestions could be produced; the caller may try again."""


class ActionSuggestionService:
    __slots__ = ("_llm",)

    def __init__(self, llm: LLMService) -> None:
        self._llm = llm

    async def suggest(
        self,
        complaint_description: str,
        department: str,
        relevant_protocols: str,
    ) -> list[str]:
        """Return suggested actions in the order the model gave them."""
        prompt = _SUGGESTION_PROMPT.format(
            description=complaint_description,
            department=department,
            protocols=relevant_protocols,
        )
        log = logger.bind(department=department)

        try:
            payload = await self._llm.generate_json(prompt, max_output_tokens=768)
        except Exception as exc:
            log.exception("suggestions.call_failed")
            raise SuggestionUnavailableError("suggestion call failed") from exc

        actions = payload.get("suggestedActions")
        if not isinstance(actions, list) or not all(isinstance(a, str) for a in actions):
            log.warning("suggestions.malformed", keys=sorted(payload))
            raise SuggestionUnavailableError("suggestion response is malformed")

        cleaned = [a.strip() for a in actions if a.strip()]
        log.info("suggestions.generated", count=len(cleaned))
        return cleaned

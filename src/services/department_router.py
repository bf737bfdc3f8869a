"""Department routing for citizen complaints.

A complaint is routed in two steps:

1. A static category -> department table gives an answer that is always
   available.
2. One enhancement call asks the LLM to pick from the closed list of
   departments.  A well-formed answer overrides the static one; anything
   else keeps the static answer and is logged as ``router.fallback``.

There are no retries and no circuit breaking.  The strict
:meth:`DepartmentRouter.suggest` is exposed separately for the HTTP
routing endpoint, which reports failures instead of falling back.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

import structlog

from src.models.enums import ComplaintCategory, Department, RoutingSource
from src.services.llm import LLMResponseError

if TYPE_CHECKING:
    from src.services.llm import LLMService

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Static routing table
# ---------------------------------------------------------------------------

DEFAULT_DEPARTMENT: Final[Department] = Department.MUNICIPAL_CORPORATION

DEPARTMENT_BY_CATEGORY: Final[dict[str, Department]] = {
    ComplaintCategory.POTHOLES: Department.MUNICIPAL_CORPORATION,
    ComplaintCategory.WATER_LEAKAGE: Department.WATER_SUPPLY_AUTHORITY,
    ComplaintCategory.STREETLIGHT_OUTAGE: Department.ELECTRICITY_BOARD,
    ComplaintCategory.GARBAGE_COLLECTION: Department.MUNICIPAL_CORPORATION,
}

AVAILABLE_DEPARTMENTS: Final[tuple[str, ...]] = tuple(d.value for d in Department)

STATIC_REASON: Final[str] = "Assigned from the standard category routing table."

_ROUTING_PROMPT: Final[str] = """\
You are routing citizen complaints to the correct department in India.

Given the following complaint details, determine the most appropriate \
department to handle the complaint.

Complaint Text: {complaint_text}
Complaint Category: {category}
Location: {location}

Available Departments: {departments}

Consider the nature of the complaint, its category, and location. \
Return the department name exactly as it appears in the Available \
Departments list. Make sure the choice aligns with the complaint \
category; for example, electricity-related issues go to the Electricity \
Board.

Return a JSON object with these keys:
- "department": one of the available department names
- "reason": one or two sentences explaining the choice

JSON response:\
"""


def static_department(category: str) -> Department:
    """Look *category* up in the static table (exact match)."""
    return DEPARTMENT_BY_CATEGORY.get(category, DEFAULT_DEPARTMENT)


# ---------------------------------------------------------------------------
# Data objects
# ---------------------------------------------------------------------------


@dataclass(slots=True, frozen=True)
class RoutingDecision:
    """Department chosen for a complaint and how it was chosen."""

    department: str
    reason: str
    source: RoutingSource


class RoutingUnavailableError(RuntimeError):
    """The enhancement call could not produce a usable department."""


# ---------------------------------------------------------------------------
# Router
# ---------------------------------------------------------------------------


class DepartmentRouter:
    """Routes complaints to departments.

    Parameters
    ----------
    llm:
        Optional LLM service.  Without one every decision is static.
    """

    __slots__ = ("_llm",)

    def __init__(self, llm: LLMService | None = None) -> None:
        self._llm = llm

    async def suggest(self, complaint_text: str, category: str, location: str) -> RoutingDecision:
        """Ask the LLM for a department, raising on any failure.

        Raises
        ------
        RoutingUnavailableError
            The LLM is not configured, the call failed, or the answer
            is malformed or names a department outside the closed list.
        """
        if self._llm is None:
            raise RoutingUnavailableError("enhancement service not configured")

        prompt = _ROUTING_PROMPT.format(
            complaint_text=complaint_text,
            category=category,
            location=location,
            departments=", ".join(AVAILABLE_DEPARTMENTS),
        )
        try:
            payload = await self._llm.generate_json(prompt, max_output_tokens=256)
        except LLMResponseError as exc:
            raise RoutingUnavailableError(f"malformed routing response: {exc}") from exc
        except Exception as exc:
            raise RoutingUnavailableError(f"routing call failed: {exc!r}") from exc

        department = payload.get("department")
        if not isinstance(department, str) or department.strip() not in AVAILABLE_DEPARTMENTS:
            raise RoutingUnavailableError(f"unknown department in routing response: {department!r}")

        reason = payload.get("reason")
        return RoutingDecision(
            department=department.strip(),
            reason=reason.strip() if isinstance(reason, str) else "",
            source=RoutingSource.LLM,
        )

    async def route(self, complaint_text: str, category: str, location: str) -> RoutingDecision:
        """Return the static department, overridden by the LLM when it succeeds."""
        static = RoutingDecision(
            department=static_department(category).value,
            reason=STATIC_REASON,
            source=RoutingSource.STATIC,
        )
        log = logger.bind(category=category, static_department=static.department)

        try:
            decision = await self.suggest(complaint_text, category, location)
        except RoutingUnavailableError as exc:
            log.warning("router.fallback", cause=str(exc))
            return static

        log.info("router.enhanced", department=decision.department)
        return decision

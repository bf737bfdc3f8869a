"""Complaint intake: submission, listing, tracking and deletion.

Submission routes the complaint, assigns a ``CMPT-####`` tracking id,
today's date, ``Submitted`` status and a random priority flag, then
prepends the record to the stored collection.

Tracking ids are drawn from 1000-9999 and redrawn while they collide
with a stored or seed id; after ``id_attempts`` collisions the
submission fails with :class:`TrackingIdExhaustedError`.  The draw happens
under the repository lock, so concurrent submissions never share an id.
"""

from __future__ import annotations

import random
from collections.abc import Callable
from datetime import date
from typing import TYPE_CHECKING

import structlog

from src.data.seed import seed_complaints
from src.models.complaint import Complaint, ComplaintSubmission
from src.models.enums import ComplaintStatus

if TYPE_CHECKING:
    from src.services.department_router import DepartmentRouter, RoutingDecision
    from src.services.repository import ComplaintRepository

logger = structlog.get_logger(__name__)


class TrackingIdExhaustedError(RuntimeError):
    """No unused tracking id was found within the attempt budget."""


class ComplaintIntakeService:
    """Files and manages citizen complaints.

    Parameters
    ----------
    repository:
        Stored complaint collection.
    router:
        Department router used on submission.
    rng:
        Random source for ids and priority; injectable for tests.
    today:
        Clock for the complaint date; injectable for tests.
    priority_probability:
        Chance that a new complaint is flagged as priority.
    id_attempts:
        Maximum tracking-id draws before giving up.
    """

    __slots__ = ("_id_attempts", "_priority_probability", "_repository", "_rng", "_router", "_today")

    def __init__(
        self,
        repository: ComplaintRepository,
        router: DepartmentRouter,
        *,
        rng: random.Random | None = None,
        today: Callable[[], date] = date.today,
        priority_probability: float = 0.2,
        id_attempts: int = 50,
    ) -> None:
        self._repository = repository
        self._router = router
        self._rng = rng or random.Random()
        self._today = today
        self._priority_probability = priority_probability
        self._id_attempts = id_attempts

    # -- helpers ------------------------------------------------------------

    def _new_tracking_id(self, stored_ids: set[str]) -> str:
        taken = stored_ids | {c.id for c in seed_complaints()}
        for _ in range(self._id_attempts):
            candidate = f"CMPT-{self._rng.randint(1000, 9999)}"
            if candidate not in taken:
                return candidate
            logger.info("intake.tracking_id_collision", candidate=candidate)
        raise TrackingIdExhaustedError(f"no free tracking id after {self._id_attempts} attempts")

    # -- public API ---------------------------------------------------------

    async def submit(self, submission: ComplaintSubmission) -> tuple[Complaint, RoutingDecision]:
        """File *submission* and return the stored record with its routing."""
        category = submission.resolved_category
        decision = await self._router.route(
            submission.description,
            category,
            submission.location,
        )

        def build(stored_ids: set[str]) -> Complaint:
            return Complaint(
                id=self._new_tracking_id(stored_ids),
                category=category,
                date=self._today().isoformat(),
                status=ComplaintStatus.SUBMITTED,
                department=decision.department,
                is_priority=self._rng.random() < self._priority_probability,
            )

        complaint = await self._repository.add_new(build)

        logger.info(
            "intake.complaint_submitted",
            complaint_id=complaint.id,
                category=category,
            department=complaint.department,
            routing_source=decision.source.value,
            is_priority=complaint.is_priority,
        )
        return complaint, decision

    async def list_complaints(self, query: str = "") -> list[Complaint]:
        """Stored complaints whose id or category contains *query*."""
        complaints = await self._repository.list_all()
        needle = query.strip().lower()
        if not needle:
            return complaints
        return [c for c in complaints if needle in c.id.lower() or needle in c.category.lower()]

    async def track(self, tracking_id: str) -> Complaint | None:
        return await self._repository.find(tracking_id)

    async def delete(self, tracking_id: str) -> bool:
        return await self._repository.delete(tracking_id)

"""Admin dashboard aggregation.

Builds the dashboard from the seed records followed by the stored
collection, dropping later records whose id was already seen.  All
figures are linear scans over that merged list.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable, Sequence
from datetime import date, timedelta
from typing import TYPE_CHECKING, Final

import structlog

from src.data.seed import seed_complaints
from src.models.dashboard import CategorySlice, Dashboard, SummaryStats, TrendPoint
from src.models.enums import ComplaintStatus

if TYPE_CHECKING:
    from src.models.complaint import Complaint
    from src.services.repository import ComplaintRepository

logger = structlog.get_logger(__name__)

ALL_STATUSES: Final[str] = "All"
TREND_DAYS: Final[int] = 30


def merge_unique(*collections: Sequence[Complaint]) -> list[Complaint]:
    """Concatenate *collections*, keeping the first record for each id."""
    seen: set[str] = set()
    merged: list[Complaint] = []
    for collection in collections:
        for complaint in collection:
            if complaint.id in seen:
                continue
            seen.add(complaint.id)
            merged.append(complaint)
    return merged


def summarize(complaints: Sequence[Complaint]) -> SummaryStats:
    counts = Counter(c.status for c in complaints)
    return SummaryStats(
        total=len(complaints),
        submitted=counts[ComplaintStatus.SUBMITTED],
        in_progress=counts[ComplaintStatus.IN_PROGRESS],
        resolved=counts[ComplaintStatus.RESOLVED],
        rejected=counts[ComplaintStatus.REJECTED],
    )


def category_breakdown(complaints: Sequence[Complaint]) -> list[CategorySlice]:
    # Counter preserves first-seen order.
    counts = Counter(c.category for c in complaints)
    return [CategorySlice(name=name, value=value) for name, value in counts.items()]


def _day_label(day: date) -> str:
    return f"{day:%b} {day.day}"


def daily_trend(complaints: Sequence[Complaint], today: date, days: int = TREND_DAYS) -> list[TrendPoint]:
    """Complaints per day for the *days* days ending *today*, oldest first.

    Records with an unparseable date are ignored.
    """
    window_start = today - timedelta(days=days - 1)
    per_day: Counter[date] = Counter()
    for complaint in complaints:
        try:
            filed = date.fromisoformat(complaint.date[:10])
        except ValueError:
            continue
        if window_start <= filed <= today:
            per_day[filed] += 1

    return [
        TrendPoint(date=_day_label(day), count=per_day[day])
        for day in (window_start + timedelta(days=offset) for offset in range(days))
    ]


def filter_complaints(
    complaints: Sequence[Complaint],
    status_filter: str = ALL_STATUSES,
    query: str = "",
) -> list[Complaint]:
    """Exact status filter (unless ``All``) plus id/category/department search."""
    filtered = list(complaints)
    if status_filter and status_filter != ALL_STATUSES:
        filtered = [c for c in filtered if c.status.value == status_filter]

    needle = query.strip().lower()
    if needle:
        filtered = [
            c
            for c in filtered
            if needle in c.id.lower() or needle in c.category.lower() or needle in c.department.lower()
        ]
    return filtered


class AdminDashboardService:
    __slots__ = ("_repository", "_seeds", "_today")

    def __init__(
        self,
        repository: ComplaintRepository,
        *,
        seeds: Sequence[Complaint] | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._repository = repository
        self._seeds = tuple(seeds) if seeds is not None else seed_complaints()
        self._today = today

    async def all_complaints(self) -> list[Complaint]:
        return merge_unique(self._seeds, await self._repository.list_all())

    async def build(self, status_filter: str = ALL_STATUSES, query: str = "") -> Dashboard:
        complaints = await self.all_complaints()
        dashboard = Dashboard(
            summary=summarize(complaints),
            categories=category_breakdown(complaints),
            trend=daily_trend(complaints, self._today()),
            complaints=filter_complaints(complaints, status_filter, query),
            status_filter=status_filter or ALL_STATUSES,
            query=query,
        )
        logger.info(
            "dashboard.built",
            total=dashboard.summary.total,
            listed=len(dashboard.complaints),
            status_filter=dashboard.status_filter,
        )
        return dashboard

"""Record builders shared by the test modules."""

from __future__ import annotations

from datetime import date

from src.models.complaint import Complaint
from src.models.enums import ComplaintStatus

FIXED_TODAY = date(2024, 8, 1)


def make_complaint(
    complaint_id: str,
    category: str = "Potholes",
    status: ComplaintStatus = ComplaintStatus.SUBMITTED,
    department: str = "Municipal Corporation",
    filed: str = "2024-07-30",
    is_priority: bool | None = None,
) -> Complaint:
    return Complaint(
        id=complaint_id,
        category=category,
        date=filed,
        status=status,
        department=department,
        is_priority=is_priority,
    )

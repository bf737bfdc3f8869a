"""Complaint record models for CivicDesk.

The :class:`Complaint` is the only persisted entity.  Its serialized form
uses the same camelCase keys the web client writes (``isPriority``), so a
stored collection can be exchanged with the browser unchanged.
"""

from __future__ import annotations

import re
from typing import Final

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

from src.models.enums import ComplaintCategory, ComplaintStatus

TRACKING_ID_PATTERN: Final[re.Pattern[str]] = re.compile(r"^CMPT-\d{4}$")


class CamelModel(BaseModel):
    """Base for wire models: camelCase on output, either case on input."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class Complaint(CamelModel):
    """A single citizen complaint as stored in the complaint slot."""

    id: str
    category: str
    date: str
    status: ComplaintStatus
    department: str
    is_priority: bool | None = None

    def to_record(self) -> dict[str, object]:
        """Return the storage representation (camelCase, absent keys omitted)."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


ComplaintList = TypeAdapter(list[Complaint])


class ComplaintSubmission(CamelModel):
    """Fields collected by the web complaint form.

    Contact details are validated but never persisted on the record.
    """

    full_name: str = Field(..., min_length=1, max_length=200)
    email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$", max_length=320)
    phone: str = Field(..., pattern=r"^\d{10}$")
    category: str = Field(default="", max_length=100)
    location: str = Field(..., min_length=1, max_length=500)
    description: str = Field(..., min_length=1, max_length=5000)

    @property
    def resolved_category(self) -> str:
        return self.category.strip() or ComplaintCategory.OTHER.value


def find_by_tracking_id(complaints: list[Complaint] | tuple[Complaint, ...], tracking_id: str) -> Complaint | None:
    """Case-insensitive exact match on ``id``; first match wins."""
    wanted = tracking_id.strip().lower()
    if not wanted:
        return None
    for complaint in complaints:
        if complaint.id.lower() == wanted:
            return complaint
    return None

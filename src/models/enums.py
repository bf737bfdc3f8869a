from __future__ import annotations

from enum import StrEnum


class ComplaintStatus(StrEnum):
    __slots__ = ()

    SUBMITTED = "Submitted"
    IN_PROGRESS = "In Progress"
    RESOLVED = "Resolved"
    REJECTED = "Rejected"


class ComplaintCategory(StrEnum):
    """Categories offered on the complaint form."""

    __slots__ = ()

    POTHOLES = "Potholes"
    WATER_LEAKAGE = "Water Leakage"
    STREETLIGHT_OUTAGE = "Streetlight Outage"
    GARBAGE_COLLECTION = "Garbage Collection"
    OTHER = "Other"


class Department(StrEnum):
    """Municipal bodies a complaint can be routed to."""

    __slots__ = ()

    MUNICIPAL_CORPORATION = "Municipal Corporation"
    POLICE = "Police"
    ELECTRICITY_BOARD = "Electricity Board"
    WATER_SUPPLY_AUTHORITY = "Water Supply Authority"


class RoutingSource(StrEnum):
    __slots__ = ()

    STATIC = "static"
    LLM = "llm"

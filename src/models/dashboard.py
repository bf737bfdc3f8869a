"""Admin dashboard models: summary counts, chart series and listing."""

from __future__ import annotations

from pydantic import Field

from src.models.complaint import CamelModel, Complaint


class SummaryStats(CamelModel):
    total: int = 0
    submitted: int = 0
    in_progress: int = 0
    resolved: int = 0
    rejected: int = 0


class CategorySlice(CamelModel):
    """One slice of the by-category pie chart."""

    name: str
    value: int


class TrendPoint(CamelModel):
    """Complaints filed on one day of the trend window."""

    date: str
    count: int


class Dashboard(CamelModel):
    summary: SummaryStats
    categories: list[CategorySlice] = Field(default_factory=list)
    trend: list[TrendPoint] = Field(default_factory=list)
    complaints: list[Complaint] = Field(default_factory=list)
    status_filter: str = "All"
    query: str = ""

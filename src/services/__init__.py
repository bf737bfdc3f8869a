"""CivicDesk service layer -- storage, routing, intake, status, suggestions, dashboard."""

from __future__ import annotations

from src.services.action_suggester import ActionSuggestionService, SuggestionUnavailableError
from src.services.dashboard import AdminDashboardService
from src.services.department_router import DepartmentRouter, RoutingDecision, RoutingUnavailableError
from src.services.intake import ComplaintIntakeService, TrackingIdExhaustedError
from src.services.repository import ComplaintRepository
from src.services.status_lookup import (
    ComplaintNotFoundError,
    StatusLookupService,
    StatusReport,
    StatusUnavailableError,
)
from src.services.storage import (
    FileStorageBackend,
    InMemoryStorageBackend,
    RedisStorageBackend,
    StorageBackend,
)

__all__ = [
    "ActionSuggestionService",
    "AdminDashboardService",
    "ComplaintIntakeService",
    "ComplaintNotFoundError",
    "ComplaintRepository",
    "DepartmentRouter",
    "FileStorageBackend",
    "InMemoryStorageBackend",
    "RedisStorageBackend",
    "RoutingDecision",
    "RoutingUnavailableError",
    "StatusLookupService",
    "StatusReport",
    "StatusUnavailableError",
    "StorageBackend",
    "SuggestionUnavailableError",
    "TrackingIdExhaustedError",
]

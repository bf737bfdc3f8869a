from __future__ import annotations

import os

# Must be set before ``config.settings`` is imported anywhere.
os.environ.setdefault("RATE_LIMIT_PER_MINUTE", "100000")
os.environ.setdefault("CIVICDESK_STORAGE_BACKEND", "memory")
os.environ.setdefault("LOG_FORMAT", "console")

import random  # noqa: E402

import orjson  # noqa: E402
import pytest  # noqa: E402

from src.models.complaint import Complaint  # noqa: E402
from src.models.enums import ComplaintStatus  # noqa: E402
from src.services.department_router import DepartmentRouter  # noqa: E402
from src.services.intake import ComplaintIntakeService  # noqa: E402
from src.services.repository import ComplaintRepository  # noqa: E402
from src.services.storage import InMemoryStorageBackend  # noqa: E402
from tests.helpers import FIXED_TODAY, make_complaint  # noqa: E402


@pytest.fixture
def storage() -> InMemoryStorageBackend:
    return InMemoryStorageBackend()


@pytest.fixture
def repository(storage: InMemoryStorageBackend) -> ComplaintRepository:
    return ComplaintRepository(storage)


@pytest.fixture
async def stored(storage: InMemoryStorageBackend) -> list[Complaint]:
    """Three complaints written straight into the slot, newest first."""
    complaints = [
        make_complaint("CMPT-2001", "Water Leakage", department="Water Supply Authority", is_priority=True),
        make_complaint("CMPT-2002", "Streetlight Outage", ComplaintStatus.RESOLVED, "Electricity Board"),
        make_complaint("CMPT-2003", "Other", ComplaintStatus.REJECTED, filed="2024-06-01"),
    ]
    await storage.write("complaints", orjson.dumps([c.to_record() for c in complaints]))
    return complaints


@pytest.fixture
def intake(repository: ComplaintRepository) -> ComplaintIntakeService:
    """Intake with a static-only router, a seeded RNG and a fixed clock."""
    return ComplaintIntakeService(
        repository,
        DepartmentRouter(None),
        rng=random.Random(7),
        today=lambda: FIXED_TODAY,
    )

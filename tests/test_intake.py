"""Tests for complaint submission, listing, tracking and deletion."""

from __future__ import annotations

import asyncio
import random
from pathlib import Path

import pytest

from src.models.complaint import TRACKING_ID_PATTERN, Complaint, ComplaintSubmission
from src.models.enums import ComplaintStatus, RoutingSource
from src.services.department_router import DepartmentRouter
from src.services.intake import ComplaintIntakeService, TrackingIdExhaustedError
from src.services.repository import ComplaintRepository
from src.services.storage import FileStorageBackend
from tests.fakes import FakeLLM
from tests.helpers import FIXED_TODAY


class ScriptedRandom(random.Random):
    """Yields the given tracking-id numbers in order, then repeats the last."""

    def __init__(self, numbers: list[int], priority_roll: float = 0.9) -> None:
        super().__init__(0)
        self._numbers = list(numbers)
        self._priority_roll = priority_roll

    def randint(self, a: int, b: int) -> int:
        if len(self._numbers) > 1:
            return self._numbers.pop(0)
        return self._numbers[0]

    def random(self) -> float:
        return self._priority_roll


def _submission(category: str = "Water Leakage") -> ComplaintSubmission:
    return ComplaintSubmission(
        full_name="Ravi Kumar",
        email="ravi@example.com",
        phone="9123456780",
        category=category,
        location="Sector 5, Block C",
        description="Water has been leaking from the main pipe for two days.",
    )


class TestSubmit:
    async def test_new_complaint_record(self, intake: ComplaintIntakeService) -> None:
        complaint, decision = await intake.submit(_submission())
        assert TRACKING_ID_PATTERN.match(complaint.id)
        assert complaint.category == "Water Leakage"
        assert complaint.department == "Water Supply Authority"
        assert complaint.status is ComplaintStatus.SUBMITTED
        assert complaint.date == FIXED_TODAY.isoformat()
        assert isinstance(complaint.is_priority, bool)
        assert decision.source is RoutingSource.STATIC

    async def test_new_complaint_is_prepended(
        self, intake: ComplaintIntakeService, repository: ComplaintRepository, stored: list[Complaint]
    ) -> None:
        complaint, _ = await intake.submit(_submission("Potholes"))
        ids = [c.id for c in await repository.list_all()]
        assert ids == [complaint.id, "CMPT-2001", "CMPT-2002", "CMPT-2003"]

    async def test_blank_category_is_other(self, intake: ComplaintIntakeService) -> None:
        complaint, _ = await intake.submit(_submission(""))
        assert complaint.category == "Other"
        assert complaint.department == "Municipal Corporation"

    async def test_contact_details_are_not_stored(
        self, intake: ComplaintIntakeService, repository: ComplaintRepository
    ) -> None:
        await intake.submit(_submission())
        record = (await repository.list_all())[0].to_record()
        assert set(record) <= {"id", "category", "date", "status", "department", "isPriority"}

    async def test_llm_department_is_used(self, repository: ComplaintRepository) -> None:
        router = DepartmentRouter(FakeLLM(payload={"department": "Police", "reason": "Tampering suspected."}))
        service = ComplaintIntakeService(repository, router, today=lambda: FIXED_TODAY)
        complaint, decision = await service.submit(_submission())
        assert complaint.department == "Police"
        assert decision.reason == "Tampering suspected."

    async def test_llm_failure_still_files(self, repository: ComplaintRepository) -> None:
        router = DepartmentRouter(FakeLLM(error=RuntimeError("unavailable")))
        service = ComplaintIntakeService(repository, router, today=lambda: FIXED_TODAY)
        complaint, _ = await service.submit(_submission())
        assert complaint.department == "Water Supply Authority"
        assert await repository.find(complaint.id) == complaint

    async def test_priority_follows_probability(self, repository: ComplaintRepository) -> None:
        service = ComplaintIntakeService(
            repository, DepartmentRouter(None), rng=ScriptedRandom([4321], priority_roll=0.1)
        )
        complaint, _ = await service.submit(_submission())
        assert complaint.is_priority is True

    async def test_colliding_ids_are_redrawn(
        self, repository: ComplaintRepository, stored: list[Complaint]
    ) -> None:
        # 1234 is a seed id, 2001 is stored.
        service = ComplaintIntakeService(
            repository, DepartmentRouter(None), rng=ScriptedRandom([1234, 2001, 4321])
        )
        complaint, _ = await service.submit(_submission())
        assert complaint.id == "CMPT-4321"
        assert complaint.is_priority is False

    async def test_exhausted_ids_raise_without_writing(
        self, repository: ComplaintRepository, stored: list[Complaint]
    ) -> None:
        service = ComplaintIntakeService(
            repository, DepartmentRouter(None), rng=ScriptedRandom([2001]), id_attempts=5
        )
        with pytest.raises(TrackingIdExhaustedError):
            await service.submit(_submission())
        assert len(await repository.list_all()) == 3

    async def test_concurrent_submissions_get_distinct_ids(self, tmp_path: Path) -> None:
        repository = ComplaintRepository(FileStorageBackend(tmp_path))
        service = ComplaintIntakeService(
            repository, DepartmentRouter(None), rng=ScriptedRandom([4242, 4242, 4343])
        )

        first, second = await asyncio.gather(service.submit(_submission()), service.submit(_submission()))

        assert {first[0].id, second[0].id} == {"CMPT-4242", "CMPT-4343"}
        assert sorted(await repository.ids()) == ["CMPT-4242", "CMPT-4343"]

    async def test_concurrent_submissions_never_share_an_exhausted_id(self, tmp_path: Path) -> None:
        repository = ComplaintRepository(FileStorageBackend(tmp_path))
        service = ComplaintIntakeService(
            repository, DepartmentRouter(None), rng=ScriptedRandom([4242]), id_attempts=3
        )

        results = await asyncio.gather(
            service.submit(_submission()), service.submit(_submission()), return_exceptions=True
        )

        assert sum(isinstance(r, TrackingIdExhaustedError) for r in results) == 1
        assert [c.id for c in await repository.list_all()] == ["CMPT-4242"]


class TestListTrackDelete:
    async def test_list_all(self, intake: ComplaintIntakeService, stored: list[Complaint]) -> None:
        assert await intake.list_complaints() == stored

    async def test_query_matches_id_or_category(
        self, intake: ComplaintIntakeService, stored: list[Complaint]
    ) -> None:
        assert [c.id for c in await intake.list_complaints("2002")] == ["CMPT-2002"]
        assert [c.id for c in await intake.list_complaints("water")] == ["CMPT-2001"]

    async def test_track(self, intake: ComplaintIntakeService, stored: list[Complaint]) -> None:
        complaint = await intake.track("cmpt-2003")
        assert complaint is not None
        assert complaint.status is ComplaintStatus.REJECTED
        assert await intake.track("CMPT-0000") is None

    async def test_delete(self, intake: ComplaintIntakeService, stored: list[Complaint]) -> None:
        assert await intake.delete("CMPT-2001") is True
        assert await intake.delete("CMPT-2001") is False
        assert [c.id for c in await intake.list_complaints()] == ["CMPT-2002", "CMPT-2003"]

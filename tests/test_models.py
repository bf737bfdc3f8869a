"""Tests for complaint records, form submissions and the bundled seed list."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from src.data.seed import load_seed_complaints, seed_complaints
from src.models.complaint import (
    TRACKING_ID_PATTERN,
    Complaint,
    ComplaintList,
    ComplaintSubmission,
    find_by_tracking_id,
)
from src.models.enums import ComplaintCategory, ComplaintStatus, Department


class TestEnums:
    def test_status_values_match_stored_layout(self) -> None:
        assert {s.value for s in ComplaintStatus} == {"Submitted", "In Progress", "Resolved", "Rejected"}

    def test_categories(self) -> None:
        assert [c.value for c in ComplaintCategory] == [
            "Potholes",
            "Water Leakage",
            "Streetlight Outage",
            "Garbage Collection",
            "Other",
        ]

    def test_departments(self) -> None:
        assert len(Department) == 4
        assert Department.WATER_SUPPLY_AUTHORITY == "Water Supply Authority"


class TestComplaint:
    def test_parses_camel_case_record(self) -> None:
        complaint = Complaint.model_validate(
            {
                "id": "CMPT-1111",
                "category": "Potholes",
                "date": "2024-07-01",
                "status": "In Progress",
                "department": "Municipal Corporation",
                "isPriority": True,
            }
        )
        assert complaint.is_priority is True
        assert complaint.status is ComplaintStatus.IN_PROGRESS

    def test_record_omits_absent_priority(self) -> None:
        complaint = Complaint(
            id="CMPT-1111",
            category="Other",
            date="2024-07-01",
            status=ComplaintStatus.SUBMITTED,
            department="Police",
        )
        assert complaint.to_record() == {
            "id": "CMPT-1111",
            "category": "Other",
            "date": "2024-07-01",
            "status": "Submitted",
            "department": "Police",
        }

    def test_record_uses_camel_case_priority(self) -> None:
        complaint = Complaint(
            id="CMPT-1111",
            category="Other",
            date="2024-07-01",
            status=ComplaintStatus.SUBMITTED,
            department="Police",
            is_priority=False,
        )
        assert complaint.to_record()["isPriority"] is False

    def test_unknown_status_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ComplaintList.validate_python(
                [{"id": "CMPT-1", "category": "x", "date": "d", "status": "Closed", "department": "y"}]
            )

    def test_tracking_id_pattern(self) -> None:
        assert TRACKING_ID_PATTERN.match("CMPT-1234")
        assert not TRACKING_ID_PATTERN.match("CMPT-123")
        assert not TRACKING_ID_PATTERN.match("cmpt-1234")


class TestFindByTrackingId:
    def test_case_insensitive_exact(self) -> None:
        seeds = seed_complaints()
        found = find_by_tracking_id(seeds, "cmpt-5678")
        assert found is not None
        assert found.id == "CMPT-5678"

    def test_prefix_is_not_a_match(self) -> None:
        assert find_by_tracking_id(seed_complaints(), "CMPT-56") is None

    def test_empty_id(self) -> None:
        assert find_by_tracking_id(seed_complaints(), "  ") is None


class TestComplaintSubmission:
    def _body(self, **overrides: str) -> dict[str, str]:
        body = {
            "fullName": "Asha Rao",
            "email": "asha@example.com",
            "phone": "9876543210",
            "category": "Potholes",
            "location": "MG Road",
            "description": "Deep pothole near the bus stop.",
        }
        body.update(overrides)
        return body

    def test_accepts_camel_case_form(self) -> None:
        submission = ComplaintSubmission.model_validate(self._body())
        assert submission.full_name == "Asha Rao"

    def test_phone_must_have_ten_digits(self) -> None:
        with pytest.raises(ValidationError):
            ComplaintSubmission.model_validate(self._body(phone="12345"))

    def test_email_shape_checked(self) -> None:
        with pytest.raises(ValidationError):
            ComplaintSubmission.model_validate(self._body(email="not-an-email"))

    def test_blank_category_becomes_other(self) -> None:
        submission = ComplaintSubmission.model_validate(self._body(category="  "))
        assert submission.resolved_category == "Other"


class TestSeed:
    def test_bundled_seed_records(self) -> None:
        seeds = load_seed_complaints()
        assert [c.id for c in seeds] == ["CMPT-1234", "CMPT-5678", "CMPT-9012", "CMPT-3456"]
        first = seeds[0]
        assert first.category == "Potholes"
        assert first.department == "Municipal Corporation"
        assert first.status is ComplaintStatus.IN_PROGRESS
        assert first.is_priority is True

    def test_missing_file(self, tmp_path) -> None:
        with pytest.raises(FileNotFoundError):
            load_seed_complaints(tmp_path / "absent.json")

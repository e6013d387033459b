"""
Unit tests for router helpers and rate limiting.
"""

from datetime import UTC, datetime
from types import SimpleNamespace
from unittest.mock import patch
from uuid import UUID

import pytest
from fastapi import HTTPException

from app.core import rate_limit
from app.modules.applications.completeness import CompletenessReport, MissingCertificate
from app.modules.applications.errors import (
    ApplicationNotFoundError,
    ConcurrentModificationError,
    IllegalTransitionError,
    IncompleteApplicationError,
)
from app.modules.applications.models import ApplicationStatus
from app.modules.applications.router import (
    completeness_to_response,
    handle_service_error,
    history_to_response,
)


class TestHandleServiceError:
    """Tests for handle_service_error."""

    def test_not_found(self):
        with pytest.raises(HTTPException) as exc_info:
            handle_service_error(ApplicationNotFoundError(5))

        assert exc_info.value.status_code == 404
        assert exc_info.value.detail["error"] == "APPLICATION_NOT_FOUND"

    def test_illegal_transition(self):
        error = IllegalTransitionError(ApplicationStatus.APPROVED, ApplicationStatus.SUBMITTED)

        with pytest.raises(HTTPException) as exc_info:
            handle_service_error(error)

        assert exc_info.value.status_code == 409
        assert exc_info.value.detail["error"] == "ILLEGAL_TRANSITION"
        assert "approved" in exc_info.value.detail["message"]

    def test_concurrent_modification(self):
        with pytest.raises(HTTPException) as exc_info:
            handle_service_error(ConcurrentModificationError(5))

        assert exc_info.value.status_code == 409
        assert exc_info.value.detail["error"] == "CONCURRENT_MODIFICATION"

    def test_incomplete_includes_breakdown(self):
        report = CompletenessReport(
            missing_fields=["gender"],
            missing_certificates=[MissingCertificate(2, "Intermediate Memo")],
        )

        with pytest.raises(HTTPException) as exc_info:
            handle_service_error(IncompleteApplicationError(report))

        detail = exc_info.value.detail
        assert exc_info.value.status_code == 422
        assert detail["error"] == "INCOMPLETE_APPLICATION"
        assert detail["missing_fields"] == ["gender"]
        assert detail["missing_certificates"] == [
            {"certificate_type_id": 2, "certificate_name": "Intermediate Memo"}
        ]


class TestResponseBuilders:
    def test_completeness_to_response(self):
        report = CompletenessReport(missing_certificates=[MissingCertificate(1, "SSC Memo")])

        response = completeness_to_response(101, report)

        assert response.application_id == 101
        assert response.is_complete is False
        assert response.missing_certificates[0].certificate_name == "SSC Memo"

    def test_history_to_response(self):
        entry = SimpleNamespace(
            id=1,
            from_status=None,
            to_status=ApplicationStatus.DRAFT,
            changed_by=UUID("00000000-0000-0000-0000-0000000000aa"),
            remarks="Application created",
            date_created=datetime(2025, 5, 20, 10, 0, tzinfo=UTC),
        )

        response = history_to_response(101, [entry])

        assert response.application_id == 101
        assert response.history[0].from_status is None
        assert response.history[0].to_status == ApplicationStatus.DRAFT


class TestMemoryRateLimit:
    """Tests for the in-memory rate limit fallback."""

    @pytest.fixture(autouse=True)
    def clear_store(self):
        rate_limit._memory_store.clear()
        yield
        rate_limit._memory_store.clear()

    def test_allows_up_to_limit(self):
        results = [rate_limit._check_rate_limit_memory("status:1", 3, 60) for _ in range(4)]
        assert results == [True, True, True, False]

    def test_keys_are_independent(self):
        assert rate_limit._check_rate_limit_memory("status:1", 1, 60)
        assert rate_limit._check_rate_limit_memory("status:2", 1, 60)
        assert not rate_limit._check_rate_limit_memory("status:1", 1, 60)

    def test_old_requests_fall_out_of_window(self):
        with patch("app.core.rate_limit.time.time", return_value=1000.0):
            assert rate_limit._check_rate_limit_memory("status:1", 1, 60)
        with patch("app.core.rate_limit.time.time", return_value=1061.0):
            assert rate_limit._check_rate_limit_memory("status:1", 1, 60)

"""
Unit tests for application number allocation.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.modules.applications.errors import NumberAllocationError
from app.modules.applications.models import ApplicationNumberCounter
from app.modules.applications.numbering import (
    allocate,
    format_application_number,
    next_sequence,
    resolve_program_code,
)


@pytest.fixture
def mock_program_repo():
    with patch("app.modules.applications.numbering.ProgramRepository") as repo:
        repo.get_program_code = AsyncMock(return_value="BCA")
        yield repo


@pytest.fixture
def mock_counter_repo():
    with patch("app.modules.applications.numbering.repository") as repo:
        repo.get_counter_for_update = AsyncMock(return_value=None)
        repo.count_for_prefix_year = AsyncMock(return_value=0)
        repo.create_counter = AsyncMock(
            side_effect=lambda db, prefix, year, last_sequence: ApplicationNumberCounter(
                prefix=prefix, year=year, last_sequence=last_sequence
            )
        )
        yield repo


class TestFormatApplicationNumber:
    def test_zero_padded_sequence(self):
        assert format_application_number("BCA", 2025, 7) == "BCA20250007"

    def test_sequence_wider_than_padding(self):
        assert format_application_number("MBA", 2026, 12345) == "MBA202612345"

    def test_configured_width(self):
        with patch("app.modules.applications.numbering.settings") as mock_settings:
            mock_settings.application_number_sequence_width = 6
            assert format_application_number("GEN", 2025, 3) == "GEN2025000003"


class TestResolveProgramCode:
    @pytest.mark.asyncio
    async def test_program_code(self, mock_db, mock_program_repo):
        assert await resolve_program_code(mock_db, 7) == "BCA"

    @pytest.mark.asyncio
    async def test_fallback_code_when_missing(self, mock_db, mock_program_repo):
        mock_program_repo.get_program_code = AsyncMock(return_value=None)

        with patch("app.modules.applications.numbering.settings") as mock_settings:
            mock_settings.application_number_fallback_code = "GEN"
            assert await resolve_program_code(mock_db, 999) == "GEN"

    @pytest.mark.asyncio
    async def test_disabled_fallback_raises(self, mock_db, mock_program_repo):
        mock_program_repo.get_program_code = AsyncMock(return_value=None)

        with patch("app.modules.applications.numbering.settings") as mock_settings:
            mock_settings.application_number_fallback_code = ""
            with pytest.raises(NumberAllocationError) as exc_info:
                await resolve_program_code(mock_db, 999)

        assert exc_info.value.error_code == "NUMBER_ALLOCATION_FAILED"


class TestNextSequence:
    @pytest.mark.asyncio
    async def test_seeds_missing_counter_from_existing_count(self, mock_db, mock_counter_repo):
        mock_counter_repo.count_for_prefix_year = AsyncMock(return_value=6)

        assert await next_sequence(mock_db, "BCA", 2025) == 7
        mock_counter_repo.create_counter.assert_awaited_once_with(mock_db, "BCA", 2025, 7)

    @pytest.mark.asyncio
    async def test_increments_locked_counter(self, mock_db, mock_counter_repo):
        counter = MagicMock(spec=ApplicationNumberCounter)
        counter.last_sequence = 41
        mock_counter_repo.get_counter_for_update = AsyncMock(return_value=counter)

        assert await next_sequence(mock_db, "BCA", 2025) == 42
        assert counter.last_sequence == 42
        mock_db.flush.assert_awaited_once()
        mock_counter_repo.create_counter.assert_not_called()
        mock_counter_repo.count_for_prefix_year.assert_not_called()


class TestAllocate:
    @pytest.mark.asyncio
    async def test_first_application_of_the_year(
        self, mock_db, mock_program_repo, mock_counter_repo
    ):
        assert await allocate(mock_db, 7, 2025) == "BCA20250001"

    @pytest.mark.asyncio
    async def test_consecutive_allocations_are_distinct(
        self, mock_db, mock_program_repo, mock_counter_repo
    ):
        counter = MagicMock(spec=ApplicationNumberCounter)
        counter.last_sequence = 1
        mock_counter_repo.get_counter_for_update = AsyncMock(return_value=counter)

        first = await allocate(mock_db, 7, 2025)
        second = await allocate(mock_db, 7, 2025)

        assert first == "BCA20250002"
        assert second == "BCA20250003"

    @pytest.mark.asyncio
    async def test_counter_is_keyed_by_program_code(
        self, mock_db, mock_program_repo, mock_counter_repo
    ):
        await allocate(mock_db, 7, 2025)

        mock_counter_repo.get_counter_for_update.assert_awaited_once_with(mock_db, "BCA", 2025)

    @pytest.mark.asyncio
    async def test_programs_without_code_share_fallback_counter(
        self, mock_db, mock_program_repo, mock_counter_repo
    ):
        mock_program_repo.get_program_code = AsyncMock(return_value=None)
        counters = {}

        async def get_counter_for_update(db, prefix, year):
            return counters.get((prefix, year))

        async def create_counter(db, prefix, year, last_sequence):
            counters[(prefix, year)] = ApplicationNumberCounter(
                prefix=prefix, year=year, last_sequence=last_sequence
            )
            return counters[(prefix, year)]

        mock_counter_repo.get_counter_for_update = AsyncMock(side_effect=get_counter_for_update)
        mock_counter_repo.create_counter = AsyncMock(side_effect=create_counter)

        with patch("app.modules.applications.numbering.settings") as mock_settings:
            mock_settings.application_number_fallback_code = "GEN"
            mock_settings.application_number_sequence_width = 4
            first = await allocate(mock_db, 901, 2026)
            second = await allocate(mock_db, 902, 2026)

        assert first == "GEN20260001"
        assert second == "GEN20260002"
        assert list(counters) == [("GEN", 2026)]

    @pytest.mark.asyncio
    async def test_no_code_and_no_fallback_allocates_nothing(
        self, mock_db, mock_program_repo, mock_counter_repo
    ):
        mock_program_repo.get_program_code = AsyncMock(return_value=None)

        with patch("app.modules.applications.numbering.settings") as mock_settings:
            mock_settings.application_number_fallback_code = ""
            with pytest.raises(NumberAllocationError):
                await allocate(mock_db, 999, 2025)

        mock_counter_repo.get_counter_for_update.assert_not_called()

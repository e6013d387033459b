"""
Lifecycle tests against a real async database session.

These tests cover what session mocks cannot: expired instances after a
rollback, conditional updates losing a race to another connection, and
number allocation through real counter rows.
"""

from datetime import UTC, datetime
from unittest.mock import patch
from uuid import UUID

import pytest
from sqlalchemy import select, update
from sqlalchemy.exc import OperationalError

from app.modules.applications import audit
from app.modules.applications.models import Application, ApplicationStatus
from app.modules.applications.service import (
    ConcurrentModificationError,
    PersistenceError,
    create_application,
    freeze_application,
    get_status_history,
    submit_application,
    unfreeze_application,
    update_draft_fields,
)
from app.modules.programs.models import Program

STUDENT_ID = UUID("00000000-0000-0000-0000-0000000000aa")
OTHER_STUDENT_ID = UUID("00000000-0000-0000-0000-0000000000bb")
ADMIN_ID = UUID("00000000-0000-0000-0000-000000000001")


async def _stored_status(db, application_id) -> ApplicationStatus:
    result = await db.execute(select(Application.status).where(Application.id == application_id))
    return result.scalar_one()


async def _set_status_elsewhere(engine, application_id, status: ApplicationStatus) -> None:
    """Change the status through a separate connection, as a competing request would."""
    async with engine.begin() as conn:
        await conn.execute(
            update(Application).where(Application.id == application_id).values(status=status)
        )


class TestLostRace:
    @pytest.mark.asyncio
    async def test_submit_after_status_moved_raises_concurrent_modification(
        self, db_engine, db_session, required_content
    ):
        application = await create_application(
            db_session, STUDENT_ID, 7, "2025-26", required_content
        )
        application_id = application.id
        await _set_status_elsewhere(db_engine, application_id, ApplicationStatus.SUBMITTED)

        with pytest.raises(ConcurrentModificationError) as exc_info:
            await submit_application(db_session, application_id, STUDENT_ID)

        assert exc_info.value.status_code == 409
        history = await get_status_history(db_session, application_id)
        assert [entry.to_status for entry in history] == [ApplicationStatus.DRAFT]

    @pytest.mark.asyncio
    async def test_freeze_after_status_moved_raises_concurrent_modification(
        self, db_engine, db_session, required_content
    ):
        application = await create_application(
            db_session, STUDENT_ID, 7, "2025-26", required_content
        )
        application_id = application.id
        await submit_application(db_session, application_id, STUDENT_ID)
        await _set_status_elsewhere(db_engine, application_id, ApplicationStatus.UNDER_REVIEW)

        with pytest.raises(ConcurrentModificationError):
            await freeze_application(db_session, application_id, STUDENT_ID)

        assert await _stored_status(db_session, application_id) == ApplicationStatus.UNDER_REVIEW

    @pytest.mark.asyncio
    async def test_history_write_failure_rolls_back_status(self, db_session, required_content):
        application = await create_application(
            db_session, STUDENT_ID, 7, "2025-26", required_content
        )
        application_id = application.id
        await submit_application(db_session, application_id, STUDENT_ID)

        with patch.object(
            audit,
            "append",
            side_effect=OperationalError("INSERT INTO application_status_history", {}, None),
        ):
            with pytest.raises(PersistenceError):
                await freeze_application(db_session, application_id, STUDENT_ID)

        assert await _stored_status(db_session, application_id) == ApplicationStatus.SUBMITTED
        history = await get_status_history(db_session, application_id)
        assert history[-1].to_status == ApplicationStatus.SUBMITTED


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_application_number_survives_every_operation(
        self, db_session, required_content
    ):
        application = await create_application(
            db_session, STUDENT_ID, 7, "2025-26", required_content
        )
        application_id = application.id
        number = application.application_number

        await update_draft_fields(
            db_session,
            application_id,
            {"application_number": "HACK20250001", "caste": "OC"},
            STUDENT_ID,
        )
        await submit_application(db_session, application_id, STUDENT_ID)
        await freeze_application(db_session, application_id, STUDENT_ID)
        await update_draft_fields(db_session, application_id, {"caste": "BC"}, STUDENT_ID)
        result = await unfreeze_application(db_session, application_id, ADMIN_ID, "Corrected")

        assert result.application_number == number
        assert result.status == ApplicationStatus.SUBMITTED
        assert result.caste == "BC"
        history = await get_status_history(db_session, application_id)
        assert [entry.to_status for entry in history] == [
            ApplicationStatus.DRAFT,
            ApplicationStatus.SUBMITTED,
            ApplicationStatus.FROZEN,
            ApplicationStatus.SUBMITTED,
        ]
        assert "Corrected" in history[-1].remarks


class TestNumbering:
    @pytest.mark.asyncio
    async def test_first_application_uses_program_code(self, db_session, required_content):
        db_session.add(Program(program_name="Bachelor of Computer Applications", program_code="BCA"))
        await db_session.commit()
        program = (await db_session.execute(select(Program))).scalar_one()

        application = await create_application(
            db_session, STUDENT_ID, program.id, "2025-26", required_content
        )

        assert application.application_number == f"BCA{datetime.now(UTC).year}0001"

    @pytest.mark.asyncio
    async def test_programs_without_code_share_fallback_sequence(
        self, db_session, required_content
    ):
        year = datetime.now(UTC).year

        first = await create_application(db_session, STUDENT_ID, 901, "2025-26", required_content)
        second = await create_application(
            db_session, OTHER_STUDENT_ID, 902, "2025-26", required_content
        )

        assert first.application_number == f"GEN{year}0001"
        assert second.application_number == f"GEN{year}0002"

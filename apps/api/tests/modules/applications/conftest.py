"""
Fixtures for applications tests.
"""

from datetime import UTC, date, datetime
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import UUID

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from app.core.database import Base
from app.modules.applications.models import Application, ApplicationStatus, StatusHistoryEntry
from app.modules.documents.models import ApplicationDocument  # noqa: F401
from app.modules.programs.models import Program  # noqa: F401


def make_application(**overrides) -> MagicMock:
    """Build an Application double with every required field filled in."""
    app = MagicMock(spec=Application)
    app.id = 101
    app.application_number = "BCA20250001"
    app.user_id = UUID("00000000-0000-0000-0000-0000000000aa")
    app.program_id = 7
    app.academic_year = "2025-26"
    app.status = ApplicationStatus.DRAFT
    app.student_name = "Ravi Kumar"
    app.father_name = "Suresh Kumar"
    app.mother_name = "Lakshmi Devi"
    app.date_of_birth = date(2007, 3, 14)
    app.gender = "male"
    app.mobile_number = "9876543210"
    app.email = "ravi@example.com"
    app.reviewed_by = None
    app.reviewed_at = None
    app.approval_comments = None
    app.date_created = datetime(2025, 5, 20, 10, 0, tzinfo=UTC)
    app.submitted_at = None
    app.date_updated = datetime(2025, 5, 20, 10, 0, tzinfo=UTC)
    for key, value in overrides.items():
        setattr(app, key, value)
    return app


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.refresh = AsyncMock()
    db.flush = AsyncMock()
    db.get = AsyncMock()
    db.execute = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def student_id():
    """Return a consistent student UUID for testing."""
    return UUID("00000000-0000-0000-0000-0000000000aa")


@pytest.fixture
def admin_id():
    """Return a consistent admin UUID for testing."""
    return UUID("00000000-0000-0000-0000-000000000001")


@pytest.fixture
def draft_application():
    return make_application(status=ApplicationStatus.DRAFT)


@pytest.fixture
def submitted_application():
    return make_application(
        status=ApplicationStatus.SUBMITTED,
        submitted_at=datetime(2025, 5, 21, 9, 0, tzinfo=UTC),
    )


@pytest.fixture
def frozen_application():
    return make_application(status=ApplicationStatus.FROZEN)


@pytest.fixture
def history():
    """Entries written through the mocked repository, in order."""
    return []


@pytest.fixture
def mock_repo(history):
    """
    Patch the applications repository for the service and the audit trail.

    transition_status applies the change to the application returned by
    get_by_id, so tests can assert on the resulting status.
    """
    with (
        patch("app.modules.applications.service.repository") as repo,
        patch("app.modules.applications.audit.repository", repo),
    ):

        async def add_history_entry(db, **kwargs):
            entry = MagicMock(spec=StatusHistoryEntry)
            for key, value in kwargs.items():
                setattr(entry, key, value)
            history.append(entry)
            return entry

        async def transition_status(db, id, expected_status, new_status, **kwargs):
            application = repo.get_by_id.return_value
            if application is None or application.status != expected_status:
                return False
            application.status = new_status
            for key, value in kwargs.items():
                setattr(application, key, value)
            return True

        async def refresh(db, application):
            return application

        repo.get_by_id = AsyncMock(return_value=None)
        repo.add_history_entry = AsyncMock(side_effect=add_history_entry)
        repo.get_history = AsyncMock(side_effect=lambda db, application_id: list(history))
        repo.transition_status = AsyncMock(side_effect=transition_status)
        repo.update_fields = AsyncMock(return_value=True)
        repo.refresh = AsyncMock(side_effect=refresh)
        repo.get_active_for_user_and_year = AsyncMock(return_value=None)
        yield repo


@pytest.fixture
def make_app():
    """Factory for Application doubles with overrides."""
    return make_application


# ============================================
# Database-backed fixtures
# ============================================

REQUIRED_CONTENT = {
    "student_name": "Ravi Kumar",
    "father_name": "Suresh Kumar",
    "mother_name": "Lakshmi Devi",
    "date_of_birth": date(2007, 3, 14),
    "gender": "male",
    "mobile_number": "9876543210",
    "email": "ravi@example.com",
}


@pytest_asyncio.fixture
async def db_engine(tmp_path):
    """File-backed SQLite engine with the full schema, so two connections see each other."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'admissions.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine):
    """A real AsyncSession configured like the application's session factory."""
    session_maker = async_sessionmaker(db_engine, expire_on_commit=False)
    async with session_maker() as session:
        yield session


@pytest.fixture
def required_content():
    return dict(REQUIRED_CONTENT)

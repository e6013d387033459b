"""
Application Audit Trail

Append-only status history. append() is only called from inside lifecycle
transactions, so an entry is never committed without its status change.
"""

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.applications import repository
from app.modules.applications.models import ApplicationStatus, StatusHistoryEntry

REMARKS_CREATED = "Application created"
REMARKS_SUBMITTED = "Application submitted"
REMARKS_FROZEN = "Application frozen by student"


def unfreeze_remarks(reason: str) -> str:
    return f"Application unfrozen by admin: {reason}"


async def append(
    db: AsyncSession,
    application_id: int,
    from_status: ApplicationStatus | None,
    to_status: ApplicationStatus,
    changed_by: UUID,
    remarks: str = "",
) -> StatusHistoryEntry:
    """Record one status change in the current transaction."""
    return await repository.add_history_entry(
        db,
        application_id=application_id,
        from_status=from_status,
        to_status=to_status,
        changed_by=changed_by,
        remarks=remarks or "",
    )


async def read(db: AsyncSession, application_id: int) -> list[StatusHistoryEntry]:
    """Status history of an application, oldest first."""
    return await repository.get_history(db, application_id)

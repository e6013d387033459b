"""
Applications Repository

Database operations for applications, their status history and the
application number counters.

Functions here never commit. Lifecycle operations in the service layer run
them inside a transaction(db) block so that the application row and its
history entry are committed or rolled back together.

Status changes are conditional updates (WHERE id = :id AND status = :expected);
callers inspect the returned flag to detect a concurrent modification.
"""

from datetime import UTC, date, datetime, time
from typing import Any
from uuid import UUID

from sqlalchemy import asc, desc, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import (
    Application,
    ApplicationNumberCounter,
    ApplicationStatus,
    StatusHistoryEntry,
)

# Content fields the owner may write while the application is editable
CONTENT_FIELDS: frozenset[str] = frozenset(
    {
        "student_name",
        "father_name",
        "mother_name",
        "date_of_birth",
        "gender",
        "mobile_number",
        "parent_mobile",
        "guardian_mobile",
        "email",
        "present_door_no",
        "present_street",
        "present_village",
        "present_mandal",
        "present_district",
        "present_pincode",
        "permanent_door_no",
        "permanent_street",
        "permanent_village",
        "permanent_mandal",
        "permanent_district",
        "permanent_pincode",
        "religion",
        "caste",
        "reservation_category",
        "is_physically_handicapped",
        "aadhar_number",
        "sadaram_number",
        "identification_mark_1",
        "identification_mark_2",
        "special_reservation",
        "meeseva_caste_certificate",
        "meeseva_income_certificate",
        "ration_card_number",
    }
)

# Columns a status transition may set besides status itself
TRANSITION_COLUMNS: frozenset[str] = frozenset(
    {"submitted_at", "reviewed_by", "reviewed_at", "approval_comments"}
)


async def get_by_id(db: AsyncSession, id: int) -> Application | None:
    """Get application by ID."""
    return await db.get(Application, id)


async def get_latest_for_user(db: AsyncSession, user_id: UUID) -> Application | None:
    """Get the most recently created application of a user."""
    result = await db.execute(
        select(Application)
        .where(Application.user_id == user_id)
        .order_by(desc(Application.date_created), desc(Application.id))
        .limit(1)
    )
    return result.scalar_one_or_none()


async def get_active_for_user_and_year(
    db: AsyncSession,
    user_id: UUID,
    academic_year: str,
) -> Application | None:
    """Get a user's non-cancelled application for an academic year."""
    result = await db.execute(
        select(Application)
        .where(
            Application.user_id == user_id,
            Application.academic_year == academic_year,
            Application.status != ApplicationStatus.CANCELLED,
        )
        .limit(1)
    )
    return result.scalar_one_or_none()


async def create(
    db: AsyncSession,
    *,
    user_id: UUID,
    program_id: int,
    academic_year: str,
    application_number: str,
    fields: dict[str, Any],
) -> Application:
    """
    Add a new draft application and flush it to obtain its ID.

    Unknown keys in fields are ignored.
    """
    new_application = Application(
        application_number=application_number,
        user_id=user_id,
        program_id=program_id,
        academic_year=academic_year,
        status=ApplicationStatus.DRAFT,
        **{key: value for key, value in fields.items() if key in CONTENT_FIELDS},
    )

    db.add(new_application)
    await db.flush()
    await db.refresh(new_application)

    return new_application


async def update_fields(
    db: AsyncSession,
    id: int,
    allowed_statuses: frozenset[ApplicationStatus],
    fields: dict[str, Any],
) -> bool:
    """
    Update content fields if the application is still in one of allowed_statuses.

    Returns:
        True if the row was updated, False if its status no longer allows edits
    """
    values = {key: value for key, value in fields.items() if key in CONTENT_FIELDS}
    # Not nullable; an explicit null leaves it unchanged
    if values.get("is_physically_handicapped", False) is None:
        del values["is_physically_handicapped"]
    values["date_updated"] = datetime.now(UTC)

    result = await db.execute(
        update(Application)
        .where(Application.id == id, Application.status.in_(allowed_statuses))
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def transition_status(
    db: AsyncSession,
    id: int,
    expected_status: ApplicationStatus,
    new_status: ApplicationStatus,
    **kwargs: Any,
) -> bool:
    """
    Move an application from expected_status to new_status.

    Args:
        db: Database session
        id: Application ID
        expected_status: Status the caller read; the update only applies if it still holds
        new_status: Status to set
        **kwargs: Additional columns to set, limited to TRANSITION_COLUMNS

    Returns:
        True if exactly one row changed, False if the status moved underneath us
    """
    values: dict[str, Any] = {
        "status": new_status,
        "date_updated": datetime.now(UTC),
    }
    for key, value in kwargs.items():
        if key in TRANSITION_COLUMNS:
            values[key] = value

    result = await db.execute(
        update(Application)
        .where(Application.id == id, Application.status == expected_status)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def refresh(db: AsyncSession, application: Application) -> Application:
    """Reload an application's columns from the database."""
    await db.refresh(application)
    return application


# ============================================
# Status History
# ============================================


async def add_history_entry(
    db: AsyncSession,
    *,
    application_id: int,
    from_status: ApplicationStatus | None,
    to_status: ApplicationStatus,
    changed_by: UUID,
    remarks: str,
) -> StatusHistoryEntry:
    """Add a status history entry to the current transaction."""
    entry = StatusHistoryEntry(
        application_id=application_id,
        from_status=from_status,
        to_status=to_status,
        changed_by=changed_by,
        remarks=remarks,
    )
    db.add(entry)
    await db.flush()
    return entry


async def get_history(db: AsyncSession, application_id: int) -> list[StatusHistoryEntry]:
    """Get history entries of an application, oldest first."""
    result = await db.execute(
        select(StatusHistoryEntry)
        .where(StatusHistoryEntry.application_id == application_id)
        .order_by(asc(StatusHistoryEntry.date_created), asc(StatusHistoryEntry.id))
    )
    return list(result.scalars().all())


# ============================================
# Application Number Counters
# ============================================


async def get_counter_for_update(
    db: AsyncSession,
    prefix: str,
    year: int,
) -> ApplicationNumberCounter | None:
    """Get the counter row for (prefix, year) and lock it until the transaction ends."""
    result = await db.execute(
        select(ApplicationNumberCounter)
        .where(
            ApplicationNumberCounter.prefix == prefix,
            ApplicationNumberCounter.year == year,
        )
        .with_for_update()
    )
    return result.scalar_one_or_none()


async def create_counter(
    db: AsyncSession,
    prefix: str,
    year: int,
    last_sequence: int,
) -> ApplicationNumberCounter:
    """
    Insert a counter row.

    Raises IntegrityError on flush if another transaction seeded it first.
    """
    counter = ApplicationNumberCounter(
        prefix=prefix,
        year=year,
        last_sequence=last_sequence,
    )
    db.add(counter)
    await db.flush()
    return counter


async def count_for_prefix_year(db: AsyncSession, prefix: str, year: int) -> int:
    """Count existing applications whose number starts with {prefix}{year}."""
    result = await db.execute(
        select(func.count())
        .select_from(Application)
        .where(Application.application_number.startswith(f"{prefix}{year}", autoescape=True))
    )
    return result.scalar() or 0


# ============================================
# Admin Repository Methods
# ============================================


async def get_applications_for_admin(
    db: AsyncSession,
    *,
    program_ids: list[int] | None = None,
    status: ApplicationStatus | None = None,
    academic_year: str | None = None,
    search: str | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    sort_order: str = "desc",
    skip: int = 0,
    limit: int = 20,
) -> tuple[list[Application], int]:
    """
    Get applications with filters and pagination for the admin list.

    Args:
        db: Database session
        program_ids: Restrict to these programs (None means all programs;
                     an empty list matches nothing)
        status: Filter by application status
        academic_year: Filter by admission cycle
        search: Case-insensitive match on application number, student name or email
        date_from: Created on or after this date
        date_to: Created on or before this date
        sort_order: Direction on date_created (asc, desc). Default: desc (newest first)
        skip: Number of records to skip
        limit: Maximum records to return

    Returns:
        Tuple of (list of applications, total count matching filters)
    """
    query = select(Application)

    if program_ids is not None:
        query = query.where(Application.program_id.in_(program_ids))

    if status:
        query = query.where(Application.status == status)

    if academic_year:
        query = query.where(Application.academic_year == academic_year)

    if search:
        search_pattern = f"%{search}%"
        query = query.where(
            or_(
                Application.application_number.ilike(search_pattern),
                Application.student_name.ilike(search_pattern),
                Application.email.ilike(search_pattern),
            )
        )

    if date_from:
        query = query.where(
            Application.date_created >= datetime.combine(date_from, time.min, tzinfo=UTC)
        )

    if date_to:
        query = query.where(
            Application.date_created <= datetime.combine(date_to, time.max, tzinfo=UTC)
        )

    count_query = select(func.count()).select_from(query.subquery())
    total_result = await db.execute(count_query)
    total = total_result.scalar() or 0

    if sort_order.lower() == "asc":
        query = query.order_by(asc(Application.date_created), asc(Application.id))
    else:
        query = query.order_by(desc(Application.date_created), desc(Application.id))

    query = query.offset(skip).limit(limit)

    result = await db.execute(query)
    applications = list(result.scalars().all())

    return applications, total

"""
Applications Service Layer

Business logic for the admission application lifecycle.
Orchestrates the repository, numbering, completeness gate and audit trail.

This module implements:
1. Creation:
   - One active application per user per academic year
   - Application number allocated in the creating transaction
   - Creation history entry (none -> draft)

2. Student Actions:
   - Edit content while draft or frozen
   - Submit (draft -> submitted) behind the completeness gate
   - Freeze a submitted application for correction

3. Admin Actions:
   - Status updates (under_review, approved, rejected) with review metadata
   - Unfreeze (frozen -> submitted) with a reason
   - Filtered listing, scoped to owned programs for program admins

Guarantees:
- Every status change and its history entry commit together or not at all
- Status changes are conditional on the status that was read; a lost race
  raises ConcurrentModificationError instead of overwriting
- Transitions outside the transition table raise and change nothing
"""

import logging
from collections.abc import Awaitable, Callable
from datetime import UTC, date, datetime
from typing import Any
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import Actor, Role
from app.core.config import settings
from app.core.database import transaction
from app.modules.applications import audit, completeness, numbering, repository
from app.modules.applications.completeness import CompletenessReport
from app.modules.applications.errors import (
    ApplicationAccessDeniedError,
    ApplicationNotFoundError,
    ApplicationServiceError,
    ConcurrentModificationError,
    DuplicateApplicationError,
    IllegalStateError,
    IllegalTransitionError,
    IncompleteApplicationError,
    NumberAllocationError,
    PersistenceError,
)
from app.modules.applications.models import Application, ApplicationStatus, StatusHistoryEntry
from app.modules.applications.transitions import (
    EDITABLE_STATUSES,
    InvalidStatusTransitionError,
    TransitionTrigger,
    validate_transition,
)
from app.modules.programs.repository import ProgramRepository

logger = logging.getLogger(__name__)

__all__ = [
    "ApplicationAccessDeniedError",
    "ApplicationNotFoundError",
    "ApplicationServiceError",
    "ConcurrentModificationError",
    "DuplicateApplicationError",
    "IllegalStateError",
    "IllegalTransitionError",
    "IncompleteApplicationError",
    "NumberAllocationError",
    "PersistenceError",
    "admin_get_application_detail",
    "admin_get_applications_list",
    "create_application",
    "ensure_reviewer_access",
    "freeze_application",
    "get_application",
    "get_application_for_user",
    "get_completeness",
    "get_my_application",
    "get_reviewer_program_scope",
    "get_status_history",
    "set_status",
    "submit_application",
    "unfreeze_application",
    "update_draft_fields",
]

async def get_application(db: AsyncSession, application_id: int) -> Application:
    """
    Get an application by ID.

    Raises:
        ApplicationNotFoundError: If the application doesn't exist
    """
    application = await repository.get_by_id(db, application_id)

    if not application:
        raise ApplicationNotFoundError(application_id)

    return application


async def get_application_for_user(
    db: AsyncSession,
    application_id: int,
    user_id: UUID,
) -> Application:
    """
    Get an application owned by a user.

    Someone else's application is reported as not found.
    """
    application = await get_application(db, application_id)

    if application.user_id != user_id:
        logger.warning(f"User {user_id} requested application {application_id} they do not own")
        raise ApplicationNotFoundError(application_id)

    return application


async def get_my_application(db: AsyncSession, user_id: UUID) -> Application:
    """Get the user's most recent application."""
    application = await repository.get_latest_for_user(db, user_id)

    if not application:
        raise ApplicationNotFoundError()

    return application


async def _check_duplicate(db: AsyncSession, user_id: UUID, academic_year: str) -> None:
    """
    Check the user has no other active application for the academic year.

    Raises:
        DuplicateApplicationError: If a non-cancelled application exists
    """
    existing = await repository.get_active_for_user_and_year(db, user_id, academic_year)

    if existing:
        logger.warning(
            f"Duplicate application attempt: user={user_id}, year={academic_year}, "
            f"existing={existing.id}"
        )
        raise DuplicateApplicationError(
            f"You already have application {existing.application_number} "
            f"for academic year {academic_year}."
        )


async def create_application(
    db: AsyncSession,
    user_id: UUID,
    program_id: int,
    academic_year: str,
    fields: dict[str, Any] | None = None,
) -> Application:
    """
    Create a draft application.

    Allocates the application number, inserts the application and its
    creation history entry in one transaction. A collision on the number
    counter (two first applications of a program and year at once) rolls the
    whole attempt back and it is retried.

    Args:
        db: Database session
        user_id: Owning account
        program_id: Program being applied to
        academic_year: Admission cycle tag
        fields: Initial content fields (optional)

    Returns:
        The new Application in draft status

    Raises:
        DuplicateApplicationError: If the user already applied this academic year
        NumberAllocationError: If no number could be allocated
        PersistenceError: If the write failed
    """
    logger.info(f"Creating application: user={user_id}, program={program_id}, year={academic_year}")

    await _check_duplicate(db, user_id, academic_year)

    year = datetime.now(UTC).year
    max_attempts = max(1, settings.application_number_max_attempts)

    for attempt in range(1, max_attempts + 1):
        try:
            async with transaction(db):
                application_number = await numbering.allocate(db, program_id, year)
                application = await repository.create(
                    db,
                    user_id=user_id,
                    program_id=program_id,
                    academic_year=academic_year,
                    application_number=application_number,
                    fields=fields or {},
                )
                await audit.append(
                    db,
                    application.id,
                    None,
                    ApplicationStatus.DRAFT,
                    user_id,
                    audit.REMARKS_CREATED,
                )
        except IntegrityError as e:
            logger.warning(
                f"Application number collision for program {program_id}/{year} "
                f"(attempt {attempt}/{max_attempts}): {e.orig}"
            )
            continue
        except SQLAlchemyError as e:
            logger.exception(f"Failed to create application for user {user_id}")
            raise PersistenceError("Failed to create application") from e

        logger.info(f"Created application {application.id} ({application.application_number})")
        return application

    logger.error(
        f"Giving up allocating an application number for program {program_id}/{year} "
        f"after {max_attempts} attempts"
    )
    raise NumberAllocationError(
        "Could not allocate an application number. Please try again."
    )


async def update_draft_fields(
    db: AsyncSession,
    application_id: int,
    fields: dict[str, Any],
    actor_id: UUID,
) -> Application:
    """
    Update content fields of a draft or frozen application.

    Raises:
        ApplicationNotFoundError: If the application doesn't exist
        IllegalStateError: If the application is not draft or frozen
        ConcurrentModificationError: If the status changed while updating
        PersistenceError: If the write failed
    """
    application = await get_application(db, application_id)

    if application.status not in EDITABLE_STATUSES:
        logger.warning(
            f"Update rejected for application {application_id}: status={application.status.value}"
        )
        raise IllegalStateError(
            f"Application cannot be edited while {application.status.value}",
            current_status=application.status,
        )

    try:
        async with transaction(db):
            updated = await repository.update_fields(
                db, application_id, EDITABLE_STATUSES, fields
            )
            if not updated:
                raise ConcurrentModificationError(application_id)
    except ConcurrentModificationError:
        logger.warning(f"Application {application_id} changed status during update")
        raise
    except SQLAlchemyError as e:
        logger.exception(f"Failed to update application {application_id}")
        raise PersistenceError() from e

    logger.info(f"Application {application_id} fields updated by {actor_id}")
    return await repository.refresh(db, application)


async def _apply_transition(
    db: AsyncSession,
    application: Application,
    trigger: TransitionTrigger,
    target_status: ApplicationStatus,
    actor_id: UUID,
    remarks: str,
    guard: Callable[[], Awaitable[None]] | None = None,
    **columns: Any,
) -> Application:
    """
    Validate and perform one status transition with its history entry.

    The guard, if given, runs inside the transaction before the update and
    may raise to abort it.

    A rollback expires the application instance, so its id and status are
    read before the transaction starts.
    """
    application_id = application.id
    current_status = application.status

    try:
        validate_transition(trigger, current_status, target_status)
    except InvalidStatusTransitionError as e:
        logger.warning(f"Application {application_id}: {e}")
        raise IllegalTransitionError(current_status, target_status) from e

    try:
        async with transaction(db):
            if guard is not None:
                await guard()

            changed = await repository.transition_status(
                db, application_id, current_status, target_status, **columns
            )
            if not changed:
                raise ConcurrentModificationError(application_id)

            await audit.append(
                db, application_id, current_status, target_status, actor_id, remarks
            )
    except ConcurrentModificationError:
        logger.warning(
            f"Concurrent modification of application {application_id} "
            f"({current_status.value} -> {target_status.value})"
        )
        raise
    except SQLAlchemyError as e:
        logger.exception(
            f"Failed to move application {application_id} "
            f"from {current_status.value} to {target_status.value}"
        )
        raise PersistenceError() from e

    logger.info(
        f"Application {application_id}: {current_status.value} -> {target_status.value} "
        f"by {actor_id}"
    )
    return await repository.refresh(db, application)


async def get_completeness(db: AsyncSession, application_id: int) -> CompletenessReport:
    """Completeness breakdown of an application."""
    application = await get_application(db, application_id)
    return await completeness.check_completeness(db, application)


async def submit_application(
    db: AsyncSession,
    application_id: int,
    actor_id: UUID,
) -> Application:
    """
    Submit a draft application for review.

    The completeness gate is evaluated inside the submitting transaction.

    Raises:
        ApplicationNotFoundError: If the application doesn't exist
        IllegalTransitionError: If the application is not a draft
        IncompleteApplicationError: If required fields or certificates are missing
        ConcurrentModificationError: If another request changed the status first
        PersistenceError: If the write failed
    """
    application = await get_application(db, application_id)

    async def require_complete() -> None:
        report = await completeness.check_completeness(db, application)
        if not report.is_complete:
            logger.warning(
                f"Submit rejected for application {application_id}: "
                f"missing_fields={report.missing_fields}, "
                f"missing_certificates={[c.certificate_type_id for c in report.missing_certificates]}"
            )
            raise IncompleteApplicationError(report)

    return await _apply_transition(
        db,
        application,
        TransitionTrigger.SUBMIT,
        ApplicationStatus.SUBMITTED,
        actor_id,
        audit.REMARKS_SUBMITTED,
        guard=require_complete,
        submitted_at=datetime.now(UTC),
    )


async def freeze_application(
    db: AsyncSession,
    application_id: int,
    actor_id: UUID,
) -> Application:
    """
    Freeze a submitted application so its owner can correct it.

    Raises:
        IllegalStateError: If the application is not submitted
    """
    application = await get_application(db, application_id)

    return await _apply_transition(
        db,
        application,
        TransitionTrigger.FREEZE,
        ApplicationStatus.FROZEN,
        actor_id,
        audit.REMARKS_FROZEN,
    )


async def unfreeze_application(
    db: AsyncSession,
    application_id: int,
    actor_id: UUID,
    reason: str,
) -> Application:
    """
    Return a frozen application to submitted.

    Admin role is enforced by the caller.

    Raises:
        IllegalStateError: If the application is not frozen
    """
    application = await get_application(db, application_id)

    return await _apply_transition(
        db,
        application,
        TransitionTrigger.UNFREEZE,
        ApplicationStatus.SUBMITTED,
        actor_id,
        audit.unfreeze_remarks(reason),
    )


async def set_status(
    db: AsyncSession,
    application_id: int,
    target_status: ApplicationStatus,
    actor_id: UUID,
    comments: str = "",
) -> Application:
    """
    Admin status update (under_review, approved, rejected).

    Records the reviewer, review time and comments on the application; the
    comments overwrite any previous ones and also become the history remarks.

    Raises:
        IllegalTransitionError: If the transition is not allowed
    """
    application = await get_application(db, application_id)

    return await _apply_transition(
        db,
        application,
        TransitionTrigger.ADMIN_UPDATE,
        target_status,
        actor_id,
        comments,
        reviewed_by=actor_id,
        reviewed_at=datetime.now(UTC),
        approval_comments=comments,
    )


async def get_status_history(db: AsyncSession, application_id: int) -> list[StatusHistoryEntry]:
    """
    Status history of an application, oldest first.

    Raises:
        ApplicationNotFoundError: If the application doesn't exist
    """
    await get_application(db, application_id)
    return await audit.read(db, application_id)


# ============================================
# Admin Service Methods
# ============================================


async def get_reviewer_program_scope(db: AsyncSession, actor: Actor) -> list[int] | None:
    """
    Programs a reviewer may see.

    Returns:
        None for full admins (all programs), otherwise the owned program IDs
    """
    if actor.role == Role.ADMIN:
        return None
    return await ProgramRepository.get_program_ids_for_admin(db, actor.id)


async def ensure_reviewer_access(
    db: AsyncSession,
    actor: Actor,
    application: Application,
) -> None:
    """
    Check a reviewer may act on an application.

    Raises:
        ApplicationAccessDeniedError: If a program admin does not own the program
    """
    if actor.role == Role.ADMIN:
        return

    if not await ProgramRepository.is_program_admin(db, actor.id, application.program_id):
        logger.warning(
            f"Program admin {actor.id} denied access to application {application.id} "
            f"(program {application.program_id})"
        )
        raise ApplicationAccessDeniedError(application.id)


async def admin_get_applications_list(
    db: AsyncSession,
    actor: Actor,
    *,
    program_id: int | None = None,
    status: ApplicationStatus | None = None,
    academic_year: str | None = None,
    search: str | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    sort_order: str = "desc",
    skip: int = 0,
    limit: int | None = None,
) -> dict:
    """
    Get paginated list of applications for reviewers.

    Program admins only ever see their own programs; asking for another
    program yields an empty page.

    Returns:
        Dict with applications list, total count, skip, and limit
    """
    logger.info(
        f"Reviewer {actor.id} listing applications: program={program_id}, status={status}, "
        f"year={academic_year}, search={search}, skip={skip}, limit={limit}"
    )

    if limit is None:
        limit = settings.records_per_page
    limit = min(max(1, limit), 100)
    skip = max(0, skip)

    program_ids = await get_reviewer_program_scope(db, actor)
    if program_id is not None:
        if program_ids is None or program_id in program_ids:
            program_ids = [program_id]
        else:
            program_ids = []

    applications, total = await repository.get_applications_for_admin(
        db,
        program_ids=program_ids,
        status=status,
        academic_year=academic_year,
        search=search,
        date_from=date_from,
        date_to=date_to,
        sort_order=sort_order,
        skip=skip,
        limit=limit,
    )

    logger.info(f"Found {total} applications, returning {len(applications)}")

    return {
        "applications": applications,
        "total": total,
        "skip": skip,
        "limit": limit,
    }


async def admin_get_application_detail(
    db: AsyncSession,
    actor: Actor,
    application_id: int,
) -> Application:
    """
    Get an application for review.

    Raises:
        ApplicationNotFoundError: If the application doesn't exist
        ApplicationAccessDeniedError: If the reviewer does not own its program
    """
    application = await get_application(db, application_id)
    await ensure_reviewer_access(db, actor, application)
    return application

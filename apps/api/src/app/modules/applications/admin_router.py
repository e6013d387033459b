"""
Applications Admin Router

API endpoints for reviewers to work through submitted applications.
All endpoints require an admin or program_admin token; program admins
only see and act on applications of programs they own.

Endpoints:
- GET /admin/applications - List applications with filters and pagination
- GET /admin/applications/{id} - Get application details
- POST /admin/applications/{id}/status - Move to under_review, approved or rejected
- POST /admin/applications/{id}/unfreeze - Return a frozen application to submitted
- GET /admin/applications/{id}/history - Status timeline

Security:
- Role checked by get_current_reviewer, program ownership per application
- Rate limiting on action endpoints to prevent abuse
- Audit trail written for every status change
"""

import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import Actor, get_current_reviewer
from app.core.database import get_db
from app.core.rate_limit import RateLimitExceeded, check_rate_limit
from app.modules.applications import service
from app.modules.applications.models import ApplicationStatus
from app.modules.applications.router import handle_service_error, history_to_response
from app.modules.applications.schemas import (
    ActionResponse,
    ApplicationListItem,
    ApplicationListResponse,
    ApplicationResponse,
    StatusHistoryResponse,
    StatusUpdateRequest,
    UnfreezeRequest,
)
from app.modules.applications.service import ApplicationServiceError

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================
# Rate Limiting Configuration
# ============================================

RATE_LIMIT_STATUS_UPDATE = (30, 60)  # 30 status updates per minute
RATE_LIMIT_UNFREEZE = (10, 60)  # 10 unfreezes per minute


async def _check_admin_rate_limit(
    admin: Actor,
    action: str,
    limit: int,
    window_seconds: int,
) -> None:
    """
    Check rate limit for an admin action.

    Raises:
        RateLimitExceeded: If rate limit is exceeded
    """
    key = f"admin:{action}:{admin.id}"
    allowed = await check_rate_limit(key, limit, window_seconds)

    if not allowed:
        logger.warning(
            f"Rate limit exceeded for admin {admin.id} on action '{action}': "
            f"{limit}/{window_seconds}s"
        )
        raise RateLimitExceeded(limit, window_seconds)


def _internal_error() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={
            "error": "INTERNAL_ERROR",
            "message": "An unexpected error occurred.",
        },
    )


# ============================================
# List & Detail Endpoints
# ============================================


@router.get(
    "",
    response_model=ApplicationListResponse,
    summary="List Applications",
    description="""
Get paginated list of applications with optional filters.

**Filters:**
- `program_id`: Filter by program (program admins: only their own programs)
- `status`: Filter by application status
- `academic_year`: Filter by admission cycle, e.g. "2025-26"
- `search`: Search in application number, student name and email
- `date_from` / `date_to`: Creation date range (inclusive)

**Pagination:**
- `skip`: Number of records to skip. Default: 0
- `limit`: Maximum records to return (1-100). Default: configured page size

**Access:** admin, program_admin
""",
    responses={
        401: {"description": "Unauthorized - invalid or missing token"},
        403: {"description": "Forbidden - not a reviewer"},
    },
)
async def list_applications(
    program_id: int | None = Query(None, ge=1, description="Filter by program"),
    status: ApplicationStatus | None = Query(None, description="Filter by application status"),
    academic_year: str | None = Query(None, max_length=20, description="Filter by admission cycle"),
    search: str | None = Query(
        None,
        min_length=1,
        max_length=100,
        description="Search term for number/name/email",
    ),
    date_from: date | None = Query(None, description="Created on or after"),
    date_to: date | None = Query(None, description="Created on or before"),
    sort_order: str = Query("desc", description="Sort direction on creation date (asc/desc)"),
    skip: int = Query(0, ge=0, description="Records to skip"),
    limit: int | None = Query(None, ge=1, le=100, description="Maximum records to return"),
    db: AsyncSession = Depends(get_db),
    admin: Actor = Depends(get_current_reviewer),
) -> ApplicationListResponse:
    try:
        result = await service.admin_get_applications_list(
            db,
            admin,
            program_id=program_id,
            status=status,
            academic_year=academic_year,
            search=search,
            date_from=date_from,
            date_to=date_to,
            sort_order=sort_order,
            skip=skip,
            limit=limit,
        )

        return ApplicationListResponse(
            applications=[
                ApplicationListItem.model_validate(app) for app in result["applications"]
            ],
            total=result["total"],
            skip=result["skip"],
            limit=result["limit"],
        )

    except ApplicationServiceError as e:
        handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error listing applications: {e}")
        raise _internal_error() from e


@router.get(
    "/{application_id}",
    response_model=ApplicationResponse,
    summary="Get Application Details",
    responses={
        403: {"description": "Forbidden - application belongs to another program"},
        404: {"description": "Application not found"},
    },
)
async def get_application_detail(
    application_id: int,
    db: AsyncSession = Depends(get_db),
    admin: Actor = Depends(get_current_reviewer),
) -> ApplicationResponse:
    try:
        application = await service.admin_get_application_detail(db, admin, application_id)
        return ApplicationResponse.model_validate(application)

    except ApplicationServiceError as e:
        handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error getting application {application_id}: {e}")
        raise _internal_error() from e


@router.get(
    "/{application_id}/history",
    response_model=StatusHistoryResponse,
    summary="Application Timeline",
)
async def get_application_history(
    application_id: int,
    db: AsyncSession = Depends(get_db),
    admin: Actor = Depends(get_current_reviewer),
) -> StatusHistoryResponse:
    try:
        await service.admin_get_application_detail(db, admin, application_id)
        entries = await service.get_status_history(db, application_id)
        return history_to_response(application_id, entries)

    except ApplicationServiceError as e:
        handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error reading history of {application_id}: {e}")
        raise _internal_error() from e


# ============================================
# Action Endpoints
# ============================================


@router.post(
    "/{application_id}/status",
    response_model=ActionResponse,
    summary="Update Application Status",
    description="""
Move an application to `under_review`, `approved` or `rejected`.

**Allowed transitions:**
- submitted -> under_review, approved, rejected
- under_review -> under_review, approved, rejected
- frozen -> under_review

The comments replace any previous review comments and are recorded in
the status history.

**Access:** admin, program_admin (own programs)
""",
    responses={
        403: {"description": "Forbidden - application belongs to another program"},
        404: {"description": "Application not found"},
        409: {"description": "Transition not allowed, or concurrent modification"},
        429: {"description": "Rate limit exceeded"},
    },
)
async def update_application_status(
    application_id: int,
    data: StatusUpdateRequest,
    db: AsyncSession = Depends(get_db),
    admin: Actor = Depends(get_current_reviewer),
) -> ActionResponse:
    await _check_admin_rate_limit(admin, "status_update", *RATE_LIMIT_STATUS_UPDATE)

    try:
        await service.admin_get_application_detail(db, admin, application_id)
        application = await service.set_status(
            db, application_id, data.status, admin.id, data.comments
        )

        logger.info(
            f"Admin {admin.id} set application {application_id} to {application.status.value}"
        )

        return ActionResponse(
            id=application.id,
            application_number=application.application_number,
            status=application.status,
            message=f"Application status updated to {application.status.value}.",
        )

    except ApplicationServiceError as e:
        handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error updating status of {application_id}: {e}")
        raise _internal_error() from e


@router.post(
    "/{application_id}/unfreeze",
    response_model=ActionResponse,
    summary="Unfreeze Application",
    description="""
Return a frozen application to `submitted`. The reason is recorded in
the status history.

**Access:** admin, program_admin (own programs)
""",
    responses={
        404: {"description": "Application not found"},
        409: {"description": "Application is not frozen"},
        429: {"description": "Rate limit exceeded"},
    },
)
async def unfreeze_application(
    application_id: int,
    data: UnfreezeRequest,
    db: AsyncSession = Depends(get_db),
    admin: Actor = Depends(get_current_reviewer),
) -> ActionResponse:
    await _check_admin_rate_limit(admin, "unfreeze", *RATE_LIMIT_UNFREEZE)

    try:
        await service.admin_get_application_detail(db, admin, application_id)
        application = await service.unfreeze_application(
            db, application_id, admin.id, data.reason
        )

        logger.info(f"Admin {admin.id} unfroze application {application_id}")

        return ActionResponse(
            id=application.id,
            application_number=application.application_number,
            status=application.status,
            message="Application unfrozen and returned to submitted.",
        )

    except ApplicationServiceError as e:
        handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error unfreezing application {application_id}: {e}")
        raise _internal_error() from e

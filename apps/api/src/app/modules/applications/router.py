"""
Applications Router

API endpoints for students working on their own admission application.
All endpoints require authentication; an application owned by someone
else is reported as not found.

Endpoints:
- POST /applications - Start a new draft application
- GET /applications/me - Get the caller's latest application
- PATCH /applications/{id} - Update fields while draft or frozen
- GET /applications/{id}/completeness - What is still missing before submit
- POST /applications/{id}/submit - Submit for review
- POST /applications/{id}/freeze - Freeze a submitted application for correction
- GET /applications/{id}/history - Status timeline
"""

import logging
from typing import NoReturn

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import Actor, get_current_actor
from app.core.config import settings
from app.core.database import get_db
from app.modules.applications import service
from app.modules.applications.completeness import CompletenessReport
from app.modules.applications.schemas import (
    ActionResponse,
    ApplicationCreate,
    ApplicationResponse,
    ApplicationUpdate,
    CompletenessResponse,
    MissingCertificateItem,
    StatusHistoryItem,
    StatusHistoryResponse,
)
from app.modules.applications.service import (
    ApplicationServiceError,
    IncompleteApplicationError,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================
# Helper Functions
# ============================================


def _internal_error() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={
            "error": "INTERNAL_ERROR",
            "message": "An unexpected error occurred.",
        },
    )


def handle_service_error(e: ApplicationServiceError) -> NoReturn:
    """Convert service errors to HTTPExceptions."""
    detail: dict = {
        "error": e.error_code,
        "message": e.message,
    }
    if isinstance(e, IncompleteApplicationError):
        detail["missing_fields"] = e.report.missing_fields
        detail["missing_certificates"] = [
            {
                "certificate_type_id": c.certificate_type_id,
                "certificate_name": c.certificate_name,
            }
            for c in e.report.missing_certificates
        ]
    raise HTTPException(status_code=e.status_code, detail=detail) from e


def completeness_to_response(
    application_id: int, report: CompletenessReport
) -> CompletenessResponse:
    return CompletenessResponse(
        application_id=application_id,
        is_complete=report.is_complete,
        missing_fields=report.missing_fields,
        missing_certificates=[
            MissingCertificateItem(
                certificate_type_id=c.certificate_type_id,
                certificate_name=c.certificate_name,
            )
            for c in report.missing_certificates
        ],
    )


def history_to_response(application_id: int, entries) -> StatusHistoryResponse:
    return StatusHistoryResponse(
        application_id=application_id,
        history=[StatusHistoryItem.model_validate(entry) for entry in entries],
    )


# ============================================
# Endpoints
# ============================================


@router.post(
    "",
    response_model=ApplicationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Start Application",
    description="""
Start a new draft application for a program.

An application number is assigned immediately and never changes.
Only one active application per student per academic year is allowed.
""",
    responses={
        201: {"description": "Draft application created"},
        409: {"description": "Duplicate application for this academic year"},
        503: {"description": "Application number could not be allocated"},
    },
)
async def create_application(
    data: ApplicationCreate,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
) -> ApplicationResponse:
    academic_year = data.academic_year or settings.current_academic_year
    fields = data.model_dump(
        include={"student_name", "mobile_number", "email"},
        exclude_none=True,
    )

    try:
        application = await service.create_application(
            db, actor.id, data.program_id, academic_year, fields
        )
        return ApplicationResponse.model_validate(application)

    except ApplicationServiceError as e:
        logger.warning(f"Create application rejected for {actor.id}: {e.error_code}")
        handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error creating application: {e}")
        raise _internal_error() from e


@router.get(
    "/me",
    response_model=ApplicationResponse,
    summary="Get My Application",
)
async def get_my_application(
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
) -> ApplicationResponse:
    """Get the caller's most recent application."""
    try:
        application = await service.get_my_application(db, actor.id)
        return ApplicationResponse.model_validate(application)

    except ApplicationServiceError as e:
        handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error getting application for {actor.id}: {e}")
        raise _internal_error() from e


@router.patch(
    "/{application_id}",
    response_model=ApplicationResponse,
    summary="Update Application",
    description="""
Update application fields. Only fields present in the request body are written.

Allowed while the application is `draft` or `frozen`.
""",
    responses={
        404: {"description": "Application not found"},
        409: {"description": "Application is not editable in its current status"},
    },
)
async def update_application(
    application_id: int,
    data: ApplicationUpdate,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
) -> ApplicationResponse:
    try:
        await service.get_application_for_user(db, application_id, actor.id)
        application = await service.update_draft_fields(
            db, application_id, data.model_dump(exclude_unset=True), actor.id
        )
        return ApplicationResponse.model_validate(application)

    except ApplicationServiceError as e:
        handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error updating application {application_id}: {e}")
        raise _internal_error() from e


@router.get(
    "/{application_id}/completeness",
    response_model=CompletenessResponse,
    summary="Check Completeness",
)
async def get_completeness(
    application_id: int,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
) -> CompletenessResponse:
    """Report missing required fields and certificates."""
    try:
        await service.get_application_for_user(db, application_id, actor.id)
        report = await service.get_completeness(db, application_id)
        return completeness_to_response(application_id, report)

    except ApplicationServiceError as e:
        handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error checking completeness of {application_id}: {e}")
        raise _internal_error() from e


@router.post(
    "/{application_id}/submit",
    response_model=ActionResponse,
    summary="Submit Application",
    description="""
Submit a draft application for review.

All required personal fields must be filled in and every required
certificate for the program must be uploaded.
""",
    responses={
        404: {"description": "Application not found"},
        409: {"description": "Application is not a draft, or was modified concurrently"},
        422: {
            "description": "Application incomplete",
            "content": {
                "application/json": {
                    "example": {
                        "detail": {
                            "error": "INCOMPLETE_APPLICATION",
                            "message": "Please complete all required fields and upload all required documents",
                            "missing_fields": ["father_name"],
                            "missing_certificates": [
                                {"certificate_type_id": 3, "certificate_name": "SSC Memo"}
                            ],
                        }
                    }
                }
            },
        },
    },
)
async def submit_application(
    application_id: int,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
) -> ActionResponse:
    try:
        await service.get_application_for_user(db, application_id, actor.id)
        application = await service.submit_application(db, application_id, actor.id)

        return ActionResponse(
            id=application.id,
            application_number=application.application_number,
            status=application.status,
            message="Application submitted successfully.",
        )

    except ApplicationServiceError as e:
        handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error submitting application {application_id}: {e}")
        raise _internal_error() from e


@router.post(
    "/{application_id}/freeze",
    response_model=ActionResponse,
    summary="Freeze Application",
    description="""
Freeze a submitted application so it can be corrected.

A frozen application returns to review only when an admin unfreezes it.
""",
)
async def freeze_application(
    application_id: int,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
) -> ActionResponse:
    try:
        await service.get_application_for_user(db, application_id, actor.id)
        application = await service.freeze_application(db, application_id, actor.id)

        return ActionResponse(
            id=application.id,
            application_number=application.application_number,
            status=application.status,
            message="Application frozen. You can now correct your details.",
        )

    except ApplicationServiceError as e:
        handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error freezing application {application_id}: {e}")
        raise _internal_error() from e


@router.get(
    "/{application_id}/history",
    response_model=StatusHistoryResponse,
    summary="Application Timeline",
)
async def get_history(
    application_id: int,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
) -> StatusHistoryResponse:
    try:
        await service.get_application_for_user(db, application_id, actor.id)
        entries = await service.get_status_history(db, application_id)
        return history_to_response(application_id, entries)

    except ApplicationServiceError as e:
        handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error reading history of {application_id}: {e}")
        raise _internal_error() from e

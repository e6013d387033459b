"""
Application Service Errors

Every lifecycle failure is an ApplicationServiceError carrying a stable
error_code and the HTTP status the routers answer with.
"""

from typing import TYPE_CHECKING

from app.modules.applications.models import ApplicationStatus

if TYPE_CHECKING:
    from app.modules.applications.completeness import CompletenessReport


class ApplicationServiceError(Exception):
    """Base exception for application service errors."""

    def __init__(self, message: str, error_code: str, status_code: int = 400):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)


class ApplicationNotFoundError(ApplicationServiceError):
    """Raised when an application is not found."""

    def __init__(self, application_id: int | None = None):
        message = (
            f"Application {application_id} not found"
            if application_id is not None
            else "Application not found"
        )
        super().__init__(
            message=message,
            error_code="APPLICATION_NOT_FOUND",
            status_code=404,
        )


class IllegalStateError(ApplicationServiceError):
    """Raised when the application's current status does not allow the operation."""

    def __init__(
        self,
        message: str,
        current_status: ApplicationStatus | None = None,
        error_code: str = "ILLEGAL_STATE",
    ):
        self.current_status = current_status
        super().__init__(
            message=message,
            error_code=error_code,
            status_code=409,
        )


class IllegalTransitionError(IllegalStateError):
    """Raised when a requested status transition is not in the transition table."""

    def __init__(self, current_status: ApplicationStatus, target_status: ApplicationStatus):
        self.target_status = target_status
        super().__init__(
            message=(
                f"Cannot change application status from {current_status.value} "
                f"to {target_status.value}"
            ),
            current_status=current_status,
            error_code="ILLEGAL_TRANSITION",
        )


class IncompleteApplicationError(ApplicationServiceError):
    """Raised when a submit is attempted on an incomplete application."""

    def __init__(self, report: "CompletenessReport"):
        self.report = report
        super().__init__(
            message="Please complete all required fields and upload all required documents",
            error_code="INCOMPLETE_APPLICATION",
            status_code=422,
        )


class ConcurrentModificationError(ApplicationServiceError):
    """Raised when the application changed status between read and write."""

    def __init__(self, application_id: int):
        super().__init__(
            message=(
                f"Application {application_id} was modified by another request. "
                "Please reload and try again."
            ),
            error_code="CONCURRENT_MODIFICATION",
            status_code=409,
        )


class NumberAllocationError(ApplicationServiceError):
    """Raised when no application number could be allocated."""

    def __init__(self, message: str = "Could not allocate an application number"):
        super().__init__(
            message=message,
            error_code="NUMBER_ALLOCATION_FAILED",
            status_code=503,
        )


class PersistenceError(ApplicationServiceError):
    """Raised when a database write fails. Nothing was persisted."""

    def __init__(self, message: str = "Failed to save application changes"):
        super().__init__(
            message=message,
            error_code="PERSISTENCE_ERROR",
            status_code=500,
        )


class DuplicateApplicationError(ApplicationServiceError):
    """Raised when the user already has an application for the academic year."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            error_code="DUPLICATE_APPLICATION",
            status_code=409,
        )


class ApplicationAccessDeniedError(ApplicationServiceError):
    """Raised when a program admin acts on an application outside their programs."""

    def __init__(self, application_id: int):
        super().__init__(
            message=f"You do not have access to application {application_id}",
            error_code="ACCESS_DENIED",
            status_code=403,
        )

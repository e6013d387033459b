"""
Applications Schemas

Pydantic schemas for request validation and response serialization.
"""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.modules.applications.models import ApplicationStatus


class ApplicationFields(BaseModel):
    """Editable content of an application. Every field is optional while drafting."""

    # Personal information
    student_name: str | None = Field(None, max_length=200)
    father_name: str | None = Field(None, max_length=200)
    mother_name: str | None = Field(None, max_length=200)
    date_of_birth: date | None = None
    gender: str | None = Field(None, max_length=20)

    # Contact
    mobile_number: str | None = Field(None, max_length=20)
    parent_mobile: str | None = Field(None, max_length=20)
    guardian_mobile: str | None = Field(None, max_length=20)
    email: EmailStr | None = None

    # Present address
    present_door_no: str | None = Field(None, max_length=50)
    present_street: str | None = Field(None, max_length=200)
    present_village: str | None = Field(None, max_length=100)
    present_mandal: str | None = Field(None, max_length=100)
    present_district: str | None = Field(None, max_length=100)
    present_pincode: str | None = Field(None, max_length=10)

    # Permanent address
    permanent_door_no: str | None = Field(None, max_length=50)
    permanent_street: str | None = Field(None, max_length=200)
    permanent_village: str | None = Field(None, max_length=100)
    permanent_mandal: str | None = Field(None, max_length=100)
    permanent_district: str | None = Field(None, max_length=100)
    permanent_pincode: str | None = Field(None, max_length=10)

    # Demographics and identity documents
    religion: str | None = Field(None, max_length=50)
    caste: str | None = Field(None, max_length=100)
    reservation_category: str | None = Field(None, max_length=20)
    is_physically_handicapped: bool | None = None
    aadhar_number: str | None = Field(None, max_length=20)
    sadaram_number: str | None = Field(None, max_length=50)
    identification_mark_1: str | None = Field(None, max_length=255)
    identification_mark_2: str | None = Field(None, max_length=255)
    special_reservation: str | None = Field(None, max_length=100)
    meeseva_caste_certificate: str | None = Field(None, max_length=50)
    meeseva_income_certificate: str | None = Field(None, max_length=50)
    ration_card_number: str | None = Field(None, max_length=50)


class ApplicationCreate(BaseModel):
    """Request body for POST /applications."""

    program_id: int = Field(..., ge=1, description="Program being applied to")
    academic_year: str | None = Field(
        None,
        max_length=20,
        description="Admission cycle, defaults to the current academic year",
        json_schema_extra={"example": "2025-26"},
    )
    student_name: str | None = Field(None, max_length=200)
    mobile_number: str | None = Field(None, max_length=20)
    email: EmailStr | None = None


class ApplicationUpdate(ApplicationFields):
    """Request body for PATCH /applications/{id}. Only sent fields are written."""


class ApplicationResponse(ApplicationFields):
    """Full application as seen by its owner or a reviewer."""

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(..., description="Application ID")
    application_number: str = Field(..., description="Unique application number")
    user_id: UUID = Field(..., description="Owning account")
    program_id: int = Field(..., description="Program applied to")
    academic_year: str = Field(..., description="Admission cycle")
    status: ApplicationStatus = Field(..., description="Current application status")

    # Plain str on output; stored values are not re-validated
    email: str | None = None

    reviewed_by: UUID | None = Field(None, description="Admin who last reviewed")
    reviewed_at: datetime | None = Field(None, description="When the last review happened")
    approval_comments: str | None = Field(None, description="Most recent review comment")

    date_created: datetime = Field(..., description="When the application was created")
    submitted_at: datetime | None = Field(None, description="When the application was submitted")
    date_updated: datetime = Field(..., description="Last content or status change")


class StatusHistoryItem(BaseModel):
    """One entry of the status timeline."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    from_status: ApplicationStatus | None = Field(
        None, description="Previous status (null for the creation entry)"
    )
    to_status: ApplicationStatus
    changed_by: UUID
    remarks: str
    date_created: datetime


class StatusHistoryResponse(BaseModel):
    application_id: int
    history: list[StatusHistoryItem]


class MissingCertificateItem(BaseModel):
    certificate_type_id: int
    certificate_name: str


class CompletenessResponse(BaseModel):
    """Completeness breakdown for an application."""

    application_id: int
    is_complete: bool
    missing_fields: list[str] = Field(default_factory=list)
    missing_certificates: list[MissingCertificateItem] = Field(default_factory=list)


# ============================================
# Admin Schemas
# ============================================


class ApplicationListItem(BaseModel):
    """Application summary for the admin list view."""

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(..., description="Application ID")
    application_number: str = Field(..., description="Unique application number")
    program_id: int = Field(..., description="Program applied to")
    academic_year: str = Field(..., description="Admission cycle")
    student_name: str | None = Field(None, description="Student's full name")
    email: str | None = Field(None, description="Student's email")
    mobile_number: str | None = Field(None, description="Student's mobile number")
    status: ApplicationStatus = Field(..., description="Current application status")
    date_created: datetime = Field(..., description="When the application was created")
    submitted_at: datetime | None = Field(None, description="When the application was submitted")
    reviewed_at: datetime | None = Field(None, description="When the last review happened")


class ApplicationListResponse(BaseModel):
    """Paginated list of applications for admins."""

    applications: list[ApplicationListItem] = Field(
        ..., description="List of application summaries"
    )
    total: int = Field(..., ge=0, description="Total number of applications matching filters")
    skip: int = Field(..., ge=0, description="Number of records skipped")
    limit: int = Field(..., ge=1, le=100, description="Maximum records per page")


class StatusUpdateRequest(BaseModel):
    """Request body for an admin status update."""

    status: ApplicationStatus = Field(
        ..., description="Target status (under_review, approved or rejected)"
    )
    comments: str = Field(
        "",
        max_length=2000,
        description="Review comments, stored on the application and in the history",
        json_schema_extra={"example": "All certificates verified."},
    )


class UnfreezeRequest(BaseModel):
    """Request body for unfreezing an application."""

    reason: str = Field(
        ...,
        min_length=1,
        max_length=1000,
        description="Why the application is being returned to review",
        json_schema_extra={"example": "Student asked to correct the date of birth."},
    )


class ActionResponse(BaseModel):
    """Response after a lifecycle action."""

    id: int = Field(..., description="Application ID")
    application_number: str = Field(..., description="Unique application number")
    status: ApplicationStatus = Field(..., description="Status after the action")
    message: str = Field(..., description="Success message")

"""
Applications Models

Database models for student admission applications, their status history
(audit trail) and the application number counters.
"""

import enum
import uuid
from datetime import date, datetime

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base


class ApplicationStatus(str, enum.Enum):
    """Status of an admission application."""

    DRAFT = "draft"
    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    REJECTED = "rejected"
    FROZEN = "frozen"
    CANCELLED = "cancelled"


# Shared by the status column and both history status columns
application_status_enum = Enum(
    ApplicationStatus,
    name="application_status",
    values_callable=lambda statuses: [s.value for s in statuses],
)


class Application(Base):
    """
    One student's application to one program for one admission cycle.

    Content fields are free-form; the lifecycle only checks presence of the
    required ones before submission.
    """

    __tablename__ = "applications"

    # Identity
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    application_number: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)

    # Ownership
    user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    # Programs belong to the program directory; no FK so a missing program
    # can still receive a fallback application number
    program_id: Mapped[int] = mapped_column(Integer, nullable=False)
    academic_year: Mapped[str] = mapped_column(String(20), nullable=False)

    status: Mapped[ApplicationStatus] = mapped_column(
        application_status_enum,
        nullable=False,
        default=ApplicationStatus.DRAFT,
    )

    # Personal information
    student_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    father_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    mother_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    date_of_birth: Mapped[date | None] = mapped_column(Date, nullable=True)
    gender: Mapped[str | None] = mapped_column(String(20), nullable=True)

    # Contact
    mobile_number: Mapped[str | None] = mapped_column(String(20), nullable=True)
    parent_mobile: Mapped[str | None] = mapped_column(String(20), nullable=True)
    guardian_mobile: Mapped[str | None] = mapped_column(String(20), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Present address
    present_door_no: Mapped[str | None] = mapped_column(String(50), nullable=True)
    present_street: Mapped[str | None] = mapped_column(String(200), nullable=True)
    present_village: Mapped[str | None] = mapped_column(String(100), nullable=True)
    present_mandal: Mapped[str | None] = mapped_column(String(100), nullable=True)
    present_district: Mapped[str | None] = mapped_column(String(100), nullable=True)
    present_pincode: Mapped[str | None] = mapped_column(String(10), nullable=True)

    # Permanent address
    permanent_door_no: Mapped[str | None] = mapped_column(String(50), nullable=True)
    permanent_street: Mapped[str | None] = mapped_column(String(200), nullable=True)
    permanent_village: Mapped[str | None] = mapped_column(String(100), nullable=True)
    permanent_mandal: Mapped[str | None] = mapped_column(String(100), nullable=True)
    permanent_district: Mapped[str | None] = mapped_column(String(100), nullable=True)
    permanent_pincode: Mapped[str | None] = mapped_column(String(10), nullable=True)

    # Demographics and identity documents
    religion: Mapped[str | None] = mapped_column(String(50), nullable=True)
    caste: Mapped[str | None] = mapped_column(String(100), nullable=True)
    reservation_category: Mapped[str | None] = mapped_column(String(20), nullable=True)
    is_physically_handicapped: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    aadhar_number: Mapped[str | None] = mapped_column(String(20), nullable=True)
    sadaram_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    identification_mark_1: Mapped[str | None] = mapped_column(String(255), nullable=True)
    identification_mark_2: Mapped[str | None] = mapped_column(String(255), nullable=True)
    special_reservation: Mapped[str | None] = mapped_column(String(100), nullable=True)
    meeseva_caste_certificate: Mapped[str | None] = mapped_column(String(50), nullable=True)
    meeseva_income_certificate: Mapped[str | None] = mapped_column(String(50), nullable=True)
    ration_card_number: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # Review metadata
    reviewed_by: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    # Only the most recent review comment; the full narrative is in the history
    approval_comments: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Timestamps
    date_created: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    date_updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    status_history: Mapped[list["StatusHistoryEntry"]] = relationship(
        "StatusHistoryEntry",
        back_populates="application",
        order_by="(StatusHistoryEntry.date_created, StatusHistoryEntry.id)",
    )

    __table_args__ = (
        Index("ix_applications_status", "status"),
        Index("ix_applications_user_id", "user_id"),
        Index("ix_applications_program_year", "program_id", "academic_year"),
    )


class StatusHistoryEntry(Base):
    """
    Immutable audit record of one status transition.

    from_status is NULL only for the creation entry.
    """

    __tablename__ = "application_status_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    application_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("applications.id", ondelete="RESTRICT"), nullable=False
    )
    from_status: Mapped[ApplicationStatus | None] = mapped_column(
        application_status_enum, nullable=True
    )
    to_status: Mapped[ApplicationStatus] = mapped_column(application_status_enum, nullable=False)
    changed_by: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    remarks: Mapped[str] = mapped_column(Text, nullable=False, default="")
    date_created: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    application: Mapped["Application"] = relationship(
        "Application", back_populates="status_history"
    )

    __table_args__ = (
        Index("ix_application_status_history_application", "application_id", "date_created"),
    )


class ApplicationNumberCounter(Base):
    """
    Last issued application sequence per (number prefix, year).

    The prefix is the program code, or the fallback code shared by every
    program without one. Rows are locked with SELECT ... FOR UPDATE while a
    number is allocated.
    """

    __tablename__ = "application_number_counters"

    prefix: Mapped[str] = mapped_column(String(20), primary_key=True)
    year: Mapped[int] = mapped_column(Integer, primary_key=True)
    last_sequence: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

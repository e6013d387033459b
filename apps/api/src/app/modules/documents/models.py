"""
Document Store Models

Uploaded certificates recorded against an application. Upload handling and
verification screens write these rows; the completeness gate only checks
whether one exists.
"""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class ApplicationDocument(Base):
    """One uploaded file for one (application, certificate type) pair."""

    __tablename__ = "application_documents"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    application_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("applications.id", ondelete="CASCADE"), nullable=False
    )
    certificate_type_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("certificate_types.id"), nullable=False
    )

    # Reference into the file upload store
    file_upload_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    original_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Verification (irrelevant to completeness)
    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    verified_by: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    verified_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    verification_remarks: Mapped[str | None] = mapped_column(Text, nullable=True)

    date_created: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        Index(
            "ix_application_documents_application_certificate",
            "application_id",
            "certificate_type_id",
        ),
    )

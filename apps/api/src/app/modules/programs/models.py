"""
Program Directory Models

Programs, certificate types and the per-program certificate requirements.
These tables are maintained by the program administration screens; the
application lifecycle only reads them.
"""

import uuid

from sqlalchemy import Boolean, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base


class Program(Base):
    """An academic program students apply to (e.g. BCA)."""

    __tablename__ = "programs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    program_name: Mapped[str] = mapped_column(String(200), nullable=False)
    # Short code used as the application number prefix
    program_code: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    department: Mapped[str | None] = mapped_column(String(200), nullable=True)
    program_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    total_seats: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # Program admin who reviews applications for this program
    program_admin_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), nullable=True, index=True
    )

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    certificate_requirements: Mapped[list["ProgramCertificateRequirement"]] = relationship(
        "ProgramCertificateRequirement", back_populates="program", cascade="all, delete-orphan"
    )


class CertificateType(Base):
    """A kind of certificate students can upload (e.g. SSC marks memo)."""

    __tablename__ = "certificate_types"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class ProgramCertificateRequirement(Base):
    """Links a program to a certificate type, flagged required or optional."""

    __tablename__ = "program_certificate_requirements"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    program_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("programs.id", ondelete="CASCADE"), nullable=False
    )
    certificate_type_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("certificate_types.id", ondelete="CASCADE"), nullable=False
    )
    is_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    program: Mapped["Program"] = relationship("Program", back_populates="certificate_requirements")
    certificate_type: Mapped["CertificateType"] = relationship("CertificateType")

    __table_args__ = (
        UniqueConstraint(
            "program_id", "certificate_type_id", name="uq_program_certificate_requirement"
        ),
    )

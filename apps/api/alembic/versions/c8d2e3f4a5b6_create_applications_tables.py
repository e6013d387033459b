"""create applications tables

Revision ID: c8d2e3f4a5b6
Revises: b7c1d2e3f4a5
Create Date: 2025-05-12 09:30:00.000000

This migration:
1. Creates the application_status enum type
2. Creates the applications table (unique application_number)
3. Creates application_status_history (append-only audit trail)
4. Creates application_number_counters (per number prefix and year, locked FOR UPDATE)
5. Creates application_documents (uploaded certificates)

Applications reference programs by id without a foreign key so that an
application for a program missing from the directory still gets a
fallback-coded number.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "c8d2e3f4a5b6"
down_revision: str | Sequence[str] | None = "b7c1d2e3f4a5"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

APPLICATION_STATUSES = (
    "draft",
    "submitted",
    "under_review",
    "approved",
    "rejected",
    "frozen",
    "cancelled",
)


def upgrade() -> None:
    """Create applications, status history, number counters and documents."""
    application_status_enum = postgresql.ENUM(
        *APPLICATION_STATUSES,
        name="application_status",
        create_type=False,  # Created below with checkfirst
    )
    application_status_enum.create(op.get_bind(), checkfirst=True)

    # Content columns are nullable; presence is only checked at submit time
    text_columns = [
        ("student_name", 200),
        ("father_name", 200),
        ("mother_name", 200),
        ("gender", 20),
        ("mobile_number", 20),
        ("parent_mobile", 20),
        ("guardian_mobile", 20),
        ("email", 255),
        ("present_door_no", 50),
        ("present_street", 200),
        ("present_village", 100),
        ("present_mandal", 100),
        ("present_district", 100),
        ("present_pincode", 10),
        ("permanent_door_no", 50),
        ("permanent_street", 200),
        ("permanent_village", 100),
        ("permanent_mandal", 100),
        ("permanent_district", 100),
        ("permanent_pincode", 10),
        ("religion", 50),
        ("caste", 100),
        ("reservation_category", 20),
        ("aadhar_number", 20),
        ("sadaram_number", 50),
        ("identification_mark_1", 255),
        ("identification_mark_2", 255),
        ("special_reservation", 100),
        ("meeseva_caste_certificate", 50),
        ("meeseva_income_certificate", 50),
        ("ration_card_number", 50),
    ]

    op.create_table(
        "applications",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("application_number", sa.String(length=32), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("program_id", sa.Integer(), nullable=False),
        sa.Column("academic_year", sa.String(length=20), nullable=False),
        sa.Column(
            "status",
            application_status_enum,
            nullable=False,
            server_default="draft",
        ),
        sa.Column("date_of_birth", sa.Date(), nullable=True),
        sa.Column(
            "is_physically_handicapped",
            sa.Boolean(),
            nullable=False,
            server_default="false",
        ),
        *[
            sa.Column(name, sa.String(length=length), nullable=True)
            for name, length in text_columns
        ],
        # Review metadata
        sa.Column("reviewed_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("approval_comments", sa.Text(), nullable=True),
        # Timestamps
        sa.Column(
            "date_created",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "date_updated",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("application_number", name="uq_applications_application_number"),
    )
    op.create_index("ix_applications_status", "applications", ["status"])
    op.create_index("ix_applications_user_id", "applications", ["user_id"])
    op.create_index(
        "ix_applications_program_year", "applications", ["program_id", "academic_year"]
    )

    op.create_table(
        "application_status_history",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("application_id", sa.Integer(), nullable=False),
        # NULL only for the creation entry
        sa.Column("from_status", application_status_enum, nullable=True),
        sa.Column("to_status", application_status_enum, nullable=False),
        sa.Column("changed_by", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("remarks", sa.Text(), nullable=False, server_default=""),
        sa.Column(
            "date_created",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["application_id"], ["applications.id"], ondelete="RESTRICT"),
    )
    op.create_index(
        "ix_application_status_history_application",
        "application_status_history",
        ["application_id", "date_created"],
    )

    op.create_table(
        "application_number_counters",
        sa.Column("prefix", sa.String(20), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("last_sequence", sa.Integer(), nullable=False, server_default="0"),
        sa.PrimaryKeyConstraint("prefix", "year"),
    )

    op.create_table(
        "application_documents",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("application_id", sa.Integer(), nullable=False),
        sa.Column("certificate_type_id", sa.Integer(), nullable=False),
        sa.Column("file_upload_id", sa.String(length=64), nullable=True),
        sa.Column("original_name", sa.String(length=255), nullable=True),
        sa.Column("is_verified", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("verified_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("verified_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("verification_remarks", sa.Text(), nullable=True),
        sa.Column(
            "date_created",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["application_id"], ["applications.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["certificate_type_id"], ["certificate_types.id"]),
    )
    op.create_index(
        "ix_application_documents_application_certificate",
        "application_documents",
        ["application_id", "certificate_type_id"],
    )


def downgrade() -> None:
    """Drop applications tables and the status enum."""
    op.drop_index(
        "ix_application_documents_application_certificate",
        table_name="application_documents",
    )
    op.drop_table("application_documents")
    op.drop_table("application_number_counters")
    op.drop_index(
        "ix_application_status_history_application",
        table_name="application_status_history",
    )
    op.drop_table("application_status_history")
    op.drop_index("ix_applications_program_year", table_name="applications")
    op.drop_index("ix_applications_user_id", table_name="applications")
    op.drop_index("ix_applications_status", table_name="applications")
    op.drop_table("applications")

    sa.Enum(name="application_status").drop(op.get_bind(), checkfirst=True)

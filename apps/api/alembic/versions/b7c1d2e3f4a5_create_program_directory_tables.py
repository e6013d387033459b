"""create program directory tables

Revision ID: b7c1d2e3f4a5
Revises:
Create Date: 2025-05-12 09:00:00.000000

This migration:
1. Creates the programs table (program codes are the application number prefix)
2. Creates the certificate_types lookup table
3. Creates program_certificate_requirements linking the two
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "b7c1d2e3f4a5"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create programs, certificate types and requirements."""
    op.create_table(
        "programs",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("program_name", sa.String(length=200), nullable=False),
        sa.Column("program_code", sa.String(length=20), nullable=False),
        sa.Column("department", sa.String(length=200), nullable=True),
        sa.Column("program_type", sa.String(length=50), nullable=True),
        sa.Column("total_seats", sa.Integer(), nullable=True),
        # Program admin who reviews this program's applications
        sa.Column("program_admin_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("display_order", sa.Integer(), nullable=False, server_default="0"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("program_code", name="uq_programs_program_code"),
    )
    op.create_index("ix_programs_program_admin_id", "programs", ["program_admin_id"])

    op.create_table(
        "certificate_types",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("display_order", sa.Integer(), nullable=False, server_default="0"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "program_certificate_requirements",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("program_id", sa.Integer(), nullable=False),
        sa.Column("certificate_type_id", sa.Integer(), nullable=False),
        sa.Column("is_required", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("display_order", sa.Integer(), nullable=False, server_default="0"),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["program_id"], ["programs.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["certificate_type_id"], ["certificate_types.id"], ondelete="CASCADE"
        ),
        sa.UniqueConstraint(
            "program_id",
            "certificate_type_id",
            name="uq_program_certificate_requirement",
        ),
    )


def downgrade() -> None:
    """Drop program directory tables."""
    op.drop_table("program_certificate_requirements")
    op.drop_table("certificate_types")
    op.drop_index("ix_programs_program_admin_id", table_name="programs")
    op.drop_table("programs")

"""
Program Directory Repository

Read-only queries over programs and their certificate requirements.
"""

import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.programs.models import CertificateType, Program, ProgramCertificateRequirement

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CertificateRequirement:
    """A certificate type attached to a program."""

    certificate_type_id: int
    certificate_name: str
    is_required: bool


class ProgramRepository:
    """Repository for program directory lookups."""

    @staticmethod
    async def get_by_id(db: AsyncSession, program_id: int) -> Program | None:
        """Get a program by ID."""
        return await db.get(Program, program_id)

    @staticmethod
    async def get_program_code(db: AsyncSession, program_id: int) -> str | None:
        """
        Get the short code of a program.

        Returns:
            The program code, or None if the program does not exist or has no code
        """
        result = await db.execute(select(Program.program_code).where(Program.id == program_id))
        code = result.scalar_one_or_none()
        return code or None

    @staticmethod
    async def get_certificate_requirements(
        db: AsyncSession,
        program_id: int,
    ) -> list[CertificateRequirement]:
        """
        Get the certificate requirements of a program, in display order.

        Args:
            db: Database session
            program_id: Program ID

        Returns:
            Requirements, both required and optional
        """
        result = await db.execute(
            select(
                ProgramCertificateRequirement.certificate_type_id,
                CertificateType.name,
                ProgramCertificateRequirement.is_required,
            )
            .join(
                CertificateType,
                ProgramCertificateRequirement.certificate_type_id == CertificateType.id,
            )
            .where(ProgramCertificateRequirement.program_id == program_id)
            .order_by(ProgramCertificateRequirement.display_order, CertificateType.display_order)
        )
        return [
            CertificateRequirement(
                certificate_type_id=row[0],
                certificate_name=row[1],
                is_required=bool(row[2]),
            )
            for row in result.all()
        ]

    @staticmethod
    async def get_program_ids_for_admin(db: AsyncSession, admin_id: UUID) -> list[int]:
        """Get the IDs of active programs owned by a program admin."""
        result = await db.execute(
            select(Program.id).where(
                Program.program_admin_id == admin_id,
                Program.is_active.is_(True),
            )
        )
        return list(result.scalars().all())

    @staticmethod
    async def is_program_admin(db: AsyncSession, user_id: UUID, program_id: int) -> bool:
        """Check whether a user is the admin of a program."""
        result = await db.execute(
            select(Program.id).where(
                Program.id == program_id,
                Program.program_admin_id == user_id,
            )
        )
        return result.scalar_one_or_none() is not None

"""
Document Store Repository

Read-only presence checks over uploaded application documents.
"""

from sqlalchemy import exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.documents.models import ApplicationDocument


class DocumentRepository:
    """Repository for uploaded document lookups."""

    @staticmethod
    async def has_document(
        db: AsyncSession,
        application_id: int,
        certificate_type_id: int,
    ) -> bool:
        """Check whether any document is uploaded for an (application, certificate type) pair."""
        result = await db.execute(
            select(
                exists().where(
                    ApplicationDocument.application_id == application_id,
                    ApplicationDocument.certificate_type_id == certificate_type_id,
                )
            )
        )
        return bool(result.scalar())

    @staticmethod
    async def get_uploaded_certificate_type_ids(
        db: AsyncSession,
        application_id: int,
    ) -> set[int]:
        """
        Get the certificate types that have at least one upload for an application.

        Verification state is ignored.
        """
        result = await db.execute(
            select(ApplicationDocument.certificate_type_id)
            .where(ApplicationDocument.application_id == application_id)
            .distinct()
        )
        return set(result.scalars().all())

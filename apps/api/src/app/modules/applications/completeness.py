"""
Completeness Gate

Decides whether an application may be submitted: all required personal
fields are filled in, and every certificate its program marks as required
has at least one uploaded document. Verification of documents does not
matter here.
"""

from dataclasses import dataclass, field

from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.applications import repository
from app.modules.applications.models import Application
from app.modules.documents.repository import DocumentRepository
from app.modules.programs.repository import ProgramRepository

REQUIRED_FIELDS: tuple[str, ...] = (
    "student_name",
    "father_name",
    "mother_name",
    "date_of_birth",
    "gender",
    "mobile_number",
    "email",
)


@dataclass(frozen=True)
class MissingCertificate:
    certificate_type_id: int
    certificate_name: str


@dataclass
class CompletenessReport:
    """Why an application is or is not ready to submit."""

    missing_fields: list[str] = field(default_factory=list)
    missing_certificates: list[MissingCertificate] = field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        return not self.missing_fields and not self.missing_certificates


def _is_blank(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def missing_required_fields(application: Application) -> list[str]:
    """Required fields that are empty or whitespace-only."""
    return [name for name in REQUIRED_FIELDS if _is_blank(getattr(application, name, None))]


async def check_completeness(db: AsyncSession, application: Application) -> CompletenessReport:
    """
    Build the completeness breakdown for an application.

    Never raises for an incomplete application; the report says what is missing.
    """
    report = CompletenessReport(missing_fields=missing_required_fields(application))

    requirements = await ProgramRepository.get_certificate_requirements(
        db, application.program_id
    )
    required = [r for r in requirements if r.is_required]
    if not required:
        return report

    uploaded = await DocumentRepository.get_uploaded_certificate_type_ids(db, application.id)
    report.missing_certificates = [
        MissingCertificate(
            certificate_type_id=r.certificate_type_id,
            certificate_name=r.certificate_name,
        )
        for r in required
        if r.certificate_type_id not in uploaded
    ]
    return report


async def is_submittable(db: AsyncSession, application_id: int) -> bool:
    """Whether an application exists and passes the completeness gate."""
    application = await repository.get_by_id(db, application_id)
    if application is None:
        return False

    report = await check_completeness(db, application)
    return report.is_complete

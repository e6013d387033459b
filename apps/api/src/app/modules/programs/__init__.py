"""
Programs module - Program directory (codes, certificate requirements, ownership).
"""

from app.modules.programs.models import CertificateType, Program, ProgramCertificateRequirement
from app.modules.programs.repository import CertificateRequirement, ProgramRepository

__all__ = [
    "CertificateRequirement",
    "CertificateType",
    "Program",
    "ProgramCertificateRequirement",
    "ProgramRepository",
]

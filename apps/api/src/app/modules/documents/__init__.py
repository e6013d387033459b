"""
Documents module - Uploaded certificates per application.
"""

from app.modules.documents.models import ApplicationDocument
from app.modules.documents.repository import DocumentRepository

__all__ = ["ApplicationDocument", "DocumentRepository"]

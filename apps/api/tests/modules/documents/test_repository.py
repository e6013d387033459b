"""
Unit tests for the document store repository.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from app.modules.documents.repository import DocumentRepository


@pytest.fixture
def mock_db():
    db = AsyncMock()
    db.execute = AsyncMock()
    return db


class TestHasDocument:
    @pytest.mark.asyncio
    async def test_uploaded(self, mock_db):
        result = MagicMock()
        result.scalar.return_value = True
        mock_db.execute.return_value = result

        assert await DocumentRepository.has_document(mock_db, 101, 1) is True

    @pytest.mark.asyncio
    async def test_not_uploaded(self, mock_db):
        result = MagicMock()
        result.scalar.return_value = False
        mock_db.execute.return_value = result

        assert await DocumentRepository.has_document(mock_db, 101, 2) is False


class TestGetUploadedCertificateTypeIds:
    @pytest.mark.asyncio
    async def test_returns_distinct_set(self, mock_db):
        result = MagicMock()
        result.scalars.return_value.all.return_value = [1, 2]
        mock_db.execute.return_value = result

        assert await DocumentRepository.get_uploaded_certificate_type_ids(mock_db, 101) == {1, 2}

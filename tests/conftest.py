"""Pytest configuration and fixtures for arc-data tests."""

import tempfile
from collections.abc import AsyncIterator
from pathlib import Path

import pytest
import pytest_asyncio

from arc_data.config.settings import Settings
from arc_data.db.database import Database
from arc_data.db.repositories.document_repository import DocumentRepository
from arc_data.services.data_export_service import DataExportService
from arc_data.services.data_import_service import DataImportService
from arc_data.services.export_factory import ExportFactory
from arc_data.services.import_normalizer import ImportNormalizer
from arc_data.services.import_service import ImportService


@pytest.fixture
def test_settings() -> Settings:
    """Test configuration settings."""
    return Settings(
        database_path=":memory:",
        app_version="test-version",
        export_batch_size=1000,
        transform_chunk_size=200,
        log_level="INFO",
    )


@pytest_asyncio.fixture
async def memory_db() -> AsyncIterator[Database]:
    """In-memory database for fast tests."""
    db = Database(database_path=":memory:")
    await db.connect()
    await db.migrate()

    yield db

    await db.close()


@pytest_asyncio.fixture
async def repository(memory_db: Database) -> DocumentRepository:
    """Document repository."""
    return DocumentRepository(db=memory_db)


@pytest.fixture
def normalizer() -> ImportNormalizer:
    """Import normalizer."""
    return ImportNormalizer()


@pytest_asyncio.fixture
async def import_service(repository: DocumentRepository) -> ImportService:
    """Import store service."""
    return ImportService(repository=repository)


@pytest_asyncio.fixture
async def export_factory(repository: DocumentRepository) -> ExportFactory:
    """Export factory with a small page size so pagination is exercised."""
    return ExportFactory(repository=repository, batch_size=7)


@pytest_asyncio.fixture
async def data_import_service(repository: DocumentRepository) -> DataImportService:
    """Data import facade."""
    return DataImportService(
        repository=repository,
        allowed_paths=[Path(tempfile.gettempdir())],
    )


@pytest_asyncio.fixture
async def data_export_service(repository: DocumentRepository) -> DataExportService:
    """Data export facade."""
    return DataExportService(
        repository=repository,
        batch_size=7,
        allowed_paths=[Path(tempfile.gettempdir())],
    )

"""High level export operations."""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import aiofiles

from arc_data.db.repositories.document_repository import DocumentRepository
from arc_data.models.export import (
    EXPORT_COLLECTIONS,
    ExportFileResult,
    ExportObject,
    ExportOptions,
)
from arc_data.services.export_factory import ExportFactory
from arc_data.services.export_processor import ExportProcessor
from arc_data.utils.path_utils import validate_safe_path

logger = logging.getLogger(__name__)


class DataExportService:
    """Service for creating export objects and export files."""

    def __init__(
        self,
        repository: DocumentRepository,
        batch_size: int = 1000,
        allowed_paths: list[Path] | None = None,
    ) -> None:
        """Initialize data export service.

        Args:
            repository: Document repository
            batch_size: Number of documents read from the store in a single page
            allowed_paths: Additional allowed base directories for path validation (for testing)
        """
        self.factory = ExportFactory(repository, batch_size=batch_size)
        self.allowed_paths = [p.resolve() for p in (allowed_paths or [])]

    async def create_export(
        self,
        request_map: dict[str, Any],
        options: ExportOptions | None = None,
        electron_cookies: bool = False,
    ) -> ExportObject:
        """Read the selected collections and build the export object.

        Args:
            request_map: Export collection name to `True`, a list of items or a falsy value
            options: Export configuration
            electron_cookies: Cookies keep their native shape

        Returns:
            Export object
        """
        options = options or ExportOptions()
        data = await self.factory.get_export_data(request_map)
        processor = ExportProcessor(electron_cookies=electron_cookies)
        return processor.create_export_object(data, options)

    async def export_to_file(
        self,
        request_map: dict[str, Any],
        output_path: str,
        options: ExportOptions | None = None,
    ) -> ExportFileResult:
        """Export the selected collections to a JSON file.

        Args:
            request_map: Export collection name to `True`, a list of items or a falsy value
            output_path: Output file path
            options: Export configuration

        Returns:
            Written file info with entity counts per collection

        Raises:
            ValueError: If the path is not allowed or the map is invalid
        """
        path = validate_safe_path(output_path, self.allowed_paths)
        path.parent.mkdir(parents=True, exist_ok=True)
        export = await self.create_export(request_map, options)
        async with aiofiles.open(path, "w", encoding="utf-8") as f:
            await f.write(json.dumps(export.to_dict(), indent=2))

        counts = {}
        for name in EXPORT_COLLECTIONS:
            items = export.collection(name)
            if items is not None:
                counts[name] = len(items)
        logger.info("Exported %s to %s", counts, path)
        return ExportFileResult(
            file_path=str(path),
            file_size_bytes=path.stat().st_size,
            created_at=datetime.now(timezone.utc).isoformat(),
            counts=counts,
        )

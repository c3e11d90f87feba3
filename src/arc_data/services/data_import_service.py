"""High level import operations."""

import json
import logging
from pathlib import Path
from typing import Any

import aiofiles

from arc_data.db.repositories.document_repository import DocumentRepository
from arc_data.exceptions import ImportParseError, ValidationError
from arc_data.models.export import KIND_IMPORT, ExportObject, ImportAction, ImportPreview, ImportReport
from arc_data.services.import_normalizer import ImportNormalizer
from arc_data.services.import_service import ImportService
from arc_data.utils.import_utils import is_single_request
from arc_data.utils.path_utils import validate_safe_path

logger = logging.getLogger(__name__)


class DataImportService:
    """Service for reading, normalizing and storing import data."""

    def __init__(
        self,
        repository: DocumentRepository,
        chunk_size: int = 200,
        batch_size: int = 1000,
        allowed_paths: list[Path] | None = None,
    ) -> None:
        """Initialize data import service.

        Args:
            repository: Document repository
            chunk_size: Records transformed before yielding to the event loop
            batch_size: Page size for store reads
            allowed_paths: Additional allowed base directories for path validation (for testing)
        """
        self.repository = repository
        self.batch_size = batch_size
        self.normalizer = ImportNormalizer(chunk_size=chunk_size)
        self.allowed_paths = [p.resolve() for p in (allowed_paths or [])]

    async def normalize_import_data(self, data: Any) -> ExportObject:
        """Transform import data of any supported format into the export object.

        Raises:
            ImportParseError: If the data is not valid JSON
            ImportFormatError: If the data matches no known format
        """
        if data is None or data == "" or data == b"":
            raise ValidationError("The data property was not set")
        return await self.normalizer.normalize(data)

    async def process_file(self, file_path: str, drive_id: str | None = None) -> ImportPreview:
        """Read an import file and decide what to do with its data.

        Args:
            file_path: Path to the file
            drive_id: Cloud drive ID of the file, set on a single request

        Returns:
            Normalized data with the action it calls for

        Raises:
            ValueError: If the path is not allowed
            FileNotFoundError: If the file does not exist
            ImportParseError: If the file is not JSON
            ImportFormatError: If the file matches no known format
        """
        path = validate_safe_path(file_path, self.allowed_paths)
        try:
            async with aiofiles.open(path, "r", encoding="utf-8") as f:
                content = (await f.read()).strip()
        except UnicodeDecodeError as e:
            raise ImportParseError("Unknown file format") from e
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise ImportParseError("Unknown file format") from e
        export = await self.normalize_import_data(data)
        return self.handle_normalized_data(export, drive_id)

    def handle_normalized_data(
        self, export: ExportObject, drive_id: str | None = None
    ) -> ImportPreview:
        """Pick the action for normalized data.

        A file with a single request is opened as that request, data meant
        for the workspace is loaded there and everything else is shown for
        inspection before it is stored.
        """
        if is_single_request(export):
            request = dict(export.requests[0])
            if drive_id:
                request["driveId"] = drive_id
            request.pop("kind", None)
            request["_id"] = request.pop("key", None)
            return ImportPreview(action=ImportAction.OPEN_REQUEST, data=export, request=request)
        if export.load_to_workspace:
            return ImportPreview(action=ImportAction.LOAD_WORKSPACE, data=export)
        return ImportPreview(action=ImportAction.INSPECT, data=export)

    async def store_data(self, export: ExportObject | dict[str, Any]) -> ImportReport:
        """Store normalized import data.

        Args:
            export: Export object produced by `normalize_import_data`

        Returns:
            Errors, if any, and the requests to add to the URL index

        Raises:
            ValidationError: If the data was not normalized for import
        """
        if not export:
            raise ValidationError("Missing required argument.")
        if isinstance(export, dict):
            export = ExportObject.model_validate(export)
        if export.kind != KIND_IMPORT:
            raise ValidationError("Data not normalized for import.")
        store = ImportService(self.repository, batch_size=self.batch_size)
        errors = await store.import_data(export)
        indexes = store.index_updates()
        logger.info(
            "Import stored: %d errors, %d requests to index",
            len(errors or []),
            len(indexes or []),
        )
        return ImportReport(errors=errors, indexes=indexes)

"""Data import and export MCP tools."""

import logging
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from arc_data.exceptions import ImportFormatError, ImportParseError, ValidationError
from arc_data.models.export import ExportOptions
from arc_data.services.data_export_service import DataExportService
from arc_data.services.data_import_service import DataImportService
from arc_data.tools import create_error_response

logger = logging.getLogger(__name__)


async def data_normalize(service: DataImportService, data: Any) -> dict[str, Any]:
    """Transform import data into the export object without storing it.

    Args:
        service: Data import service instance
        data: File content as string, or parsed JSON

    Returns:
        Normalized export object

    Error types:
        - ImportParseError: Data is not JSON
        - ImportFormatError: Data matches no known format
        - ValidationError: Data is empty
    """
    try:
        export = await service.normalize_import_data(data)
        return export.to_dict()
    except ImportParseError as e:
        return create_error_response(message=str(e), error_type="ImportParseError")
    except ImportFormatError as e:
        return create_error_response(message=str(e), error_type="ImportFormatError")
    except ValidationError as e:
        return create_error_response(message=str(e), error_type="ValidationError")


async def data_import(
    service: DataImportService, data: Any, normalized: bool = False
) -> dict[str, Any]:
    """Store import data.

    Args:
        service: Data import service instance
        data: Export object, or raw import data when `normalized` is False
        normalized: Data was already normalized by `data_normalize`

    Returns:
        Import report with errors and URL index updates

    Error types:
        - ImportParseError: Data is not JSON
        - ImportFormatError: Data matches no known format
        - ValidationError: Data not normalized for import
    """
    try:
        export = data if normalized else await service.normalize_import_data(data)
        report = await service.store_data(export)
        return report.model_dump(exclude_none=True)
    except ImportParseError as e:
        return create_error_response(message=str(e), error_type="ImportParseError")
    except ImportFormatError as e:
        return create_error_response(message=str(e), error_type="ImportFormatError")
    except (ValidationError, PydanticValidationError) as e:
        return create_error_response(message=str(e), error_type="ValidationError")
    except (OSError, RuntimeError) as e:
        logger.error("Data import system error: %s", e, exc_info=True)
        return create_error_response(
            message=f"Import failed due to system error: {e}",
            error_type="ImportError",
        )


async def data_import_file(
    service: DataImportService, file_path: str, drive_id: str | None = None
) -> dict[str, Any]:
    """Read an import file and report what it contains.

    Args:
        service: Data import service instance
        file_path: Path to the file
        drive_id: Cloud drive ID of the file

    Returns:
        Action to take, normalized data and the request to open, if any

    Error types:
        - ValidationError: Path not allowed
        - NotFoundError: File does not exist
        - ImportParseError: File is not JSON
        - ImportFormatError: File matches no known format
    """
    try:
        preview = await service.process_file(file_path, drive_id)
        result: dict[str, Any] = {
            "action": preview.action.value,
            "data": preview.data.to_dict(),
        }
        if preview.request is not None:
            result["request"] = preview.request
        return result
    except FileNotFoundError as e:
        return create_error_response(
            message=f"File not found: {e}",
            error_type="NotFoundError",
            details={"file_path": file_path},
        )
    except ValueError as e:
        return create_error_response(
            message=str(e), error_type="ValidationError", details={"file_path": file_path}
        )
    except ImportParseError as e:
        return create_error_response(message=str(e), error_type="ImportParseError")
    except ImportFormatError as e:
        return create_error_response(message=str(e), error_type="ImportFormatError")


async def data_export(
    service: DataExportService,
    collections: dict[str, Any],
    output_path: str | None = None,
    kind: str | None = None,
    app_version: str = "Unknown version",
    skip_import: bool = False,
) -> dict[str, Any]:
    """Export stored data.

    Args:
        service: Data export service instance
        collections: Export collection name to `True` or a list of items
        output_path: File to write, the export object is returned when not set
        kind: Export object kind
        app_version: Application version written to the file
        skip_import: Data should be loaded into the workspace when opened

    Returns:
        Export object, or written file info when `output_path` is set

    Error types:
        - ValidationError: Unknown collection or path not allowed
        - ExportError: File could not be written
    """
    options = ExportOptions(app_version=app_version, skip_import=skip_import)
    if kind:
        options.kind = kind
    try:
        if output_path:
            result = await service.export_to_file(collections, output_path, options)
            return result.model_dump()
        export = await service.create_export(collections, options)
        return export.to_dict()
    except ValueError as e:
        return create_error_response(message=str(e), error_type="ValidationError")
    except OSError as e:
        logger.error("Data export failed: %s", e, exc_info=True)
        return create_error_response(
            message=f"Export failed: {e}",
            error_type="ExportError",
            details={"output_path": output_path},
        )

"""Data models for arc-data."""

from arc_data.models.export import (
    ExportFileResult,
    ExportObject,
    ExportOptions,
    ExportProcessedData,
    ImportAction,
    ImportFormat,
    ImportPreview,
    ImportReport,
    IndexableRequest,
)
from arc_data.models.store import RevisionInfo, ScanPage, WriteError, WriteResult

__all__ = [
    # Export models
    "ExportObject",
    "ExportOptions",
    "ExportProcessedData",
    "ExportFileResult",
    # Import models
    "ImportFormat",
    "ImportReport",
    "ImportAction",
    "ImportPreview",
    "IndexableRequest",
    # Store models
    "WriteResult",
    "WriteError",
    "RevisionInfo",
    "ScanPage",
]

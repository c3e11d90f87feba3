"""Import and export services."""

from arc_data.services.data_export_service import DataExportService
from arc_data.services.data_import_service import DataImportService
from arc_data.services.export_factory import ExportFactory
from arc_data.services.export_processor import ExportProcessor
from arc_data.services.import_normalizer import ImportNormalizer
from arc_data.services.import_service import ImportService

__all__ = [
    "DataExportService",
    "DataImportService",
    "ExportFactory",
    "ExportProcessor",
    "ImportNormalizer",
    "ImportService",
]

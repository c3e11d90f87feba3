"""MCP server implementation for arc-data."""

from typing import Any

from mcp.server.fastmcp import FastMCP

from arc_data.config.settings import Settings
from arc_data.db.database import Database
from arc_data.db.repositories.document_repository import DocumentRepository
from arc_data.services.data_export_service import DataExportService
from arc_data.services.data_import_service import DataImportService
from arc_data.tools import data_tools

# Initialize FastMCP server
mcp = FastMCP("arc-data")

# Global service instances (initialized in main)
import_service: DataImportService | None = None
export_service: DataExportService | None = None
app_version: str = "Unknown version"
db: Database | None = None


async def initialize_services(settings: Settings) -> None:
    """Initialize all services and database.

    Args:
        settings: Application settings
    """
    global import_service, export_service, app_version, db

    db = Database(settings.database_path)
    await db.connect()
    await db.migrate()

    repository = DocumentRepository(db)
    import_service = DataImportService(
        repository,
        chunk_size=settings.transform_chunk_size,
        batch_size=settings.export_batch_size,
    )
    export_service = DataExportService(repository, batch_size=settings.export_batch_size)
    app_version = settings.app_version


async def shutdown_services() -> None:
    """Shutdown all services and close database."""
    global db
    if db:
        await db.close()
        db = None


@mcp.tool()
async def data_normalize(data: Any) -> dict[str, Any]:
    """Transform an ARC or Postman export into the ARC import object.

    Args:
        data: File content as string, or parsed JSON

    Returns:
        Normalized export object
    """
    if not import_service:
        raise RuntimeError("Services not initialized")
    return await data_tools.data_normalize(import_service, data)


@mcp.tool()
async def data_import(data: Any, normalized: bool = False) -> dict[str, Any]:
    """Import data into the store.

    Args:
        data: Export object, or raw file content when `normalized` is False
        normalized: Data was already normalized with data_normalize

    Returns:
        Import errors, if any, and the requests to add to the URL index
    """
    if not import_service:
        raise RuntimeError("Services not initialized")
    return await data_tools.data_import(import_service, data, normalized)


@mcp.tool()
async def data_import_file(file_path: str, drive_id: str | None = None) -> dict[str, Any]:
    """Read an import file and report what should be done with it.

    Args:
        file_path: Path to the file
        drive_id: Cloud drive ID of the file

    Returns:
        Action (open_request/load_workspace/inspect) and normalized data
    """
    if not import_service:
        raise RuntimeError("Services not initialized")
    return await data_tools.data_import_file(import_service, file_path, drive_id)


@mcp.tool()
async def data_export(
    collections: dict[str, Any],
    output_path: str | None = None,
    kind: str | None = None,
    skip_import: bool = False,
) -> dict[str, Any]:
    """Export stored data.

    Args:
        collections: Collection name to true (read from the store) or a list of items
        output_path: File to write, the export object is returned when not set
        kind: Export object kind (default: ARC#AllDataExport)
        skip_import: Data should be loaded into the workspace when opened

    Returns:
        Export object, or written file info
    """
    if not export_service:
        raise RuntimeError("Services not initialized")
    return await data_tools.data_export(
        export_service, collections, output_path, kind, app_version, skip_import
    )


def create_server() -> FastMCP:
    """Create and return the MCP server instance."""
    return mcp

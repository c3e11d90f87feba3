"""Application settings management using Pydantic Settings."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _get_default_db_path() -> str:
    """Get default database path in user's data directory."""
    return str(Path.cwd() / "data" / "arc_data.db")


class Settings(BaseSettings):
    """Application configuration settings.

    All settings can be configured via environment variables with the
    prefix `ARC_DATA_`. For example, `ARC_DATA_DATABASE_PATH`.
    """

    # Database
    database_path: str = Field(
        default_factory=_get_default_db_path,
        description="SQLite database file path",
    )

    # Export
    app_version: str = Field(
        default="Unknown version",
        description="Application version written to export files",
    )
    export_batch_size: int = Field(
        default=1000,
        ge=1,
        le=100_000,
        description="Number of documents read from the store in a single page",
    )

    # Import
    transform_chunk_size: int = Field(
        default=200,
        ge=1,
        le=10_000,
        description="Number of legacy records transformed before yielding to the event loop",
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")

    model_config = SettingsConfigDict(
        env_prefix="ARC_DATA_", env_file=".env", env_file_encoding="utf-8"
    )

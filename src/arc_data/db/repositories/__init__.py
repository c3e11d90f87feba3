"""Repository layer for database operations."""

from arc_data.db.repositories.document_repository import DocumentRepository

__all__ = ["DocumentRepository"]

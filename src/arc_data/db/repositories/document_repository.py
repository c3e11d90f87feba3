"""Document repository with revision based optimistic concurrency."""

import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from arc_data.db.database import Database
from arc_data.exceptions import ConflictError, NotFoundError, ValidationError
from arc_data.models.store import RevisionInfo, ScanPage, WriteError, WriteResult

logger = logging.getLogger(__name__)

# Store metadata fields. They are never persisted inside the body.
META_FIELDS = ("_id", "_rev", "_deleted")


def _next_rev(current: str | None) -> str:
    """Compute the revision that follows `current`."""
    generation = 0
    if current:
        try:
            generation = int(current.split("-", 1)[0])
        except ValueError:
            generation = 0
    return f"{generation + 1}-{uuid.uuid4().hex}"


class DocumentRepository:
    """Repository for documents kept in named collections.

    Every document has an `_id` unique in its collection and a `_rev`
    revision. A write to an existing id (including a deleted one) must carry
    the current revision or it is rejected as a conflict.
    """

    def __init__(self, db: Database) -> None:
        """Initialize repository.

        Args:
            db: Database instance
        """
        self.db = db

    async def get(
        self, collection: str, doc_id: str, include_deleted: bool = False
    ) -> dict[str, Any]:
        """Get a document by ID.

        Args:
            collection: Collection name
            doc_id: Document ID
            include_deleted: Return the last body of a deleted document

        Returns:
            Document with `_id` and `_rev` set

        Raises:
            NotFoundError: If the document does not exist or is deleted
        """
        cursor = await self.db.execute(
            "SELECT id, rev, deleted, body FROM documents WHERE collection = ? AND id = ?",
            (collection, doc_id),
        )
        row = await cursor.fetchone()
        if not row or (row["deleted"] and not include_deleted):
            raise NotFoundError(f"Document not found: {collection}/{doc_id}")
        return self._row_to_doc(row)

    async def put(self, collection: str, doc: dict[str, Any]) -> WriteResult:
        """Create or update a single document.

        Args:
            collection: Collection name
            doc: Document to write

        Returns:
            Write result with the new revision

        Raises:
            ConflictError: If the revision does not match the stored one
            ValidationError: If the document cannot be stored
            NotFoundError: If deleting a document that does not exist
        """
        async with self.db.transaction():
            result = await self._write(collection, doc)
        if isinstance(result, WriteError):
            if result.conflict:
                raise ConflictError(result.id, result.message)
            if result.status == 404:
                raise NotFoundError(result.message)
            raise ValidationError(result.message)
        return result

    async def delete(self, collection: str, doc_id: str, rev: str) -> WriteResult:
        """Mark a document as deleted.

        Args:
            collection: Collection name
            doc_id: Document ID
            rev: Current revision of the document

        Returns:
            Write result with the tombstone revision
        """
        return await self.put(collection, {"_id": doc_id, "_rev": rev, "_deleted": True})

    async def bulk_write(
        self, collection: str, docs: list[dict[str, Any]]
    ) -> list[WriteResult | WriteError]:
        """Write many documents at once.

        Each document succeeds or fails on its own. The result list has the
        same order as `docs`.

        Args:
            collection: Collection name
            docs: Documents to write

        Returns:
            One write result or write error per document
        """
        results: list[WriteResult | WriteError] = []
        if not docs:
            return results
        async with self.db.transaction():
            for doc in docs:
                results.append(await self._write(collection, doc))
        failed = sum(1 for item in results if isinstance(item, WriteError))
        if failed:
            logger.debug(
                "Bulk write to %s: %d of %d documents rejected", collection, failed, len(docs)
            )
        return results

    async def get_revisions(
        self, collection: str, ids: list[str]
    ) -> list[RevisionInfo | None]:
        """Read current revisions of documents.

        Args:
            collection: Collection name
            ids: Document IDs

        Returns:
            Revision info per requested ID, None for unknown IDs
        """
        result: list[RevisionInfo | None] = []
        for doc_id in ids:
            cursor = await self.db.execute(
                "SELECT id, rev, deleted FROM documents WHERE collection = ? AND id = ?",
                (collection, doc_id),
            )
            row = await cursor.fetchone()
            if row:
                result.append(
                    RevisionInfo(id=row["id"], rev=row["rev"], deleted=bool(row["deleted"]))
                )
            else:
                result.append(None)
        return result

    async def scan(
        self,
        collection: str,
        limit: int,
        start_key: str | None = None,
        skip: int = 0,
    ) -> ScanPage:
        """Read a page of live documents ordered by ID.

        Args:
            collection: Collection name
            limit: Maximum number of documents
            start_key: First ID to include (inclusive)
            skip: Number of documents to skip from `start_key`

        Returns:
            Page of documents and the key to continue from
        """
        where = "collection = ? AND deleted = 0"
        params: list[Any] = [collection]
        if start_key is not None:
            where += " AND id >= ?"
            params.append(start_key)
        params.extend([limit, skip])
        cursor = await self.db.execute(
            f"SELECT id, rev, deleted, body FROM documents WHERE {where} "
            "ORDER BY id ASC LIMIT ? OFFSET ?",
            tuple(params),
        )
        rows = await cursor.fetchall()
        docs = [self._row_to_doc(row) for row in rows]
        next_start_key = docs[-1]["_id"] if docs else None
        return ScanPage(docs=docs, next_start_key=next_start_key)

    async def count(self, collection: str) -> int:
        """Count live documents in a collection."""
        cursor = await self.db.execute(
            "SELECT COUNT(*) FROM documents WHERE collection = ? AND deleted = 0",
            (collection,),
        )
        row = await cursor.fetchone()
        return row[0] if row else 0

    async def _write(self, collection: str, doc: dict[str, Any]) -> WriteResult | WriteError:
        """Write one document. Must be called inside a transaction."""
        doc_id = doc.get("_id")
        if not isinstance(doc_id, str) or not doc_id:
            return WriteError(
                id=str(doc_id or ""),
                error="bad_request",
                message="Document must have a non-empty string _id",
                status=400,
            )
        body = {key: value for key, value in doc.items() if key not in META_FIELDS}
        try:
            body_json = json.dumps(body)
        except (TypeError, ValueError) as e:
            return WriteError(
                id=doc_id,
                error="bad_request",
                message=f"Document {doc_id} is not serializable: {e}",
                status=400,
            )
        deleted = bool(doc.get("_deleted"))
        now = datetime.now(timezone.utc).isoformat()

        cursor = await self.db.execute(
            "SELECT rev, deleted FROM documents WHERE collection = ? AND id = ?",
            (collection, doc_id),
        )
        row = await cursor.fetchone()

        if row is None:
            if doc.get("_rev"):
                return WriteError(
                    id=doc_id,
                    error="conflict",
                    message="Document update conflict",
                    status=409,
                    conflict=True,
                )
            if deleted:
                return WriteError(
                    id=doc_id,
                    error="not_found",
                    message=f"Document not found: {collection}/{doc_id}",
                    status=404,
                )
            rev = _next_rev(None)
            await self.db.execute(
                "INSERT INTO documents (collection, id, rev, deleted, body, updated_at) "
                "VALUES (?, ?, ?, 0, ?, ?)",
                (collection, doc_id, rev, body_json, now),
            )
            return WriteResult(id=doc_id, rev=rev)

        if doc.get("_rev") != row["rev"]:
            return WriteError(
                id=doc_id,
                error="conflict",
                message="Document update conflict",
                status=409,
                conflict=True,
            )

        rev = _next_rev(row["rev"])
        if deleted:
            # Tombstones keep the previous body so they can be restored.
            await self.db.execute(
                "UPDATE documents SET rev = ?, deleted = 1, updated_at = ? "
                "WHERE collection = ? AND id = ?",
                (rev, now, collection, doc_id),
            )
        else:
            await self.db.execute(
                "UPDATE documents SET rev = ?, deleted = 0, body = ?, updated_at = ? "
                "WHERE collection = ? AND id = ?",
                (rev, body_json, now, collection, doc_id),
            )
        return WriteResult(id=doc_id, rev=rev)

    def _row_to_doc(self, row: Any) -> dict[str, Any]:
        """Convert database row to a document."""
        doc = json.loads(row["body"])
        doc["_id"] = row["id"]
        doc["_rev"] = row["rev"]
        if row["deleted"]:
            doc["_deleted"] = True
        return doc

"""Tests for the revisioned document repository."""

import pytest

from arc_data.db.repositories.document_repository import DocumentRepository
from arc_data.exceptions import ConflictError, NotFoundError, ValidationError
from arc_data.models.store import WriteError, WriteResult

COLLECTION = "saved-requests"


class TestDocumentRepository:
    """Test DocumentRepository class."""

    @pytest.mark.asyncio
    async def test_put_and_get(self, repository: DocumentRepository):
        """Test creating and reading a document."""
        result = await repository.put(COLLECTION, {"_id": "r1", "url": "https://api.domain.com"})

        doc = await repository.get(COLLECTION, "r1")

        assert result.id == "r1"
        assert result.rev.startswith("1-")
        assert doc["_id"] == "r1"
        assert doc["_rev"] == result.rev
        assert doc["url"] == "https://api.domain.com"

    @pytest.mark.asyncio
    async def test_get_missing(self, repository: DocumentRepository):
        """Test reading an unknown document."""
        with pytest.raises(NotFoundError):
            await repository.get(COLLECTION, "missing")

    @pytest.mark.asyncio
    async def test_collections_are_separate(self, repository: DocumentRepository):
        """Test the same ID in two collections."""
        await repository.put(COLLECTION, {"_id": "same", "name": "saved"})
        await repository.put("history-requests", {"_id": "same", "name": "history"})

        saved = await repository.get(COLLECTION, "same")
        history = await repository.get("history-requests", "same")

        assert saved["name"] == "saved"
        assert history["name"] == "history"

    @pytest.mark.asyncio
    async def test_update_with_current_rev(self, repository: DocumentRepository):
        """Test updating a document with its current revision."""
        first = await repository.put(COLLECTION, {"_id": "r1", "name": "a"})

        second = await repository.put(COLLECTION, {"_id": "r1", "_rev": first.rev, "name": "b"})
        doc = await repository.get(COLLECTION, "r1")

        assert second.rev.startswith("2-")
        assert doc["name"] == "b"

    @pytest.mark.asyncio
    async def test_update_without_rev_conflicts(self, repository: DocumentRepository):
        """Test writing an existing ID without a revision."""
        await repository.put(COLLECTION, {"_id": "r1", "name": "a"})

        with pytest.raises(ConflictError) as exc_info:
            await repository.put(COLLECTION, {"_id": "r1", "name": "b"})

        assert exc_info.value.status == 409
        assert exc_info.value.doc_id == "r1"

    @pytest.mark.asyncio
    async def test_update_with_stale_rev_conflicts(self, repository: DocumentRepository):
        """Test writing with an old revision."""
        first = await repository.put(COLLECTION, {"_id": "r1", "name": "a"})
        await repository.put(COLLECTION, {"_id": "r1", "_rev": first.rev, "name": "b"})

        with pytest.raises(ConflictError):
            await repository.put(COLLECTION, {"_id": "r1", "_rev": first.rev, "name": "c"})

    @pytest.mark.asyncio
    async def test_put_without_id(self, repository: DocumentRepository):
        """Test a document without an ID is rejected."""
        with pytest.raises(ValidationError):
            await repository.put(COLLECTION, {"name": "no id"})

    @pytest.mark.asyncio
    async def test_delete_and_restore(self, repository: DocumentRepository):
        """Test deleted documents keep their body for restore."""
        first = await repository.put(COLLECTION, {"_id": "r1", "name": "a"})
        deleted = await repository.delete(COLLECTION, "r1", first.rev)

        with pytest.raises(NotFoundError):
            await repository.get(COLLECTION, "r1")

        tombstone = await repository.get(COLLECTION, "r1", include_deleted=True)
        assert tombstone["_deleted"] is True
        assert tombstone["name"] == "a"
        assert tombstone["_rev"] == deleted.rev

        tombstone["_deleted"] = False
        restored = await repository.put(COLLECTION, tombstone)
        doc = await repository.get(COLLECTION, "r1")

        assert restored.rev.startswith("3-")
        assert doc["name"] == "a"
        assert "_deleted" not in doc

    @pytest.mark.asyncio
    async def test_bulk_write_reports_per_document(self, repository: DocumentRepository):
        """Test bulk write results keep the input order."""
        await repository.put(COLLECTION, {"_id": "existing", "name": "a"})

        results = await repository.bulk_write(
            COLLECTION,
            [
                {"_id": "new", "name": "n"},
                {"_id": "existing", "name": "b"},
                {"name": "no id"},
            ],
        )

        assert isinstance(results[0], WriteResult)
        assert isinstance(results[1], WriteError)
        assert results[1].conflict is True
        assert results[1].status == 409
        assert isinstance(results[2], WriteError)
        assert results[2].conflict is False
        assert await repository.count(COLLECTION) == 2

    @pytest.mark.asyncio
    async def test_bulk_write_empty(self, repository: DocumentRepository):
        """Test bulk write of nothing."""
        assert await repository.bulk_write(COLLECTION, []) == []

    @pytest.mark.asyncio
    async def test_get_revisions(self, repository: DocumentRepository):
        """Test reading revisions of live, deleted and unknown documents."""
        live = await repository.put(COLLECTION, {"_id": "live"})
        gone = await repository.put(COLLECTION, {"_id": "gone"})
        await repository.delete(COLLECTION, "gone", gone.rev)

        revisions = await repository.get_revisions(COLLECTION, ["live", "gone", "unknown"])

        assert revisions[0] is not None
        assert revisions[0].rev == live.rev
        assert revisions[0].deleted is False
        assert revisions[1] is not None
        assert revisions[1].deleted is True
        assert revisions[2] is None

    @pytest.mark.asyncio
    async def test_scan_pages(self, repository: DocumentRepository):
        """Test scanning continues from the last key."""
        await repository.bulk_write(COLLECTION, [{"_id": f"doc-{i:02d}"} for i in range(5)])

        first = await repository.scan(COLLECTION, limit=2)
        second = await repository.scan(
            COLLECTION, limit=2, start_key=first.next_start_key, skip=1
        )

        assert [doc["_id"] for doc in first.docs] == ["doc-00", "doc-01"]
        assert first.next_start_key == "doc-01"
        assert [doc["_id"] for doc in second.docs] == ["doc-02", "doc-03"]

    @pytest.mark.asyncio
    async def test_scan_skips_deleted(self, repository: DocumentRepository):
        """Test deleted documents are not scanned."""
        await repository.put(COLLECTION, {"_id": "a"})
        result = await repository.put(COLLECTION, {"_id": "b"})
        await repository.delete(COLLECTION, "b", result.rev)

        page = await repository.scan(COLLECTION, limit=10)

        assert [doc["_id"] for doc in page.docs] == ["a"]
        assert await repository.count(COLLECTION) == 1

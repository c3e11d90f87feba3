"""Tests for database operations."""

import asyncio

import pytest

from arc_data.db.database import Database


class TestDatabase:
    """Test Database class."""

    @pytest.mark.asyncio
    async def test_database_initialization(self, memory_db: Database):
        """Test database initialization and migration."""
        cursor = await memory_db.execute(
            "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name"
        )
        tables = {row["name"] for row in await cursor.fetchall()}

        assert {"schema_version", "documents"}.issubset(tables)

    @pytest.mark.asyncio
    async def test_migrate_is_idempotent(self, memory_db: Database):
        """Test running migrations twice keeps a single version row."""
        await memory_db.migrate()

        cursor = await memory_db.execute("SELECT COUNT(*) FROM schema_version")
        row = await cursor.fetchone()

        assert row[0] == 1

    @pytest.mark.asyncio
    async def test_transaction_commit(self, memory_db: Database):
        """Test transaction commit."""
        async with memory_db.transaction():
            await memory_db.execute(
                "INSERT INTO documents (collection, id, rev, body, updated_at) "
                "VALUES (?, ?, ?, ?, datetime('now'))",
                ("saved-requests", "r1", "1-abc", "{}"),
            )

        cursor = await memory_db.execute("SELECT * FROM documents WHERE id = ?", ("r1",))
        result = await cursor.fetchone()

        assert result is not None
        assert result["rev"] == "1-abc"

    @pytest.mark.asyncio
    async def test_transaction_rollback(self, memory_db: Database):
        """Test transaction rollback on error."""
        with pytest.raises(RuntimeError):
            async with memory_db.transaction():
                await memory_db.execute(
                    "INSERT INTO documents (collection, id, rev, body, updated_at) "
                    "VALUES (?, ?, ?, ?, datetime('now'))",
                    ("saved-requests", "r2", "1-abc", "{}"),
                )
                raise RuntimeError("boom")

        cursor = await memory_db.execute("SELECT * FROM documents WHERE id = ?", ("r2",))
        assert await cursor.fetchone() is None

    @pytest.mark.asyncio
    async def test_nested_transaction(self, memory_db: Database):
        """Test nested transaction joins the outer one."""
        async with memory_db.transaction():
            async with memory_db.transaction():
                await memory_db.execute(
                    "INSERT INTO documents (collection, id, rev, body, updated_at) "
                    "VALUES (?, ?, ?, ?, datetime('now'))",
                    ("saved-requests", "r3", "1-abc", "{}"),
                )

        cursor = await memory_db.execute("SELECT * FROM documents WHERE id = ?", ("r3",))
        assert await cursor.fetchone() is not None

    @pytest.mark.asyncio
    async def test_execute_without_connection(self):
        """Test executing before connect fails."""
        db = Database(database_path=":memory:")

        with pytest.raises(RuntimeError, match="not connected"):
            await db.execute("SELECT 1")

    @pytest.mark.asyncio
    async def test_concurrent_transactions(self, memory_db: Database):
        """Test transactions of two tasks do not interleave."""

        async def write(doc_id: str) -> None:
            async with memory_db.transaction():
                for i in range(3):
                    await memory_db.execute(
                        "INSERT INTO documents (collection, id, rev, body, updated_at) "
                        "VALUES (?, ?, ?, ?, datetime('now'))",
                        ("saved-requests", f"{doc_id}-{i}", "1-abc", "{}"),
                    )

        await asyncio.gather(write("a"), write("b"))

        cursor = await memory_db.execute("SELECT COUNT(*) FROM documents")
        row = await cursor.fetchone()
        assert row[0] == 6

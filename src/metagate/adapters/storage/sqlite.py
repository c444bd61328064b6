"""SQLite document store adapter.

Documents are kept as JSON text in a single table keyed by (index, id).
Searches load the rows of one index in insertion order and evaluate the
bool query on each decoded document.
"""

import asyncio
import json
import logging
import sqlite3
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import aiosqlite

from metagate.adapters.storage.base import resolve_index
from metagate.core.errors import StorageError
from metagate.core.search import Search, SearchHit

logger = logging.getLogger(__name__)

_DOCUMENTS_SCHEMA = """
CREATE TABLE IF NOT EXISTS documents (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    idx TEXT NOT NULL,
    doc_id TEXT NOT NULL,
    source TEXT NOT NULL,
    UNIQUE (idx, doc_id)
);
CREATE INDEX IF NOT EXISTS idx_documents_idx_seq ON documents(idx, seq);
"""

_UPSERT_DOCUMENT = """
INSERT INTO documents (idx, doc_id, source) VALUES (?, ?, ?)
ON CONFLICT (idx, doc_id) DO UPDATE SET source = excluded.source
"""

_SELECT_DOCUMENTS = """
SELECT doc_id, source
FROM documents
WHERE idx = ?
ORDER BY seq ASC
"""

_COUNT_DOCUMENTS = """
SELECT COUNT(*) FROM documents WHERE idx = ?
"""

_CLEAR_DOCUMENTS = """
DELETE FROM documents
"""


class AsyncConnectionManager:
    """Manages aiosqlite connections and one-time schema creation.

    For :memory: databases, maintains a persistent connection since SQLite
    in-memory databases are connection-scoped.
    """

    def __init__(self, db_path: str, schema: str) -> None:
        self._db_path = db_path
        self._schema = schema
        self._initialized = False
        self._init_lock: asyncio.Lock | None = None
        self._persistent_conn: aiosqlite.Connection | None = None

    def _get_lock(self) -> asyncio.Lock:
        """Get or create the initialization lock (lazy to avoid event loop issues)."""
        if self._init_lock is None:
            self._init_lock = asyncio.Lock()
        return self._init_lock

    @property
    def _in_memory(self) -> bool:
        return self._db_path == ":memory:"

    async def _ensure_initialized(self) -> None:
        if self._initialized:
            return
        async with self._get_lock():
            if self._initialized:
                return
            if self._in_memory:
                self._persistent_conn = await aiosqlite.connect(":memory:")
                await self._persistent_conn.executescript(self._schema)
            else:
                async with aiosqlite.connect(self._db_path) as db:
                    await db.execute("PRAGMA journal_mode=WAL")
                    await db.executescript(self._schema)
            self._initialized = True

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[aiosqlite.Connection]:
        """Yield a connection, closing it afterwards unless it is :memory:."""
        await self._ensure_initialized()
        if self._in_memory:
            if self._persistent_conn is None:
                raise RuntimeError("Memory database connection not initialized")
            yield self._persistent_conn
            return
        db = await aiosqlite.connect(self._db_path)
        try:
            yield db
        finally:
            await db.close()

    async def close(self) -> None:
        """Close persistent connection (for :memory: databases)."""
        if self._persistent_conn is not None:
            await self._persistent_conn.close()
            self._persistent_conn = None
            self._initialized = False


class SQLiteDocumentStore:
    """SQLite implementation of DocumentStorePort using aiosqlite.

    Uses WAL mode for file databases so searches can run while another
    process writes.
    """

    def __init__(self, db_path: str, namespace: str = "") -> None:
        self._db_path = db_path
        self._namespace = namespace
        self._manager = AsyncConnectionManager(db_path, _DOCUMENTS_SCHEMA)

    def physical_index(self, logical_name: str) -> str:
        """Resolve a logical index name, applying the namespace prefix."""
        return resolve_index(self._namespace, logical_name)

    async def put(self, index: str, doc_id: str, source: dict[str, Any]) -> None:
        """Store a document under a physical index, replacing any previous one."""
        try:
            async with self._manager.connection() as db:
                await db.execute(_UPSERT_DOCUMENT, (index, doc_id, json.dumps(source)))
                await db.commit()
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to write to {index}: {exc}", index) from exc

    async def search(self, index: str, search: Search) -> list[SearchHit]:
        """Return matching documents in insertion order, up to search.size.

        Raises:
            StorageError: On SQLite errors or undecodable stored documents.
        """
        hits: list[SearchHit] = []
        try:
            async with self._manager.connection() as db:
                async with db.execute(_SELECT_DOCUMENTS, (index,)) as cursor:
                    async for row in cursor:
                        if len(hits) >= search.size:
                            break
                        source = _load_source(index, row[0], row[1])
                        if search.query.matches(row[0], source):
                            hits.append(SearchHit(id=row[0], source=source))
        except sqlite3.Error as exc:
            raise StorageError(f"Search on {index} failed: {exc}", index) from exc
        logger.debug("Search on %s returned %d hits", index, len(hits))
        return hits

    async def count(self, index: str) -> int:
        """Return number of documents stored under a physical index."""
        try:
            async with self._manager.connection() as db:
                async with db.execute(_COUNT_DOCUMENTS, (index,)) as cursor:
                    row = await cursor.fetchone()
        except sqlite3.Error as exc:
            raise StorageError(f"Count on {index} failed: {exc}", index) from exc
        return row[0] if row else 0

    async def clear(self) -> None:
        """Remove every document from every index."""
        try:
            async with self._manager.connection() as db:
                await db.execute(_CLEAR_DOCUMENTS)
                await db.commit()
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to clear documents: {exc}") from exc

    async def close(self) -> None:
        """Close persistent connection (for :memory: databases)."""
        await self._manager.close()


def _load_source(index: str, doc_id: str, raw: str) -> dict[str, Any]:
    try:
        source = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise StorageError(
            f"Stored document {doc_id!r} in {index} is not valid JSON", index
        ) from exc
    if not isinstance(source, dict):
        raise StorageError(
            f"Stored document {doc_id!r} in {index} is not an object", index
        )
    return source

"""In-memory document store adapter."""

from typing import Any

from metagate.adapters.storage.base import resolve_index
from metagate.core.search import Search, SearchHit


class InMemoryDocumentStore:
    """In-memory implementation of DocumentStorePort.

    Keeps documents per physical index in insertion order and evaluates
    search queries locally. Suitable for testing and for demos where no
    document store is running.
    """

    def __init__(self, namespace: str = "") -> None:
        self._namespace = namespace
        self._indices: dict[str, dict[str, dict[str, Any]]] = {}

    def physical_index(self, logical_name: str) -> str:
        """Resolve a logical index name, applying the namespace prefix."""
        return resolve_index(self._namespace, logical_name)

    async def put(self, index: str, doc_id: str, source: dict[str, Any]) -> None:
        """Store a document under a physical index, replacing any previous one."""
        self._indices.setdefault(index, {})[doc_id] = dict(source)

    async def search(self, index: str, search: Search) -> list[SearchHit]:
        """Return matching documents in insertion order, up to search.size."""
        documents = self._indices.get(index, {})
        hits: list[SearchHit] = []
        for doc_id, source in documents.items():
            if len(hits) >= search.size:
                break
            if search.query.matches(doc_id, source):
                hits.append(SearchHit(id=doc_id, source=dict(source)))
        return hits

    async def count(self, index: str) -> int:
        """Return number of documents stored under a physical index."""
        return len(self._indices.get(index, {}))

    async def clear(self) -> None:
        """Remove every document from every index."""
        self._indices.clear()

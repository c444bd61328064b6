"""Storage adapters implementing DocumentStorePort."""

from metagate.adapters.storage.base import record_document, resolve_index, seed_records
from metagate.adapters.storage.elasticsearch import ElasticsearchDocumentStore
from metagate.adapters.storage.in_memory import InMemoryDocumentStore
from metagate.adapters.storage.sqlite import SQLiteDocumentStore

__all__ = [
    "ElasticsearchDocumentStore",
    "InMemoryDocumentStore",
    "SQLiteDocumentStore",
    "record_document",
    "resolve_index",
    "seed_records",
]

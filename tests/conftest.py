"""Shared test fixtures for all test modules."""

from collections.abc import Callable
from pathlib import Path
from typing import Any

import httpx
import pytest

from metagate.adapters.storage.base import seed_records
from metagate.adapters.storage.in_memory import InMemoryDocumentStore
from metagate.core.metadata import MetadataStore
from tests.topology import sample_records


@pytest.fixture
def sqlite_db_path(tmp_path: Path) -> str:
    """Provide a temporary database path for SQLite store tests."""
    return str(tmp_path / "documents.db")


@pytest.fixture
async def document_store() -> InMemoryDocumentStore:
    """Fixture providing an empty in-memory document store."""
    return InMemoryDocumentStore()


@pytest.fixture
async def seeded_store() -> InMemoryDocumentStore:
    """Fixture providing an in-memory document store holding sample_records()."""
    store = InMemoryDocumentStore()
    await seed_records(store, sample_records())
    return store


@pytest.fixture
def metadata_store(seeded_store: InMemoryDocumentStore) -> MetadataStore:
    """MetadataStore over the seeded in-memory store."""
    return MetadataStore(seeded_store, query_max_size=100)


# === ASGI Test Fixtures ===


@pytest.fixture
def asgi_test_client() -> Callable[[Any], httpx.AsyncClient]:
    """Factory fixture that creates an httpx.AsyncClient for ASGI testing.

    Usage:
        async def test_something(asgi_test_client):
            app = create_asgi_app(bridge)
            async with asgi_test_client(app) as client:
                response = await client.post("/graphql", json={...})
    """

    def _get_client(app: Any) -> httpx.AsyncClient:
        """Return an AsyncClient context manager for the given app."""
        return httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app), base_url="http://test"
        )

    return _get_client


@pytest.fixture
def asgi_send_capture():
    """Fixture that returns a send callable and a responses list for capture."""

    responses: list[dict[str, object]] = []

    async def send(message: dict[str, object]) -> None:
        """Capture ASGI messages."""
        responses.append(message)

    return send, responses

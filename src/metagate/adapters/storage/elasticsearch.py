"""Elasticsearch document store adapter.

Talks to the Elasticsearch REST API with httpx: each search is a POST of
the query DSL body to ``/<index>/_search``.
"""

import logging
from typing import Any

import httpx

from metagate.adapters.storage.base import resolve_index
from metagate.core.errors import StorageError
from metagate.core.search import Search, SearchHit

logger = logging.getLogger(__name__)


def _parse_hits(index: str, payload: Any) -> list[SearchHit]:
    """Extract hits from a search response body.

    Raises:
        StorageError: If the body does not have the hits.hits shape.
    """
    try:
        raw_hits = payload["hits"]["hits"]
        hits = [
            SearchHit(id=str(hit["_id"]), source=dict(hit.get("_source") or {}))
            for hit in raw_hits
        ]
    except (KeyError, TypeError, ValueError) as exc:
        raise StorageError(f"Malformed search response from {index}", index) from exc
    return hits


class ElasticsearchDocumentStore:
    """Elasticsearch implementation of DocumentStorePort.

    The httpx.AsyncClient is the shared connection pool; pass one in to
    share it with other components, otherwise the store creates and owns
    its own.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:9200",
        namespace: str = "",
        timeout: float = 30.0,
        auth: tuple[str, str] | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            base_url: Cluster URL, e.g. "http://localhost:9200".
            namespace: Prefix applied to logical index names.
            timeout: Per-request timeout in seconds (used only when the
                store creates its own client).
            auth: Optional (user, password) for basic authentication.
            client: Existing client to use instead of creating one.
        """
        self._namespace = namespace
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url, timeout=timeout, auth=auth
        )

    def physical_index(self, logical_name: str) -> str:
        """Resolve a logical index name, applying the namespace prefix."""
        return resolve_index(self._namespace, logical_name)

    async def search(self, index: str, search: Search) -> list[SearchHit]:
        """Run a search request and return its hits in response order.

        Raises:
            StorageError: On transport errors, timeouts, non-2xx statuses
                and malformed response bodies.
        """
        body = search.to_dict()
        logger.debug("POST /%s/_search %s", index, body)
        try:
            response = await self._client.post(f"/{index}/_search", json=body)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as exc:
            raise StorageError(
                f"Search on {index} failed with HTTP {exc.response.status_code}",
                index,
            ) from exc
        except httpx.HTTPError as exc:
            raise StorageError(f"Search on {index} failed: {exc}", index) from exc
        except ValueError as exc:
            raise StorageError(
                f"Search on {index} returned a non-JSON body", index
            ) from exc
        return _parse_hits(index, payload)

    async def close(self) -> None:
        """Close the HTTP client if this store created it."""
        if self._owns_client:
            await self._client.aclose()

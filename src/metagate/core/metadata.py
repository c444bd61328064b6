"""Metadata store: topology lookups translated into document-store searches."""

import logging

from metagate.core import codec, search
from metagate.core.models import Endpoint, Layer, Service, ServiceInstance
from metagate.core.ports import DocumentStorePort
from metagate.core.search import SearchHit
from metagate.core.time_bucket import minute_time_bucket

logger = logging.getLogger(__name__)

DEFAULT_QUERY_MAX_SIZE = 5000


class MetadataStore:
    """Read-only access to service, instance and endpoint traffic records.

    Each operation issues exactly one search. Storage failures raised by the
    document store propagate unchanged.
    """

    def __init__(
        self,
        client: DocumentStorePort,
        query_max_size: int = DEFAULT_QUERY_MAX_SIZE,
    ) -> None:
        """Initialize the store.

        Args:
            client: Document store adapter implementing DocumentStorePort.
            query_max_size: Upper bound on rows returned by list operations.
        """
        if query_max_size < 1:
            raise ValueError("query_max_size must be positive")
        self._client = client
        self._query_max_size = query_max_size

    @property
    def query_max_size(self) -> int:
        return self._query_max_size

    async def _search(
        self, logical_index: str, query: search.Query, size: int
    ) -> list[SearchHit]:
        index = self._client.physical_index(logical_index)
        request = search.Search(query=query, size=size)
        logger.debug("Searching %s: %s", index, request.to_dict())
        return await self._client.search(index, request)

    async def list_services(
        self, layer: str | None = None, group: str | None = None
    ) -> list[Service]:
        """List services, optionally filtered by layer name and group.

        An empty filter is omitted from the query rather than matched
        against the empty string.

        Raises:
            ValueError: If layer is not a known layer name.
        """
        query = search.bool_()
        if layer:
            query.must(search.term(codec.LAYER, Layer.from_name(layer).value))
        if group:
            query.must(search.term(codec.GROUP, group))
        hits = await self._search(
            codec.SERVICE_TRAFFIC_INDEX, query, self._query_max_size
        )
        return _build_services(hits)

    async def get_services(self, service_id: str) -> list[Service]:
        """Return every row stored for a service id, one per layer."""
        query = search.bool_().must(search.term(codec.SERVICE_ID, service_id))
        hits = await self._search(
            codec.SERVICE_TRAFFIC_INDEX, query, self._query_max_size
        )
        return _build_services(hits)

    async def list_instances(
        self, start_timestamp: int, end_timestamp: int, service_id: str
    ) -> list[ServiceInstance]:
        """List instances of a service seen since the start of the range.

        Only the lower bound is applied: instances whose last ping bucket is
        before the minute bucket of start_timestamp are excluded, and
        end_timestamp does not restrict the result.
        """
        query = (
            search.bool_()
            .must(
                search.range_(
                    codec.LAST_PING_TIME_BUCKET,
                    gte=minute_time_bucket(start_timestamp),
                )
            )
            .must(search.term(codec.SERVICE_ID, service_id))
        )
        hits = await self._search(
            codec.INSTANCE_TRAFFIC_INDEX, query, self._query_max_size
        )
        return _build_instances(hits)

    async def get_instance(self, instance_id: str) -> ServiceInstance | None:
        """Look up an instance by storage id; None when there is no such row."""
        query = search.bool_().must(search.term(codec.ID, instance_id))
        hits = await self._search(codec.INSTANCE_TRAFFIC_INDEX, query, 1)
        instances = _build_instances(hits)
        return instances[0] if instances else None

    async def find_endpoint(
        self, keyword: str | None, service_id: str, limit: int
    ) -> list[Endpoint]:
        """Find endpoints of a service, optionally by name keyword.

        Args:
            keyword: Analyzed match against the endpoint name; empty or None
                returns all endpoints of the service.
            service_id: Owning service id.
            limit: Maximum number of endpoints to return.
        """
        query = search.bool_().must(search.term(codec.SERVICE_ID, service_id))
        if keyword:
            query.must(search.match(codec.match_column(codec.NAME), keyword))
        hits = await self._search(codec.ENDPOINT_TRAFFIC_INDEX, query, limit)
        endpoints = []
        for hit in hits:
            record = codec.decode_endpoint(hit.source)
            endpoints.append(codec.to_endpoint(record))
        return endpoints


def _build_services(hits: list[SearchHit]) -> list[Service]:
    return [codec.to_service(codec.decode_service(hit.source)) for hit in hits]


def _build_instances(hits: list[SearchHit]) -> list[ServiceInstance]:
    return [codec.to_instance(codec.decode_instance(hit.source)) for hit in hits]

"""Metadata query service used by the query resolvers.

The metadata store returns one Service per stored row, so a service seen in
several layers comes back several times. This service folds those rows into
one Service per id whose layers list every layer in row order.
"""

from metagate.core.metadata import MetadataStore
from metagate.core.models import Endpoint, Layer, Service, ServiceInstance
from metagate.core.time_bucket import Duration


def combine_services(services: list[Service]) -> list[Service]:
    """Merge services sharing an id, keeping first-seen order."""
    combined: dict[str, Service] = {}
    for service in services:
        existing = combined.get(service.id)
        if existing is None:
            combined[service.id] = Service(
                id=service.id,
                name=service.name,
                short_name=service.short_name,
                group=service.group,
                layers=list(service.layers),
            )
            continue
        for layer in service.layers:
            if layer not in existing.layers:
                existing.layers.append(layer)
    return list(combined.values())


class MetadataQueryService:
    """Caller-facing metadata queries on top of a MetadataStore."""

    def __init__(self, store: MetadataStore) -> None:
        self._store = store

    async def list_layers(self) -> list[str]:
        return [layer.name for layer in Layer if layer is not Layer.UNDEFINED]

    async def list_services(
        self, layer: str | None = None, group: str | None = None
    ) -> list[Service]:
        return combine_services(await self._store.list_services(layer, group))

    async def get_service(self, service_id: str) -> Service | None:
        services = combine_services(await self._store.get_services(service_id))
        return services[0] if services else None

    async def list_instances(
        self, duration: Duration, service_id: str
    ) -> list[ServiceInstance]:
        return await self._store.list_instances(
            duration.start_timestamp(), duration.end_timestamp(), service_id
        )

    async def get_instance(self, instance_id: str) -> ServiceInstance | None:
        return await self._store.get_instance(instance_id)

    async def find_endpoint(
        self, keyword: str | None, service_id: str, limit: int
    ) -> list[Endpoint]:
        return await self._store.find_endpoint(keyword, service_id, limit)

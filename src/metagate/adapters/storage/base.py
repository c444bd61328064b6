"""Helpers shared by document store adapters."""

from collections.abc import Iterable
from typing import Any

from metagate.core import codec
from metagate.core.models import (
    EndpointTraffic,
    InstanceTraffic,
    ServiceTraffic,
    TrafficRecord,
)


def resolve_index(namespace: str, logical_name: str) -> str:
    """Physical index name: the logical one, prefixed by "<namespace>_" if set."""
    if not namespace:
        return logical_name
    return f"{namespace.lower()}_{logical_name}"


def record_document(record: TrafficRecord) -> tuple[str, str, dict[str, Any]]:
    """Return (logical index, storage id, stored document) for a record.

    Used to seed stores in tests and demos; metagate itself never writes.
    """
    if isinstance(record, ServiceTraffic):
        return codec.SERVICE_TRAFFIC_INDEX, record.id(), codec.encode_service(record)
    if isinstance(record, InstanceTraffic):
        return (
            codec.INSTANCE_TRAFFIC_INDEX,
            record.id(),
            codec.encode_instance(record),
        )
    if isinstance(record, EndpointTraffic):
        return (
            codec.ENDPOINT_TRAFFIC_INDEX,
            record.id(),
            codec.encode_endpoint(record),
        )
    raise TypeError(f"Not a traffic record: {type(record).__name__}")


async def seed_records(store: Any, records: Iterable[TrafficRecord]) -> None:
    """Write traffic records into a store exposing ``put``."""
    for record in records:
        logical_index, doc_id, document = record_document(record)
        await store.put(store.physical_index(logical_index), doc_id, document)

"""Example FastAPI application serving the metadata query endpoint.

Run with:
    uvicorn examples.fastapi_example:app --reload

Endpoints:
    POST /graphql   - metadata queries, answered with a JSON envelope
    GET  /          - a few sample queries to try

The store is in-memory and seeded on startup with a small topology, so the
example runs without a document store.
"""

import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from metagate.adapters.frameworks.fastapi import create_query_router
from metagate.adapters.storage import InMemoryDocumentStore, seed_records
from metagate.app import create_bridge
from metagate.core.ids import build_service_id
from metagate.core.models import (
    EndpointTraffic,
    InstanceTraffic,
    Layer,
    ServiceTraffic,
    TrafficRecord,
)
from metagate.core.time_bucket import minute_time_bucket

store = InMemoryDocumentStore()


def demo_records(now_ms: int) -> list[TrafficRecord]:
    """A storefront with a frontend, a cart service and its endpoints."""
    bucket = minute_time_bucket(now_ms)
    cart_id = build_service_id("store::cart")
    frontend_id = build_service_id("store::frontend")
    return [
        ServiceTraffic(
            name="store::cart",
            service_id=cart_id,
            layer=Layer.GENERAL,
            short_name="cart",
            group="store",
            time_bucket=bucket,
        ),
        ServiceTraffic(
            name="store::cart",
            service_id=cart_id,
            layer=Layer.MESH,
            short_name="cart",
            group="store",
            time_bucket=bucket,
        ),
        ServiceTraffic(
            name="store::frontend",
            service_id=frontend_id,
            layer=Layer.BROWSER,
            short_name="frontend",
            group="store",
            time_bucket=bucket,
        ),
        InstanceTraffic(
            service_id=cart_id,
            name="cart-7f9c",
            last_ping_time_bucket=bucket,
            layer=Layer.GENERAL,
            properties={"language": "python", "hostname": "cart-7f9c", "pid": 4312},
            time_bucket=bucket,
        ),
        EndpointTraffic(
            service_id=cart_id, name="POST /cart/items", time_bucket=bucket
        ),
        EndpointTraffic(service_id=cart_id, name="GET /cart", time_bucket=bucket),
    ]


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    await seed_records(store, demo_records(int(time.time() * 1000)))
    yield


app = FastAPI(title="Metadata Gateway Example", lifespan=lifespan)
app.include_router(create_query_router(create_bridge(store, query_max_size=5000)))


@app.get("/")
async def root() -> dict[str, list[str]]:
    """Sample queries to POST as {"query": ...} to /graphql."""
    return {
        "queries": [
            "{ listLayers }",
            "{ listServices { id name shortName group layers } }",
            '{ listServices(group: "store") { name layers } }',
        ]
    }

"""metagate: metadata query gateway for topology lookups.

Example:
    ```python
    from metagate import GatewayConfig, create_app

    app = create_app(GatewayConfig(storage="elasticsearch"))
    ```
"""

from metagate.app import create_app, create_bridge, create_store
from metagate.config import GatewayConfig
from metagate.core.bridge import RequestBridge
from metagate.core.errors import MetagateError, RequestMalformedError, StorageError
from metagate.core.metadata import MetadataStore
from metagate.core.models import (
    Attribute,
    Endpoint,
    Language,
    Layer,
    QueryEnvelope,
    Service,
    ServiceInstance,
)

__all__ = [
    "Attribute",
    "Endpoint",
    "GatewayConfig",
    "Language",
    "Layer",
    "MetadataStore",
    "MetagateError",
    "QueryEnvelope",
    "RequestBridge",
    "RequestMalformedError",
    "Service",
    "ServiceInstance",
    "StorageError",
    "create_app",
    "create_bridge",
    "create_store",
]

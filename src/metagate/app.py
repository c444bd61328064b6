"""Wiring of store, metadata service, engine, bridge and HTTP surface."""

from metagate.adapters.engine.graphql import GraphQLQueryEngine
from metagate.adapters.frameworks.asgi import ASGIApp, create_asgi_app
from metagate.adapters.storage.elasticsearch import ElasticsearchDocumentStore
from metagate.adapters.storage.in_memory import InMemoryDocumentStore
from metagate.adapters.storage.sqlite import SQLiteDocumentStore
from metagate.config import STORAGE_ELASTICSEARCH, STORAGE_SQLITE, GatewayConfig
from metagate.core.bridge import RequestBridge
from metagate.core.metadata import MetadataStore
from metagate.core.ports import DocumentStorePort
from metagate.core.service import MetadataQueryService


def create_store(config: GatewayConfig) -> DocumentStorePort:
    """Build the document store adapter selected by the config."""
    if config.storage == STORAGE_SQLITE:
        return SQLiteDocumentStore(config.sqlite_path, namespace=config.namespace)
    if config.storage == STORAGE_ELASTICSEARCH:
        auth = None
        if config.elasticsearch_user:
            auth = (config.elasticsearch_user, config.elasticsearch_password)
        return ElasticsearchDocumentStore(
            base_url=config.elasticsearch_url,
            namespace=config.namespace,
            timeout=config.elasticsearch_timeout,
            auth=auth,
        )
    return InMemoryDocumentStore(namespace=config.namespace)


def create_bridge(store: DocumentStorePort, query_max_size: int) -> RequestBridge:
    """Build the request bridge over a document store."""
    metadata = MetadataStore(store, query_max_size=query_max_size)
    engine = GraphQLQueryEngine(MetadataQueryService(metadata))
    return RequestBridge(engine)


def create_app(
    config: GatewayConfig | None = None, store: DocumentStorePort | None = None
) -> ASGIApp:
    """Create the gateway ASGI application.

    Args:
        config: Gateway settings; defaults to GatewayConfig.from_env().
        store: Document store to use instead of the configured one.
    """
    config = config or GatewayConfig.from_env()
    if store is None:
        store = create_store(config)
    return create_asgi_app(create_bridge(store, config.query_max_size), config.path)

"""Tests for port interfaces."""

from collections.abc import Callable, Mapping
from typing import Any

import pytest

from metagate.adapters.engine.graphql import GraphQLQueryEngine
from metagate.adapters.storage.elasticsearch import ElasticsearchDocumentStore
from metagate.adapters.storage.in_memory import InMemoryDocumentStore
from metagate.adapters.storage.sqlite import SQLiteDocumentStore
from metagate.core.metadata import MetadataStore
from metagate.core.ports import (
    DocumentStorePort,
    ExecutionOutcome,
    QueryEnginePort,
)
from metagate.core.search import Search, SearchHit
from metagate.core.service import MetadataQueryService


class TestDocumentStorePort:
    """Tests for DocumentStorePort protocol."""

    @pytest.mark.core
    def test_protocol_has_search_and_physical_index(self) -> None:
        assert hasattr(DocumentStorePort, "search")
        assert hasattr(DocumentStorePort, "physical_index")

    @pytest.mark.core
    def test_class_implementing_protocol_is_recognized(self) -> None:
        """A class with physical_index and search satisfies the port."""

        class FakeStore:
            def physical_index(self, logical_name: str) -> str:
                return logical_name

            async def search(self, index: str, search: Search) -> list[SearchHit]:
                return []

        assert isinstance(FakeStore(), DocumentStorePort)

    @pytest.mark.storage
    @pytest.mark.parametrize(
        "factory",
        [
            InMemoryDocumentStore,
            lambda: SQLiteDocumentStore(":memory:"),
            ElasticsearchDocumentStore,
        ],
        ids=["memory", "sqlite", "elasticsearch"],
    )
    def test_adapters_implement_port(self, factory: Callable[[], object]) -> None:
        assert isinstance(factory(), DocumentStorePort)


class TestQueryEnginePort:
    """Tests for QueryEnginePort protocol."""

    @pytest.mark.core
    def test_class_implementing_protocol_is_recognized(self) -> None:
        class FakeEngine:
            async def execute(
                self, query: str, variables: Mapping[str, Any] | None = None
            ) -> ExecutionOutcome:
                return ExecutionOutcome()

        assert isinstance(FakeEngine(), QueryEnginePort)

    @pytest.mark.engine
    def test_graphql_engine_implements_port(self) -> None:
        service = MetadataQueryService(MetadataStore(InMemoryDocumentStore()))

        assert isinstance(GraphQLQueryEngine(service), QueryEnginePort)

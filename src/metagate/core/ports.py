"""Port interfaces for the document store and the query engine.

These protocols define the contracts that adapters must implement.
The core depends only on these interfaces, not concrete implementations.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from metagate.core.search import Search, SearchHit


@runtime_checkable
class DocumentStorePort(Protocol):
    """Port for read access to the document store.

    Adapters implementing this protocol resolve logical index names and run
    structured searches.
    Examples: InMemoryDocumentStore, SQLiteDocumentStore,
    ElasticsearchDocumentStore.
    """

    def physical_index(self, logical_name: str) -> str:
        """Resolve a logical index name to the physical one to search."""
        ...

    async def search(self, index: str, search: Search) -> list[SearchHit]:
        """Run a search against a physical index.

        Args:
            index: Physical index name.
            search: Query and size limit.

        Returns:
            Hits in store order, at most ``search.size`` of them.

        Raises:
            StorageError: If the store cannot be reached or answers badly.
        """
        ...


@dataclass(frozen=True)
class EngineError:
    """A structured error reported by the query engine.

    Attributes:
        message: Human readable description.
        locations: (line, column) pairs in the query source, when known.
        path: Response path of the failing field, when known.
    """

    message: str
    locations: list[tuple[int, int]] = field(default_factory=list)
    path: list[str | int] | None = None


@dataclass(frozen=True)
class ExecutionOutcome:
    """Result of running one query: possibly-null data plus errors."""

    data: Mapping[str, Any] | None = None
    errors: list[EngineError] = field(default_factory=list)


@runtime_checkable
class QueryEnginePort(Protocol):
    """Port for the query-execution engine."""

    async def execute(
        self, query: str, variables: Mapping[str, Any] | None = None
    ) -> ExecutionOutcome:
        """Execute a query.

        Args:
            query: Query source text.
            variables: Bound variables, or None when none were supplied.
        """
        ...

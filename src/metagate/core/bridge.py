"""Request bridge between the HTTP surface and the query engine.

The bridge is the single place where failures are recovered: ``execute`` and
``handle`` always return a QueryEnvelope and never raise.
"""

import enum
import json
import logging
from collections.abc import Mapping
from dataclasses import asdict, is_dataclass
from typing import Any

from metagate.core.errors import RequestMalformedError
from metagate.core.models import QueryEnvelope
from metagate.core.ports import EngineError, QueryEnginePort

logger = logging.getLogger(__name__)

QUERY = "query"
VARIABLES = "variables"


def _json_default(value: Any) -> Any:
    if isinstance(value, enum.Enum):
        return value.name
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def to_plain(data: Mapping[str, Any]) -> dict[str, Any]:
    """Convert engine data to plain JSON types by a serialize/parse round trip."""
    result: dict[str, Any] = json.loads(json.dumps(data, default=_json_default))
    return result


def parse_request(body: bytes | str) -> tuple[str, dict[str, Any] | None]:
    """Decode a raw request body into (query, variables).

    Args:
        body: JSON object with a required string ``query`` and an optional
            ``variables`` object.

    Returns:
        The query text and the variables, None when absent or null.

    Raises:
        RequestMalformedError: If the body is not such an object.
    """
    try:
        payload = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise RequestMalformedError(f"Request body is not valid JSON: {exc}") from exc
    except RecursionError as exc:
        raise RequestMalformedError("Request body is nested too deeply") from exc
    if not isinstance(payload, dict):
        raise RequestMalformedError("Request body must be a JSON object")
    query = payload.get(QUERY)
    if not isinstance(query, str):
        raise RequestMalformedError("Request is missing the 'query' string field")
    variables = payload.get(VARIABLES)
    if variables is not None and not isinstance(variables, dict):
        raise RequestMalformedError("'variables' must be a JSON object")
    return query, variables


class ErrorAggregator:
    """Collects partial data and errors into one envelope.

    Data is kept when non-null; errors are kept in the order added. Either
    part is omitted from the envelope when empty.
    """

    def __init__(self) -> None:
        self._data: dict[str, Any] | None = None
        self._errors: list[str] = []

    def set_data(self, data: Mapping[str, Any] | None) -> None:
        self._data = None if data is None else to_plain(data)

    def add_error(self, message: str) -> None:
        self._errors.append(message)

    def add_engine_errors(self, errors: list[EngineError]) -> None:
        for error in errors:
            self.add_error(error.message)

    def envelope(self) -> QueryEnvelope:
        return QueryEnvelope(data=self._data, errors=list(self._errors) or None)


def error_envelope(message: str) -> QueryEnvelope:
    """Envelope carrying a single error and no data."""
    aggregator = ErrorAggregator()
    aggregator.add_error(message)
    return aggregator.envelope()


def _failure_message(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


class RequestBridge:
    """Runs queries on the engine and renders the outcome as an envelope."""

    def __init__(self, engine: QueryEnginePort) -> None:
        """Initialize the bridge.

        Args:
            engine: Query engine implementing QueryEnginePort.
        """
        self._engine = engine

    async def execute(
        self, query: str, variables: Mapping[str, Any] | None = None
    ) -> QueryEnvelope:
        """Execute a query and return its envelope.

        Variables are only forwarded when non-empty. Any exception raised
        while executing is logged and returned as a single-error envelope.
        """
        try:
            outcome = await self._engine.execute(query, variables or None)
            logger.debug("Execution result is %s", outcome)
            aggregator = ErrorAggregator()
            aggregator.set_data(outcome.data)
            aggregator.add_engine_errors(outcome.errors)
            return aggregator.envelope()
        except Exception as exc:
            logger.exception("Query execution failed: %s", exc)
            return error_envelope(_failure_message(exc))

    async def handle(self, body: bytes | str) -> QueryEnvelope:
        """Parse a raw request body and execute it.

        A malformed body, or any other failure while parsing it, is returned
        as a single-error envelope.
        """
        try:
            query, variables = parse_request(body)
        except RequestMalformedError as exc:
            logger.warning("Rejected malformed request: %s", exc)
            return error_envelope(str(exc))
        except Exception as exc:
            logger.exception("Failed to parse request: %s", exc)
            return error_envelope(_failure_message(exc))
        return await self.execute(query, variables)

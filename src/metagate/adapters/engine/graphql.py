"""GraphQL query engine backed by graphql-core.

The schema is declared in SDL and its resolvers come from a fixed table
mapping type name -> field name -> resolver, attached once when the engine
is built. Resolvers receive the MetadataQueryService as the execution
context, so the engine itself holds no per-request state.
"""

from collections.abc import Callable, Mapping
from typing import Any

from graphql import (
    ExecutionResult,
    GraphQLError,
    GraphQLObjectType,
    GraphQLSchema,
    build_schema,
    graphql,
)

from metagate.core.models import Service, ServiceInstance
from metagate.core.ports import EngineError, ExecutionOutcome
from metagate.core.service import MetadataQueryService
from metagate.core.time_bucket import Duration, Step

METADATA_SCHEMA = """
type Query {
    listLayers: [String!]!
    listServices(layer: String, group: String): [Service!]!
    getService(serviceId: String!): Service
    listInstances(duration: Duration!, serviceId: ID!): [ServiceInstance!]!
    getInstance(instanceId: String!): ServiceInstance
    findEndpoint(keyword: String, serviceId: ID!, limit: Int!): [Endpoint!]!
}

input Duration {
    start: String!
    end: String!
    step: Step!
}

enum Step {
    DAY
    HOUR
    MINUTE
    SECOND
}

type Service {
    id: ID!
    name: String!
    shortName: String!
    group: String!
    layers: [String!]!
}

type ServiceInstance {
    id: ID!
    name: String!
    instanceUUID: String!
    layer: String!
    language: Language!
    attributes: [Attribute!]!
}

type Attribute {
    key: String!
    value: String!
}

type Endpoint {
    id: ID!
    name: String!
}

enum Language {
    UNKNOWN
    JAVA
    DOTNET
    NODEJS
    PYTHON
    RUBY
    GO
    LUA
    PHP
}
"""

Resolver = Callable[..., Any]


def _service(info: Any) -> MetadataQueryService:
    service: MetadataQueryService = info.context
    return service


def _to_duration(raw: Mapping[str, Any]) -> Duration:
    step = raw.get("step", Step.MINUTE)
    if not isinstance(step, Step):
        step = Step(getattr(step, "name", step))
    return Duration(start=raw["start"], end=raw["end"], step=step)


async def _list_layers(_root: Any, info: Any) -> list[str]:
    return await _service(info).list_layers()


async def _list_services(
    _root: Any, info: Any, layer: str | None = None, group: str | None = None
) -> list[Service]:
    return await _service(info).list_services(layer, group)


async def _get_service(
    _root: Any, info: Any, serviceId: str  # noqa: N803
) -> Service | None:
    return await _service(info).get_service(serviceId)


async def _list_instances(
    _root: Any, info: Any, duration: Mapping[str, Any], serviceId: str  # noqa: N803
) -> list[ServiceInstance]:
    return await _service(info).list_instances(_to_duration(duration), serviceId)


async def _get_instance(
    _root: Any, info: Any, instanceId: str  # noqa: N803
) -> ServiceInstance | None:
    return await _service(info).get_instance(instanceId)


async def _find_endpoint(
    _root: Any,
    info: Any,
    serviceId: str,  # noqa: N803
    limit: int,
    keyword: str | None = None,
) -> list[Any]:
    return await _service(info).find_endpoint(keyword, serviceId, limit)


RESOLVERS: dict[str, dict[str, Resolver]] = {
    "Query": {
        "listLayers": _list_layers,
        "listServices": _list_services,
        "getService": _get_service,
        "listInstances": _list_instances,
        "getInstance": _get_instance,
        "findEndpoint": _find_endpoint,
    },
    "Service": {
        "shortName": lambda service, _info: service.short_name,
    },
    "ServiceInstance": {
        "instanceUUID": lambda instance, _info: instance.instance_uuid,
        "language": lambda instance, _info: instance.language.name,
    },
}


def build_metadata_schema(
    resolvers: Mapping[str, Mapping[str, Resolver]] = RESOLVERS,
) -> GraphQLSchema:
    """Build the metadata schema and attach the resolver table.

    Raises:
        KeyError: If the table names a type or field the schema lacks.
    """
    schema = build_schema(METADATA_SCHEMA)
    for type_name, fields in resolvers.items():
        graphql_type = schema.get_type(type_name)
        if not isinstance(graphql_type, GraphQLObjectType):
            raise KeyError(f"Schema has no object type {type_name!r}")
        for field_name, resolver in fields.items():
            graphql_type.fields[field_name].resolve = resolver
    return schema


def _to_engine_error(error: GraphQLError) -> EngineError:
    locations = [(loc.line, loc.column) for loc in error.locations or []]
    path = list(error.path) if error.path is not None else None
    return EngineError(message=error.message, locations=locations, path=path)


def to_outcome(result: ExecutionResult) -> ExecutionOutcome:
    """Convert a graphql-core result into the engine port's outcome."""
    return ExecutionOutcome(
        data=result.data,
        errors=[_to_engine_error(error) for error in result.errors or []],
    )


class GraphQLQueryEngine:
    """QueryEnginePort implementation executing GraphQL documents."""

    def __init__(
        self, service: MetadataQueryService, schema: GraphQLSchema | None = None
    ) -> None:
        """Initialize the engine.

        Args:
            service: Metadata query service handed to resolvers as context.
            schema: Prebuilt schema; defaults to build_metadata_schema().
        """
        self._service = service
        self._schema = schema if schema is not None else build_metadata_schema()

    @property
    def schema(self) -> GraphQLSchema:
        return self._schema

    async def execute(
        self, query: str, variables: Mapping[str, Any] | None = None
    ) -> ExecutionOutcome:
        """Execute a GraphQL document against the metadata schema."""
        result = await graphql(
            self._schema,
            query,
            context_value=self._service,
            variable_values=dict(variables) if variables is not None else None,
        )
        return to_outcome(result)

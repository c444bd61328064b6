"""Core domain models for topology metadata.

Two families live here. Traffic records are the persisted form of a metadata
object, exactly as decoded from the document store. Service, ServiceInstance
and Endpoint are the API-facing objects derived from them and returned to
query callers.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from metagate.core.ids import build_endpoint_id, build_instance_id

# Closed value type of an instance property bag.
PropertyValue = str | int | float | bool


class Layer(Enum):
    """Technology domain a service or instance was observed in.

    The integer value is what the document store holds; callers see the name.
    """

    UNDEFINED = 0
    MESH = 1
    GENERAL = 2
    OS_LINUX = 3
    K8S = 4
    FAAS = 5
    MESH_CP = 6
    MESH_DP = 7
    DATABASE = 8
    CACHE = 9
    BROWSER = 10
    SO11Y_OAP = 11
    SO11Y_SATELLITE = 12
    MQ = 13
    VIRTUAL_DATABASE = 14

    @classmethod
    def from_name(cls, name: str) -> "Layer":
        """Look up a layer by name.

        Raises:
            ValueError: If no layer has that name.
        """
        try:
            return cls[name]
        except KeyError:
            raise ValueError(f"Unknown layer: {name}") from None

    @classmethod
    def from_value(cls, value: Any) -> "Layer":
        """Decode a stored layer value, falling back to UNDEFINED."""
        try:
            return cls(int(value))
        except (TypeError, ValueError):
            return cls.UNDEFINED


class Language(Enum):
    """Agent language reported in an instance property bag."""

    UNKNOWN = "UNKNOWN"
    JAVA = "JAVA"
    DOTNET = "DOTNET"
    NODEJS = "NODEJS"
    PYTHON = "PYTHON"
    RUBY = "RUBY"
    GO = "GO"
    LUA = "LUA"
    PHP = "PHP"

    @classmethod
    def parse(cls, value: str | None) -> "Language":
        """Parse a language name case-insensitively, defaulting to UNKNOWN."""
        if not value:
            return cls.UNKNOWN
        return cls.__members__.get(value.strip().upper(), cls.UNKNOWN)


# --- Traffic records (persisted form) ---


@dataclass(frozen=True)
class ServiceTraffic:
    """A service as persisted by the ingestion path.

    Attributes:
        name: Full service name, possibly carrying a "group::" prefix.
        service_id: Encoded service identifier.
        layer: Layer the service was observed in.
        short_name: Name without the group prefix.
        group: Group prefix, empty when the name carries none.
        time_bucket: Minute bucket of the last write.
    """

    name: str
    service_id: str
    layer: Layer = Layer.UNDEFINED
    short_name: str = ""
    group: str = ""
    time_bucket: int = 0

    def id(self) -> str:
        """Storage identifier; one row per (service, layer) pair."""
        return f"{self.service_id}-{self.layer.value}"


@dataclass(frozen=True)
class InstanceTraffic:
    """A service instance as persisted by the ingestion path.

    Attributes:
        service_id: Identifier of the owning service.
        name: Instance name.
        last_ping_time_bucket: Minute bucket of the last heartbeat.
        layer: Layer the instance was observed in.
        properties: Ordered property bag, or None when the agent sent none.
        time_bucket: Minute bucket of the last write.
    """

    service_id: str
    name: str
    last_ping_time_bucket: int = 0
    layer: Layer = Layer.UNDEFINED
    properties: dict[str, PropertyValue] | None = None
    time_bucket: int = 0

    def id(self) -> str:
        """Storage identifier built from the owning service and the name."""
        return build_instance_id(self.service_id, self.name)


@dataclass(frozen=True)
class EndpointTraffic:
    """An endpoint as persisted by the ingestion path."""

    service_id: str
    name: str
    time_bucket: int = 0

    def id(self) -> str:
        """Storage identifier built from the owning service and the name."""
        return build_endpoint_id(self.service_id, self.name)


TrafficRecord = ServiceTraffic | InstanceTraffic | EndpointTraffic


# --- Domain objects (API-facing) ---


@dataclass(frozen=True)
class Attribute:
    """An instance property that has no first-class field."""

    key: str
    value: str


@dataclass
class Service:
    """A service as returned to query callers."""

    id: str
    name: str
    short_name: str = ""
    group: str = ""
    layers: list[str] = field(default_factory=list)


@dataclass
class ServiceInstance:
    """A service instance as returned to query callers."""

    id: str
    name: str
    instance_uuid: str
    layer: str
    language: Language = Language.UNKNOWN
    attributes: list[Attribute] = field(default_factory=list)


@dataclass
class Endpoint:
    """An endpoint as returned to query callers."""

    id: str
    name: str


# --- Query envelope ---


@dataclass(frozen=True)
class QueryEnvelope:
    """Uniform response of a query, success or failure.

    Attributes:
        data: Plain JSON-compatible payload, None when the engine produced none.
        errors: Error messages in engine order, None when there were none.
    """

    data: dict[str, Any] | None = None
    errors: list[str] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Render as the wire shape, omitting absent fields."""
        body: dict[str, Any] = {}
        if self.data is not None:
            body["data"] = self.data
        if self.errors:
            body["errors"] = [{"message": message} for message in self.errors]
        return body

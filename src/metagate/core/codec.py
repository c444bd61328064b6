"""Entity codec: stored documents <-> traffic records -> domain objects.

All functions here are pure. Decoding tolerates missing optional columns so
that documents written by older ingestion versions still decode; every
absent value maps to an explicit empty value.
"""

import json
from collections.abc import Mapping
from typing import Any

from metagate.core.models import (
    Attribute,
    Endpoint,
    EndpointTraffic,
    InstanceTraffic,
    Language,
    Layer,
    PropertyValue,
    Service,
    ServiceInstance,
    ServiceTraffic,
)

# Logical index names
SERVICE_TRAFFIC_INDEX = "service_traffic"
INSTANCE_TRAFFIC_INDEX = "instance_traffic"
ENDPOINT_TRAFFIC_INDEX = "endpoint_traffic"

# Stored column names
NAME = "name"
SHORT_NAME = "short_name"
SERVICE_ID = "service_id"
GROUP = "service_group"
LAYER = "layer"
TIME_BUCKET = "time_bucket"
LAST_PING_TIME_BUCKET = "last_ping"
PROPERTIES = "properties"
ID = "_id"

# Property-bag key promoted to ServiceInstance.language
LANGUAGE = "language"

_GROUP_SEPARATOR = "::"


def match_column(column: str) -> str:
    """Name of the analyzed copy of a column used for keyword matching."""
    return f"{column}_match"


def split_service_name(name: str) -> tuple[str, str]:
    """Split "group::short" into (group, short); no separator means no group."""
    group, sep, short_name = name.partition(_GROUP_SEPARATOR)
    if not sep:
        return "", name
    return group, short_name


def _as_str(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _as_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def property_to_str(value: PropertyValue) -> str:
    """Render a property value the way it is shown to callers."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _decode_properties(raw: Any) -> dict[str, PropertyValue] | None:
    if raw is None:
        return None
    if isinstance(raw, str):
        if not raw:
            return None
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError:
            return None
    if not isinstance(raw, Mapping):
        return None
    properties: dict[str, PropertyValue] = {}
    for key, value in raw.items():
        if isinstance(value, str | int | float | bool):
            properties[str(key)] = value
        elif value is not None:
            properties[str(key)] = json.dumps(value)
    return properties


# --- storage -> record ---


def decode_service(source: Mapping[str, Any]) -> ServiceTraffic:
    """Build a ServiceTraffic from a stored document."""
    name = _as_str(source.get(NAME))
    derived_group, derived_short = split_service_name(name)
    short_name = _as_str(source.get(SHORT_NAME)) or derived_short
    group = source.get(GROUP)
    return ServiceTraffic(
        name=name,
        service_id=_as_str(source.get(SERVICE_ID)),
        layer=Layer.from_value(source.get(LAYER)),
        short_name=short_name,
        group=derived_group if group is None else _as_str(group),
        time_bucket=_as_int(source.get(TIME_BUCKET)),
    )


def decode_instance(source: Mapping[str, Any]) -> InstanceTraffic:
    """Build an InstanceTraffic from a stored document."""
    return InstanceTraffic(
        service_id=_as_str(source.get(SERVICE_ID)),
        name=_as_str(source.get(NAME)),
        last_ping_time_bucket=_as_int(source.get(LAST_PING_TIME_BUCKET)),
        layer=Layer.from_value(source.get(LAYER)),
        properties=_decode_properties(source.get(PROPERTIES)),
        time_bucket=_as_int(source.get(TIME_BUCKET)),
    )


def decode_endpoint(source: Mapping[str, Any]) -> EndpointTraffic:
    """Build an EndpointTraffic from a stored document."""
    return EndpointTraffic(
        service_id=_as_str(source.get(SERVICE_ID)),
        name=_as_str(source.get(NAME)),
        time_bucket=_as_int(source.get(TIME_BUCKET)),
    )


# --- record -> storage ---


def encode_service(record: ServiceTraffic) -> dict[str, Any]:
    """Render a ServiceTraffic as a stored document."""
    return {
        NAME: record.name,
        SHORT_NAME: record.short_name,
        SERVICE_ID: record.service_id,
        GROUP: record.group,
        LAYER: record.layer.value,
        TIME_BUCKET: record.time_bucket,
    }


def encode_instance(record: InstanceTraffic) -> dict[str, Any]:
    """Render an InstanceTraffic as a stored document.

    The property bag is stored as JSON text, the way the ingestion path
    writes it.
    """
    document: dict[str, Any] = {
        SERVICE_ID: record.service_id,
        NAME: record.name,
        LAST_PING_TIME_BUCKET: record.last_ping_time_bucket,
        LAYER: record.layer.value,
        TIME_BUCKET: record.time_bucket,
    }
    if record.properties is not None:
        document[PROPERTIES] = json.dumps(record.properties)
    return document


def encode_endpoint(record: EndpointTraffic) -> dict[str, Any]:
    """Render an EndpointTraffic as a stored document."""
    return {
        SERVICE_ID: record.service_id,
        NAME: record.name,
        match_column(NAME): record.name,
        TIME_BUCKET: record.time_bucket,
    }


# --- record -> domain ---


def to_service(record: ServiceTraffic) -> Service:
    """Derive the API-facing Service from a ServiceTraffic."""
    return Service(
        id=record.service_id,
        name=record.name,
        short_name=record.short_name,
        group=record.group,
        layers=[record.layer.name],
    )


def to_instance(record: InstanceTraffic) -> ServiceInstance:
    """Derive the API-facing ServiceInstance from an InstanceTraffic.

    The "language" property becomes the language field and every other
    property an Attribute, in bag order. Language stays UNKNOWN when the
    bag is absent or carries no language.
    """
    instance_id = record.id()
    language = Language.UNKNOWN
    attributes: list[Attribute] = []
    if record.properties is not None:
        for key, value in record.properties.items():
            if key == LANGUAGE:
                language = Language.parse(property_to_str(value))
            else:
                attributes.append(Attribute(key=key, value=property_to_str(value)))
    return ServiceInstance(
        id=instance_id,
        name=record.name,
        instance_uuid=instance_id,
        layer=record.layer.name,
        language=language,
        attributes=attributes,
    )


def to_endpoint(record: EndpointTraffic) -> Endpoint:
    """Derive the API-facing Endpoint from an EndpointTraffic."""
    return Endpoint(id=record.id(), name=record.name)

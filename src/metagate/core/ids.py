"""Identifier encoding for services, instances and endpoints.

A service id is the base64 of the service name followed by a normal flag
(``.1`` for services observed through an agent, ``.0`` for conjectured ones
such as databases seen from the client side). Instance and endpoint ids
append the base64 of their own name to the owning service id.
"""

import base64
import binascii

_SERVICE_ID_CONNECTOR = "."
_ENTITY_ID_CONNECTOR = "_"


def _encode(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def _decode(text: str) -> str:
    try:
        return base64.b64decode(text.encode("ascii"), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeError) as exc:
        raise ValueError(f"Malformed id segment: {text!r}") from exc


def build_service_id(name: str, normal: bool = True) -> str:
    """Build the id of a service from its name."""
    return f"{_encode(name)}{_SERVICE_ID_CONNECTOR}{1 if normal else 0}"


def analyze_service_id(service_id: str) -> tuple[str, bool]:
    """Split a service id into its name and normal flag.

    Raises:
        ValueError: If the id was not produced by build_service_id.
    """
    encoded, sep, flag = service_id.rpartition(_SERVICE_ID_CONNECTOR)
    if not sep or flag not in ("0", "1"):
        raise ValueError(f"Malformed service id: {service_id!r}")
    return _decode(encoded), flag == "1"


def build_instance_id(service_id: str, instance_name: str) -> str:
    """Build the id of a service instance."""
    return f"{service_id}{_ENTITY_ID_CONNECTOR}{_encode(instance_name)}"


def build_endpoint_id(service_id: str, endpoint_name: str) -> str:
    """Build the id of an endpoint."""
    return f"{service_id}{_ENTITY_ID_CONNECTOR}{_encode(endpoint_name)}"


def analyze_entity_id(entity_id: str) -> tuple[str, str]:
    """Split an instance or endpoint id into (service_id, name).

    Raises:
        ValueError: If the id has no connector or a malformed name segment.
    """
    # base64 never produces "_", so the last connector separates the two parts
    service_id, sep, encoded = entity_id.rpartition(_ENTITY_ID_CONNECTOR)
    if not sep or not service_id:
        raise ValueError(f"Malformed entity id: {entity_id!r}")
    return service_id, _decode(encoded)

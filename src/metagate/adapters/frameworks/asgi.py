"""ASGI generic adapter for the query endpoint.

This adapter provides a framework-agnostic ASGI application that can be used
with any ASGI server (uvicorn, hypercorn, daphne) without requiring FastAPI
as a dependency.
"""

import json
import logging
from collections.abc import Callable, Coroutine
from typing import Any

from metagate.core.bridge import RequestBridge, error_envelope

logger = logging.getLogger(__name__)

# ASGI type aliases
Scope = dict[str, Any]
Receive = Callable[[], Coroutine[Any, Any, dict[str, Any]]]
Send = Callable[[dict[str, Any]], Coroutine[Any, Any, None]]
ASGIApp = Callable[[Scope, Receive, Send], Coroutine[Any, Any, None]]

JSON_CONTENT_TYPE = "application/json"


async def _read_body(receive: Receive) -> bytes | None:
    """Read the full request body from ASGI http.request messages.

    Returns None when the client disconnects before the body is complete.
    """
    chunks: list[bytes] = []
    while True:
        message = await receive()
        if message["type"] == "http.disconnect":
            return None
        chunks.append(message.get("body", b""))
        if not message.get("more_body", False):
            break
    return b"".join(chunks)


async def _send_response(
    send: Send,
    status: int,
    content_type: str,
    body: str,
    extra_headers: list[tuple[bytes, bytes]] | None = None,
) -> None:
    """Send an HTTP response with headers and body.

    Args:
        send: ASGI send callable for writing response.
        status: HTTP status code.
        content_type: Content-Type header value.
        body: Response body as string (will be encoded to bytes).
        extra_headers: Additional raw headers.
    """
    headers = [(b"content-type", content_type.encode())]
    headers.extend(extra_headers or [])
    await send({"type": "http.response.start", "status": status, "headers": headers})
    await send({"type": "http.response.body", "body": body.encode()})


async def _handle_query(bridge: RequestBridge, receive: Receive, send: Send) -> None:
    """Run a POSTed query through the bridge and send the envelope.

    The envelope always goes out with status 200; only a failure to even
    read the request body is answered with a bare error envelope. Nothing is
    executed or sent when the client disconnects mid-body.
    """
    try:
        body = await _read_body(receive)
    except Exception as exc:
        logger.exception("Error reading query request body")
        envelope = error_envelope(f"Failed to read request body: {exc}")
    else:
        if body is None:
            logger.info("Client disconnected before the request body completed")
            return
        envelope = await bridge.handle(body)
    await _send_response(send, 200, JSON_CONTENT_TYPE, json.dumps(envelope.to_dict()))


def create_asgi_app(bridge: RequestBridge, path: str = "/graphql") -> ASGIApp:
    """Create an ASGI app serving the query endpoint.

    Args:
        bridge: Request bridge that executes queries.
        path: Path of the POST endpoint.

    Returns:
        ASGI application callable.
    """

    async def app(scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            return

        if scope["path"] != path:
            await _send_response(send, 404, "text/plain", "Not Found")
        elif scope["method"] != "POST":
            await _send_response(
                send,
                405,
                "text/plain",
                "Method Not Allowed",
                extra_headers=[(b"allow", b"POST")],
            )
        else:
            await _handle_query(bridge, receive, send)

    return app

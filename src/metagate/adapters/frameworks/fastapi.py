"""FastAPI adapter for the query endpoint."""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from metagate.core.bridge import RequestBridge


def create_query_router(bridge: RequestBridge, path: str = "/graphql") -> APIRouter:
    """Create a FastAPI router with the POST query endpoint.

    The raw body is handed to the bridge unparsed so that malformed requests
    are answered with an error envelope instead of a 422.

    Args:
        bridge: Request bridge that executes queries.
        path: Path of the POST endpoint.

    Returns:
        APIRouter with the query endpoint configured.
    """
    router = APIRouter()

    @router.post(path)
    async def query(request: Request) -> JSONResponse:
        """Execute a query and return its envelope."""
        envelope = await bridge.handle(await request.body())
        return JSONResponse(content=envelope.to_dict(), status_code=200)

    return router

"""Example running the gateway as a plain ASGI app, without FastAPI.

Run with:
    METAGATE_STORAGE=sqlite METAGATE_SQLITE_PATH=metadata.db \
        uvicorn --factory examples.asgi_example:create

Then:
    curl -s localhost:8000/graphql -d '{"query": "{ listServices { name } }"}'

Settings come from METAGATE_* environment variables (see GatewayConfig).
"""

import logging

from metagate import GatewayConfig, create_app
from metagate.adapters.frameworks.asgi import ASGIApp

logging.basicConfig(level=logging.INFO)


def create() -> ASGIApp:
    config = GatewayConfig.from_env()
    logging.getLogger(__name__).info(
        "Serving %s from %s storage", config.path, config.storage
    )
    return create_app(config)

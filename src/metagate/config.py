"""Gateway configuration."""

import os
from collections.abc import Mapping
from dataclasses import dataclass

from metagate.core.metadata import DEFAULT_QUERY_MAX_SIZE

ENV_PREFIX = "METAGATE_"

STORAGE_MEMORY = "memory"
STORAGE_SQLITE = "sqlite"
STORAGE_ELASTICSEARCH = "elasticsearch"
VALID_STORAGES = {STORAGE_MEMORY, STORAGE_SQLITE, STORAGE_ELASTICSEARCH}


@dataclass(frozen=True)
class GatewayConfig:
    """Settings for one gateway process.

    Attributes:
        path: Path of the POST query endpoint.
        query_max_size: Upper bound on rows returned by list queries.
        namespace: Prefix applied to physical index names.
        storage: Document store backend: memory, sqlite or elasticsearch.
        sqlite_path: Database file for the sqlite backend.
        elasticsearch_url: Cluster URL for the elasticsearch backend.
        elasticsearch_timeout: Request timeout in seconds.
        elasticsearch_user: Basic auth user, empty for none.
        elasticsearch_password: Basic auth password.
    """

    path: str = "/graphql"
    query_max_size: int = DEFAULT_QUERY_MAX_SIZE
    namespace: str = ""
    storage: str = STORAGE_MEMORY
    sqlite_path: str = ":memory:"
    elasticsearch_url: str = "http://localhost:9200"
    elasticsearch_timeout: float = 30.0
    elasticsearch_user: str = ""
    elasticsearch_password: str = ""

    def __post_init__(self) -> None:
        if not self.path.startswith("/"):
            raise ValueError(f"path must start with '/': {self.path!r}")
        if self.query_max_size < 1:
            raise ValueError("query_max_size must be positive")
        if self.storage not in VALID_STORAGES:
            raise ValueError(
                f"storage must be one of {sorted(VALID_STORAGES)}: {self.storage!r}"
            )
        if self.elasticsearch_timeout <= 0:
            raise ValueError("elasticsearch_timeout must be positive")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "GatewayConfig":
        """Build a config from METAGATE_* variables, defaulting the rest.

        Raises:
            ValueError: If a numeric variable does not parse or a value is
                out of range.
        """
        env = os.environ if environ is None else environ

        def get(name: str, default: str) -> str:
            return env.get(f"{ENV_PREFIX}{name}", default)

        defaults = cls()
        try:
            query_max_size = int(get("QUERY_MAX_SIZE", str(defaults.query_max_size)))
            timeout = float(
                get("ELASTICSEARCH_TIMEOUT", str(defaults.elasticsearch_timeout))
            )
        except ValueError as exc:
            raise ValueError(f"Invalid numeric setting: {exc}") from exc
        return cls(
            path=get("PATH", defaults.path),
            query_max_size=query_max_size,
            namespace=get("NAMESPACE", defaults.namespace),
            storage=get("STORAGE", defaults.storage).lower(),
            sqlite_path=get("SQLITE_PATH", defaults.sqlite_path),
            elasticsearch_url=get("ELASTICSEARCH_URL", defaults.elasticsearch_url),
            elasticsearch_timeout=timeout,
            elasticsearch_user=get("ELASTICSEARCH_USER", ""),
            elasticsearch_password=get("ELASTICSEARCH_PASSWORD", ""),
        )

"""Server configuration from environment variables (.env loaded by main)."""

import os
from dataclasses import dataclass
from datetime import timedelta

from factswap.application.exchange_queue import DEFAULT_BATCH_SIZE

STORE_MEMORY = "memory"
STORE_NEO4J = "neo4j"


def _env(name: str, default: str) -> str:
    return os.environ.get(name, default).strip() or default


@dataclass(frozen=True)
class Settings:
    public_origin: str = "http://localhost:8010"
    store: str = STORE_MEMORY
    neo4j_uri: str = "bolt://localhost:7687"
    neo4j_user: str = "neo4j"
    neo4j_password: str = "password"
    alias_ttl: timedelta = timedelta(hours=12)
    exchange_batch_size: int = DEFAULT_BATCH_SIZE

    @classmethod
    def from_env(cls) -> "Settings":
        store = _env("FACTSWAP_STORE", STORE_MEMORY).lower()
        if store not in (STORE_MEMORY, STORE_NEO4J):
            raise ValueError(f"FACTSWAP_STORE must be '{STORE_MEMORY}' or '{STORE_NEO4J}', got '{store}'")
        return cls(
            public_origin=_env("FACTSWAP_PUBLIC_ORIGIN", cls.public_origin).rstrip("/"),
            store=store,
            neo4j_uri=_env("NEO4J_URI", cls.neo4j_uri),
            neo4j_user=_env("NEO4J_USER", cls.neo4j_user),
            neo4j_password=_env("NEO4J_PASSWORD", cls.neo4j_password),
            alias_ttl=timedelta(hours=float(_env("FACTSWAP_ALIAS_TTL_HOURS", "12"))),
            exchange_batch_size=int(_env("FACTSWAP_EXCHANGE_BATCH", str(DEFAULT_BATCH_SIZE))),
        )

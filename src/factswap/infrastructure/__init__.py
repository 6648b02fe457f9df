"""Infrastructure layer: concrete implementations of application ports."""

from factswap.infrastructure.http_client import ShareApiClient
from factswap.infrastructure.identity import get_or_create_profile_id
from factswap.infrastructure.json_store import JsonContactStore
from factswap.infrastructure.memory_repository import (
    InMemoryAliasStore,
    InMemoryContactStore,
    InMemoryExchangeStore,
)
from factswap.infrastructure.persistence.neo4j_repository import (
    Neo4jAliasStore,
    Neo4jExchangeStore,
    ensure_share_constraints,
)
from factswap.infrastructure.profile import ShareProfile, load_share_profile

__all__ = [
    "InMemoryAliasStore",
    "InMemoryContactStore",
    "InMemoryExchangeStore",
    "JsonContactStore",
    "Neo4jAliasStore",
    "Neo4jExchangeStore",
    "ShareApiClient",
    "ShareProfile",
    "ensure_share_constraints",
    "get_or_create_profile_id",
    "load_share_profile",
]

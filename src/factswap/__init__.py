"""
FactSwap core: clean-architecture layout.

- domain: entities (Owner, ShareGroup, SharePayload, Contact, ExchangeRecord) and the privacy filter.
- application: token codec, ContactMerger, ExchangeQueue, alias services, poller, ports, DTOs.
- infrastructure: adapters (in-memory, JSON file and Neo4j stores, httpx API client).
"""

from factswap.application import (
    AliasResolver,
    AliasService,
    ContactMerger,
    ExchangePoller,
    ExchangeQueue,
    InvalidShareToken,
    MergeResult,
    MissingIdentityError,
    RemoteServiceError,
    ShareService,
    StaleAliasError,
)
from factswap.application.token_codec import QR_SAFE_LENGTH, decode, encode
from factswap.domain import (
    Contact,
    Fact,
    Owner,
    PrivacyLevel,
    ShareGroup,
    SharePayload,
    filter_owner,
)
from factswap.infrastructure import (
    InMemoryContactStore,
    InMemoryExchangeStore,
    JsonContactStore,
    ShareApiClient,
)

__all__ = [
    "QR_SAFE_LENGTH",
    "AliasResolver",
    "AliasService",
    "Contact",
    "ContactMerger",
    "ExchangePoller",
    "ExchangeQueue",
    "Fact",
    "InMemoryContactStore",
    "InMemoryExchangeStore",
    "InvalidShareToken",
    "JsonContactStore",
    "MergeResult",
    "MissingIdentityError",
    "Owner",
    "PrivacyLevel",
    "RemoteServiceError",
    "ShareApiClient",
    "ShareGroup",
    "SharePayload",
    "ShareService",
    "StaleAliasError",
    "decode",
    "encode",
    "filter_owner",
]

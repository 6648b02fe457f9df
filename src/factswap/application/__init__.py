"""Application layer: codec, merge and exchange use cases, ports, and DTOs. Depends only on domain."""

from factswap.application.alias_resolver import AliasResolver
from factswap.application.alias_service import AliasService
from factswap.application.contact_merger import ContactMerger
from factswap.application.dto import (
    CapacityReport,
    ExchangeAccepted,
    Invalid,
    MergeResult,
    ReceivedShare,
    RemoteExchange,
    ShareLink,
    ShortenedLink,
)
from factswap.application.errors import (
    ExpiredAlias,
    InvalidShareToken,
    MissingIdentityError,
    RemoteServiceError,
    ShareError,
    StaleAliasError,
    UnknownAlias,
)
from factswap.application.events import (
    Channel,
    ContactMerged,
    ExchangesApplied,
    MergeEvents,
    Subscription,
)
from factswap.application.exchange_poller import ExchangePoller, PollHandle
from factswap.application.exchange_queue import ExchangeQueue
from factswap.application.ports import AliasStore, ContactStore, ExchangeStore, ShareApi
from factswap.application.share_service import OVERFLOW_HINT, ShareService

__all__ = [
    "OVERFLOW_HINT",
    "AliasResolver",
    "AliasService",
    "AliasStore",
    "CapacityReport",
    "Channel",
    "ContactMerged",
    "ContactMerger",
    "ContactStore",
    "ExchangeAccepted",
    "ExchangePoller",
    "ExchangeQueue",
    "ExchangeStore",
    "ExchangesApplied",
    "ExpiredAlias",
    "Invalid",
    "InvalidShareToken",
    "MergeEvents",
    "MergeResult",
    "MissingIdentityError",
    "PollHandle",
    "ReceivedShare",
    "RemoteExchange",
    "RemoteServiceError",
    "ShareApi",
    "ShareError",
    "ShareLink",
    "ShareService",
    "ShortenedLink",
    "StaleAliasError",
    "Subscription",
    "UnknownAlias",
]

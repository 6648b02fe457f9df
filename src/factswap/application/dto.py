"""Result types for merge, exchange, alias and share-link operations."""

from dataclasses import dataclass
from datetime import datetime

from factswap.domain import Contact, SharePayload


@dataclass(frozen=True)
class MergeResult:
    """Outcome of merging one payload into the contact store."""

    contact: Contact
    was_created: bool
    added_facts: int


@dataclass(frozen=True)
class CapacityReport:
    """Measured length of a shareable link against the QR ceiling."""

    length: int
    limit: int

    @property
    def overflow(self) -> bool:
        return self.length > self.limit


@dataclass(frozen=True)
class ShortenedLink:
    slug: str
    url: str
    expires_at: datetime | None = None


@dataclass(frozen=True)
class ShareLink:
    """Link ready for QR rendering. capacity.overflow means the caller must ask to trim."""

    url: str
    token: str
    capacity: CapacityReport
    aliased: bool = False

    @property
    def overflow(self) -> bool:
        return self.capacity.overflow


@dataclass(frozen=True)
class RemoteExchange:
    """A delivered exchange as seen by the polling client."""

    id: str
    initiator_id: str
    created_at: str
    payload: SharePayload


@dataclass(frozen=True)
class ReceivedShare:
    merge: MergeResult
    payload: SharePayload
    reciprocal_sent: bool = False
    reciprocal_error: str | None = None


# --- enqueue / drain results ---


@dataclass(frozen=True)
class ExchangeAccepted:
    """Exchange stored (exchange_id set) or skipped as a self-share (exchange_id None)."""

    exchange_id: str | None = None


@dataclass(frozen=True)
class Invalid:
    """Request rejected before touching any store."""

    reason: str

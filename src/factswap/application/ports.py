"""Application ports (interfaces). Implemented by infrastructure adapters."""

from datetime import datetime
from typing import Protocol

from factswap.application.dto import RemoteExchange, ShortenedLink
from factswap.domain import AliasRecord, Contact, ExchangeRecord, SharePayload


class ContactStore(Protocol):
    """Whole-collection contact persistence. Callers serialize load/merge/save cycles."""

    def load(self) -> list[Contact]:
        """Return every stored contact, newest first."""
        ...

    def save(self, contacts: list[Contact]) -> None:
        """Replace the stored collection."""
        ...


class ExchangeStore(Protocol):
    """Server-side mailbox of reciprocal payloads."""

    def insert(self, record: ExchangeRecord) -> None:
        ...

    def claim_pending(
        self, target_profile_id: str, limit: int, consumed_at: datetime
    ) -> list[ExchangeRecord]:
        """Select pending records for target oldest-first and mark them delivered in one atomic step."""
        ...


class AliasStore(Protocol):
    """Server-side slug -> token mapping."""

    def find_active(self, token: str, now: datetime) -> AliasRecord | None:
        """Return an unexpired alias for token, or None."""
        ...

    def insert(self, record: AliasRecord) -> bool:
        """Store record. Returns False if the slug is already taken."""
        ...

    def get(self, slug: str) -> AliasRecord | None:
        ...


class ShareApi(Protocol):
    """Client view of the alias and exchange endpoints. Every call is a network round trip."""

    async def create_alias(self, token: str) -> ShortenedLink:
        ...

    async def fetch_alias(self, slug: str) -> str:
        ...

    async def send_exchange(
        self, initiator_id: str, target_id: str, payload: SharePayload
    ) -> None:
        ...

    async def fetch_exchanges(self, profile_id: str) -> list[RemoteExchange]:
        ...

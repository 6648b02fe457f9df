"""In-memory implementations of the contact, exchange and alias stores (no DB)."""

import threading
from dataclasses import replace
from datetime import datetime

from factswap.domain import AliasRecord, Contact, ExchangeRecord, ExchangeStatus


class InMemoryContactStore:
    """Holds the whole contact collection. save() replaces it, order preserved."""

    def __init__(self, contacts: list[Contact] | None = None) -> None:
        self._contacts: list[Contact] = list(contacts or [])

    def load(self) -> list[Contact]:
        return list(self._contacts)

    def save(self, contacts: list[Contact]) -> None:
        self._contacts = list(contacts)

    def get_by_remote_id(self, remote_id: str) -> Contact | None:
        return next((c for c in self._contacts if c.remote_id == remote_id), None)


class InMemoryExchangeStore:
    """Exchange mailbox in process memory. claim_pending selects and marks under one lock."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._by_id: dict[str, ExchangeRecord] = {}
        self._order: list[str] = []

    def insert(self, record: ExchangeRecord) -> None:
        with self._lock:
            if record.id in self._by_id:
                return
            self._by_id[record.id] = record
            self._order.append(record.id)

    def claim_pending(
        self, target_profile_id: str, limit: int, consumed_at: datetime
    ) -> list[ExchangeRecord]:
        with self._lock:
            pending = [
                self._by_id[rid]
                for rid in self._order
                if self._by_id[rid].target_profile_id == target_profile_id
                and self._by_id[rid].consumed_at is None
            ]
            pending.sort(key=lambda r: r.created_at)
            claimed = []
            for record in pending[:limit]:
                delivered = replace(
                    record, status=ExchangeStatus.DELIVERED, consumed_at=consumed_at
                )
                self._by_id[record.id] = delivered
                claimed.append(delivered)
            return claimed

    def get(self, exchange_id: str) -> ExchangeRecord | None:
        with self._lock:
            return self._by_id.get(exchange_id)


class InMemoryAliasStore:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._by_slug: dict[str, AliasRecord] = {}

    def find_active(self, token: str, now: datetime) -> AliasRecord | None:
        with self._lock:
            for record in self._by_slug.values():
                if record.token == token and not record.is_expired(now):
                    return record
        return None

    def insert(self, record: AliasRecord) -> bool:
        with self._lock:
            if record.slug in self._by_slug:
                return False
            self._by_slug[record.slug] = record
            return True

    def get(self, slug: str) -> AliasRecord | None:
        with self._lock:
            return self._by_slug.get(slug)

"""Server-side mailbox of reciprocal shares, delivered at most once per record."""

import logging
from datetime import datetime, timezone

from factswap.application.dto import ExchangeAccepted, Invalid
from factswap.application.ports import ExchangeStore
from factswap.application.sanitize import sanitize_payload
from factswap.domain import ExchangeRecord, SharePayload

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 5


class ExchangeQueue:
    """Enqueue reciprocal payloads per target profile; drain marks them consumed as part of the read."""

    def __init__(self, store: ExchangeStore, *, batch_size: int = DEFAULT_BATCH_SIZE) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self._store = store
        self.batch_size = batch_size

    def enqueue(
        self, initiator_id: str, target_id: str, payload: SharePayload | None
    ) -> ExchangeAccepted | Invalid:
        initiator = (initiator_id or "").strip()
        target = (target_id or "").strip()
        if not initiator or not target:
            return Invalid(reason="Both initiator and target profile ids are required.")
        if payload is None:
            return Invalid(reason="Exchange payload is required.")
        if initiator == target:
            return ExchangeAccepted()

        record = ExchangeRecord(
            initiator_profile_id=initiator,
            target_profile_id=target,
            payload=sanitize_payload(payload),
        )
        self._store.insert(record)
        logger.info("Queued exchange %s from %s to %s", record.id, initiator, target)
        return ExchangeAccepted(exchange_id=record.id)

    def drain(self, target_id: str, limit: int | None = None) -> list[ExchangeRecord] | Invalid:
        """Return up to limit pending records for target, oldest first, flagged delivered."""
        target = (target_id or "").strip()
        if not target:
            return Invalid(reason="Profile id is required.")
        size = self.batch_size if limit is None else limit
        if size < 1:
            return []
        records = self._store.claim_pending(target, size, datetime.now(timezone.utc))
        if records:
            logger.info("Delivered %d exchange(s) to %s", len(records), target)
        return records

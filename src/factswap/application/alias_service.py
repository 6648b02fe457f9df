"""Server-side short links: slug -> share token, with a limited lifetime."""

import logging
import secrets
from datetime import datetime, timedelta, timezone

from factswap.application.errors import (
    ExpiredAlias,
    InvalidShareToken,
    RemoteServiceError,
    UnknownAlias,
)
from factswap.application.ports import AliasStore
from factswap.application.token_codec import SHARE_PREFIX
from factswap.domain import AliasRecord

logger = logging.getLogger(__name__)

SLUG_LENGTH = 9
SLUG_ALPHABET = "23456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
DEFAULT_TTL = timedelta(hours=12)
MAX_SLUG_ATTEMPTS = 6


def generate_slug(length: int = SLUG_LENGTH) -> str:
    return "".join(secrets.choice(SLUG_ALPHABET) for _ in range(length))


class AliasService:
    def __init__(self, store: AliasStore, *, ttl: timedelta = DEFAULT_TTL) -> None:
        self._store = store
        self._ttl = ttl

    def create_alias(self, token: str) -> AliasRecord:
        """Return the live alias for token, creating one if needed.

        Raises InvalidShareToken for anything that is not a share token and
        RemoteServiceError when no free slug is found.
        """
        token = (token or "").strip()
        if not token.startswith(SHARE_PREFIX):
            raise InvalidShareToken("alias requested for a non-share token")

        now = datetime.now(timezone.utc)
        existing = self._store.find_active(token, now)
        if existing is not None:
            return existing

        for _ in range(MAX_SLUG_ATTEMPTS):
            record = AliasRecord(
                slug=generate_slug(),
                token=token,
                created_at=now,
                expires_at=now + self._ttl,
            )
            if self._store.insert(record):
                logger.info("Created alias %s (expires %s)", record.slug, record.expires_at.isoformat())
                return record
            logger.warning("Alias slug collision on %s, retrying", record.slug)
        raise RemoteServiceError("Short links are temporarily unavailable. Try again later.")

    def resolve(self, slug: str) -> AliasRecord:
        """Return the record for slug. Raises UnknownAlias or ExpiredAlias."""
        slug = (slug or "").strip()
        record = self._store.get(slug) if slug else None
        if record is None:
            raise UnknownAlias(slug)
        if record.is_expired():
            raise ExpiredAlias(slug)
        return record

"""Bound and clean a SharePayload before it is encoded or stored server-side."""

import re
import time
import uuid

from factswap.domain import SHARE_VERSION, Fact, Owner, ShareGroup, SharePayload
from factswap.domain.entities import (
    AVATAR_MAX_LENGTH,
    CHANNEL_MAX_LENGTH,
    DEFAULT_CONTACT_NAME,
    DEFAULT_GROUP_COLOR,
    DEFAULT_GROUP_NAME,
    FACT_TEXT_LIMIT,
    NAME_MAX_LENGTH,
)

_INLINE_AVATAR_RE = re.compile(r"^(data:|blob:)", re.IGNORECASE)
_HTTP_RE = re.compile(r"^https?://", re.IGNORECASE)


def sanitize_channel(value: str | None) -> str | None:
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value[:CHANNEL_MAX_LENGTH] or None


def sanitize_avatar(value: str | None) -> str | None:
    """Keep only compact http(s) avatar URLs; inline images would overflow the QR symbol."""
    if not isinstance(value, str):
        return None
    value = value.strip()
    if not value or _INLINE_AVATAR_RE.match(value) or not _HTTP_RE.match(value):
        return None
    if len(value) > AVATAR_MAX_LENGTH:
        return None
    return value


def sanitize_payload(payload: SharePayload) -> SharePayload:
    """Return a bounded copy: trimmed names and channels, no empty facts, only shareable avatars.

    Missing group or fact ids get fresh uuids; the owner id is kept as-is so an
    identity-less payload is still rejected at merge time.
    """
    owner = payload.owner
    groups = []
    for group in payload.groups:
        facts = []
        for fact in group.facts:
            text = (fact.text or "").strip()[:FACT_TEXT_LIMIT]
            if text:
                facts.append(Fact(id=(fact.id or "").strip() or str(uuid.uuid4()), text=text))
        groups.append(
            ShareGroup(
                id=(group.id or "").strip() or str(uuid.uuid4()),
                name=(group.name or "").strip()[:NAME_MAX_LENGTH] or DEFAULT_GROUP_NAME,
                color=(group.color or "").strip() or DEFAULT_GROUP_COLOR,
                facts=tuple(facts),
            )
        )
    return SharePayload(
        v=SHARE_VERSION,
        owner=Owner(
            id=(owner.id or "").strip(),
            name=(owner.name or "").strip()[:NAME_MAX_LENGTH] or DEFAULT_CONTACT_NAME,
            avatar=sanitize_avatar(owner.avatar),
            phone=sanitize_channel(owner.phone),
            telegram=sanitize_channel(owner.telegram),
            instagram=sanitize_channel(owner.instagram),
        ),
        groups=tuple(groups),
        generated_at=payload.generated_at or int(time.time() * 1000),
        privacy=payload.privacy,
    )

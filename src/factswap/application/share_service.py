"""Share flow: build a filtered payload, render a QR-sized link, receive a scanned link."""

import logging
import time
from collections.abc import Iterable, Sequence

from factswap.application.alias_resolver import AliasResolver
from factswap.application.contact_merger import ContactMerger
from factswap.application.dto import ReceivedShare, ShareLink
from factswap.application.errors import RemoteServiceError
from factswap.application.ports import ShareApi
from factswap.application.sanitize import sanitize_payload
from factswap.application.token_codec import (
    QR_SAFE_LENGTH,
    build_share_url,
    check_capacity,
    decode,
    encode,
)
from factswap.domain import (
    SHARE_VERSION,
    Owner,
    PrivacyLevel,
    ShareGroup,
    SharePayload,
    coerce_privacy_level,
    filter_owner,
    parse_privacy_level,
)

logger = logging.getLogger(__name__)

OVERFLOW_HINT = "The QR code is too large to scan. Remove a group or some facts and try again."


def select_groups(
    groups: Sequence[ShareGroup], selected_ids: Iterable[str] | None
) -> tuple[ShareGroup, ...]:
    """Groups in stored order. No selection means every group."""
    if selected_ids is None:
        return tuple(groups)
    wanted = set(selected_ids)
    return tuple(group for group in groups if group.id in wanted)


class ShareService:
    def __init__(
        self,
        merger: ContactMerger,
        api: ShareApi,
        *,
        origin: str,
        limit: int = QR_SAFE_LENGTH,
        allow_full_privacy: bool = True,
    ) -> None:
        self._merger = merger
        self._api = api
        self._resolver = AliasResolver(api)
        self._origin = origin
        self._limit = limit
        self._allow_full_privacy = allow_full_privacy

    def build_payload(
        self,
        owner: Owner,
        groups: Sequence[ShareGroup],
        privacy: str | PrivacyLevel | None,
        *,
        selected_group_ids: Iterable[str] | None = None,
    ) -> SharePayload:
        level = coerce_privacy_level(
            parse_privacy_level(privacy) or PrivacyLevel.DIRECT_ONLY,
            allow_full_privacy=self._allow_full_privacy,
        )
        payload = SharePayload(
            v=SHARE_VERSION,
            owner=filter_owner(owner, level),
            groups=select_groups(groups, selected_group_ids),
            generated_at=int(time.time() * 1000),
            privacy=level,
        )
        return sanitize_payload(payload)

    async def render_link(self, payload: SharePayload, *, prefer_alias: bool = False) -> ShareLink:
        """Return the link to render as a QR code.

        Over-capacity (or prefer_alias) links are shortened through the server.
        If shortening fails the raw link is returned with its capacity report,
        so the caller can still share it or show OVERFLOW_HINT.
        """
        token = encode(payload)
        url = build_share_url(token, self._origin)
        capacity = check_capacity(url, self._limit)
        if not capacity.overflow and not prefer_alias:
            return ShareLink(url=url, token=token, capacity=capacity)

        try:
            short = await self._resolver.shorten(token)
        except RemoteServiceError as e:
            logger.warning("Shortening failed, using raw link (%d chars): %s", capacity.length, e.message)
            return ShareLink(url=url, token=token, capacity=capacity)
        return ShareLink(
            url=short.url,
            token=token,
            capacity=check_capacity(short.url, self._limit),
            aliased=True,
        )

    async def receive(
        self, raw: str, *, reciprocal: SharePayload | None = None
    ) -> ReceivedShare:
        """Resolve, decode and merge a scanned or pasted link, then queue the reciprocal share.

        Raises InvalidShareToken, StaleAliasError, MissingIdentityError or
        RemoteServiceError (alias expansion) before anything is merged. A failed
        reciprocal send is reported on the result.
        """
        token = await self._resolver.resolve_alias(raw)
        payload = decode(token)
        result = self._merger.merge(payload)

        if reciprocal is None:
            return ReceivedShare(merge=result, payload=payload)
        initiator = (reciprocal.owner.id or "").strip()
        target = payload.owner.id.strip()
        if not initiator or initiator == target:
            return ReceivedShare(merge=result, payload=payload)
        try:
            await self._api.send_exchange(initiator, target, reciprocal)
        except RemoteServiceError as e:
            logger.warning("Reciprocal share to %s failed: %s", target, e.message)
            return ReceivedShare(merge=result, payload=payload, reciprocal_error=e.message)
        return ReceivedShare(merge=result, payload=payload, reciprocal_sent=True)

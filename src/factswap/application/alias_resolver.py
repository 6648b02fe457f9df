"""Client-side alias handling: shorten a token, expand whatever a scan or paste produced."""

import logging

from factswap.application.dto import ShortenedLink
from factswap.application.errors import InvalidShareToken
from factswap.application.ports import ShareApi
from factswap.application.token_codec import extract_alias_slug, extract_share_token

logger = logging.getLogger(__name__)


class AliasResolver:
    def __init__(self, api: ShareApi) -> None:
        self._api = api

    async def shorten(self, token: str) -> ShortenedLink:
        """Exchange token for a short link. Raises RemoteServiceError on server or network failure."""
        if not token:
            raise InvalidShareToken("empty token")
        return await self._api.create_alias(token)

    async def resolve_alias(self, alias_or_token: str) -> str:
        """Return the share token behind a raw token, a share link, or an alias.

        Raw tokens pass through without a network call. Raises InvalidShareToken
        when nothing recognizable is found and StaleAliasError when the alias
        cannot be expanded.
        """
        token = extract_share_token(alias_or_token)
        if token:
            return token
        slug = extract_alias_slug(alias_or_token)
        if not slug:
            raise InvalidShareToken("no share token or alias in link")
        logger.debug("Expanding alias %s", slug)
        expanded = await self._api.fetch_alias(slug)
        token = extract_share_token(expanded)
        if not token:
            raise InvalidShareToken("alias expanded to a non-share token")
        return token

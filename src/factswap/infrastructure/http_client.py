"""FactSwap API client.

Implements the ShareApi port over HTTP.

Usage:
    async with ShareApiClient("https://factswap.example") as api:
        link = await api.create_alias(token)
        exchanges = await api.fetch_exchanges(profile_id)
"""

import logging
from datetime import datetime
from typing import Any

import httpx

from factswap.application.dto import RemoteExchange, ShortenedLink
from factswap.application.errors import (
    ExpiredAlias,
    InvalidShareToken,
    RemoteServiceError,
    UnknownAlias,
)
from factswap.application.token_codec import build_alias_url
from factswap.application.wire import payload_from_wire, payload_to_wire
from factswap.domain import SharePayload

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


def _parse_expiry(value: Any) -> datetime | None:
    """Server expiry is informational; an unreadable value is dropped."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        logger.warning("Ignoring unreadable short link expiry: %r", value)
        return None


class ShareApiClient:
    """Async client for the alias and exchange endpoints.

    Attributes:
        base_url: Base URL of the FactSwap API
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8010",
        *,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Base URL of the FactSwap API
            timeout: Per-request timeout in seconds; exceeding it raises RemoteServiceError
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "ShareApiClient":
        return self

    async def __aexit__(self, *args) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> tuple[httpx.Response, dict]:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise RemoteServiceError(f"Network error calling {path}.") from e
        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}
        return response, data

    @staticmethod
    def _raise_for_failure(response: httpx.Response, data: dict, fallback: str) -> None:
        if response.is_success and data.get("ok"):
            return
        raise RemoteServiceError(data.get("message") or fallback, status_code=response.status_code)

    async def create_alias(self, token: str) -> ShortenedLink:
        response, data = await self._request("POST", "/share-link", json={"token": token})
        self._raise_for_failure(response, data, "Could not create a short link.")
        slug = data.get("slug")
        if not slug or not isinstance(slug, str):
            raise RemoteServiceError("Short link response has no slug.", status_code=response.status_code)
        url = data.get("url")
        return ShortenedLink(
            slug=slug,
            url=url if url and isinstance(url, str) else build_alias_url(slug, self.base_url),
            expires_at=_parse_expiry(data.get("expiresAt")),
        )

    async def fetch_alias(self, slug: str) -> str:
        slug = (slug or "").strip()
        if not slug:
            raise UnknownAlias(slug)
        response, data = await self._request("GET", "/share-link", params={"slug": slug})
        if response.status_code == 404:
            raise UnknownAlias(slug)
        if response.status_code == 410:
            raise ExpiredAlias(slug)
        self._raise_for_failure(response, data, "Could not expand the short link.")
        token = data.get("token")
        if not token:
            raise RemoteServiceError("Short link response has no token.", status_code=response.status_code)
        return token

    async def send_exchange(
        self, initiator_id: str, target_id: str, payload: SharePayload
    ) -> None:
        body = {
            "initiatorId": initiator_id,
            "targetId": target_id,
            "payload": payload_to_wire(payload),
        }
        response, data = await self._request("POST", "/exchange", json=body)
        self._raise_for_failure(response, data, "Could not record the exchange on the server.")

    async def fetch_exchanges(self, profile_id: str) -> list[RemoteExchange]:
        response, data = await self._request("GET", "/exchange", params={"profileId": profile_id})
        self._raise_for_failure(response, data, "Could not fetch exchanges from the server.")
        exchanges = []
        for item in data.get("exchanges") or []:
            try:
                exchanges.append(
                    RemoteExchange(
                        id=str(item["id"]),
                        initiator_id=str(item["initiatorId"]),
                        created_at=str(item["createdAt"]),
                        payload=payload_from_wire(item["payload"]),
                    )
                )
            except (KeyError, TypeError, InvalidShareToken) as e:
                logger.warning("Dropping malformed exchange from server: %s", e)
        return exchanges

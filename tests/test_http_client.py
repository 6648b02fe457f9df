"""Tests for ShareApiClient against an httpx.MockTransport."""

import asyncio
import json

import httpx
import pytest

from factswap.application import ExpiredAlias, RemoteServiceError, UnknownAlias
from factswap.application.token_codec import encode
from factswap.application.wire import payload_to_wire
from factswap.domain import Fact, Owner, ShareGroup, SharePayload
from factswap.infrastructure import ShareApiClient

BASE = "https://fs.example"

PAYLOAD = SharePayload(
    owner=Owner(id="u1", name="Dana"),
    groups=(ShareGroup(id="g1", name="Work", facts=(Fact(id="f1", text="Backend engineer"),)),),
    generated_at=1700000000000,
)
TOKEN = encode(PAYLOAD)


def _call(handler, fn):
    async def run():
        async with ShareApiClient(BASE, transport=httpx.MockTransport(handler)) as api:
            return await fn(api)

    return asyncio.run(run())


def test_create_alias():
    seen = {}

    def handler(request):
        seen["method"] = request.method
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json={
                "ok": True,
                "slug": "Ab3dE5fGh",
                "url": f"{BASE}/share/Ab3dE5fGh",
                "expiresAt": "2025-01-01T12:00:00+00:00",
            },
        )

    link = _call(handler, lambda api: api.create_alias(TOKEN))

    assert seen == {"method": "POST", "path": "/share-link", "body": {"token": TOKEN}}
    assert link.slug == "Ab3dE5fGh"
    assert link.url == f"{BASE}/share/Ab3dE5fGh"
    assert link.expires_at.hour == 12


def test_create_alias_server_failure():
    def handler(request):
        return httpx.Response(503, json={"ok": False, "message": "Short links are temporarily unavailable."})

    with pytest.raises(RemoteServiceError) as exc:
        _call(handler, lambda api: api.create_alias(TOKEN))
    assert exc.value.status_code == 503
    assert exc.value.message == "Short links are temporarily unavailable."


def test_fetch_alias():
    def handler(request):
        assert request.url.params["slug"] == "Ab3dE5fGh"
        return httpx.Response(200, json={"ok": True, "token": TOKEN})

    assert _call(handler, lambda api: api.fetch_alias("Ab3dE5fGh")) == TOKEN


@pytest.mark.parametrize("status,error", [(404, UnknownAlias), (410, ExpiredAlias)])
def test_fetch_alias_stale(status, error):
    def handler(request):
        return httpx.Response(status, json={"ok": False, "message": "gone"})

    with pytest.raises(error):
        _call(handler, lambda api: api.fetch_alias("Ab3dE5fGh"))


def test_send_exchange_posts_wire_payload():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"ok": True})

    _call(handler, lambda api: api.send_exchange("me", "u1", PAYLOAD))

    assert seen["path"] == "/exchange"
    assert seen["body"] == {"initiatorId": "me", "targetId": "u1", "payload": payload_to_wire(PAYLOAD)}


def test_send_exchange_rejected():
    def handler(request):
        return httpx.Response(400, json={"ok": False, "message": "Exchange payload is invalid."})

    with pytest.raises(RemoteServiceError) as exc:
        _call(handler, lambda api: api.send_exchange("me", "u1", PAYLOAD))
    assert exc.value.status_code == 400


def test_fetch_exchanges_drops_malformed_items():
    def handler(request):
        assert request.url.params["profileId"] == "me"
        return httpx.Response(
            200,
            json={
                "ok": True,
                "exchanges": [
                    {
                        "id": "x1",
                        "initiatorId": "u1",
                        "createdAt": "2025-01-01T00:00:00+00:00",
                        "payload": payload_to_wire(PAYLOAD),
                    },
                    {"id": "x2", "initiatorId": "u2", "createdAt": "2025-01-01T00:00:01+00:00", "payload": {"v": 9}},
                    {"id": "x3"},
                ],
            },
        )

    (exchange,) = _call(handler, lambda api: api.fetch_exchanges("me"))

    assert exchange.id == "x1"
    assert exchange.initiator_id == "u1"
    assert exchange.payload == PAYLOAD


def test_network_error_becomes_remote_service_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(RemoteServiceError):
        _call(handler, lambda api: api.fetch_exchanges("me"))


def test_non_json_response_is_a_failure():
    def handler(request):
        return httpx.Response(502, text="<html>Bad gateway</html>")

    with pytest.raises(RemoteServiceError) as exc:
        _call(handler, lambda api: api.fetch_exchanges("me"))
    assert exc.value.status_code == 502


@pytest.mark.parametrize("expires_at", ["soon", 42, {"hours": 12}])
def test_create_alias_ignores_unreadable_expiry(expires_at):
    def handler(request):
        return httpx.Response(200, json={"ok": True, "slug": "Ab3dE5fGh", "expiresAt": expires_at})

    link = _call(handler, lambda api: api.create_alias(TOKEN))

    assert link.slug == "Ab3dE5fGh"
    assert link.url == f"{BASE}/share/Ab3dE5fGh"
    assert link.expires_at is None


def test_create_alias_without_slug_is_a_failure():
    def handler(request):
        return httpx.Response(200, json={"ok": True, "slug": ["Ab3dE5fGh"]})

    with pytest.raises(RemoteServiceError):
        _call(handler, lambda api: api.create_alias(TOKEN))

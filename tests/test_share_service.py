"""Tests for ShareService: payload building, link rendering with short-link fallback, receiving."""

import asyncio

import httpx
import pytest

from factswap.application import (
    ContactMerger,
    InvalidShareToken,
    RemoteServiceError,
    ShareService,
    ShortenedLink,
)
from factswap.application.share_service import select_groups
from factswap.application.token_codec import SHARE_PREFIX, decode, encode
from factswap.domain import Fact, Owner, PrivacyLevel, ShareGroup, SharePayload
from factswap.infrastructure import InMemoryContactStore, ShareApiClient

ORIGIN = "https://fs.example"

ME = Owner(id="me", name="Alex", phone="+12025550000", telegram="@alex")
GROUPS = (
    ShareGroup(id="g1", name="Work", facts=(Fact(id="f1", text="Backend engineer"),)),
    ShareGroup(id="g2", name="Hobbies", facts=(Fact(id="f2", text="Chess"),)),
    ShareGroup(id="g3", name="Family", facts=(Fact(id="f3", text="Two cats"),)),
)


class FakeApi:
    def __init__(self, shorten_error=None, send_error=None):
        self.shorten_error = shorten_error
        self.send_error = send_error
        self.shortened = []
        self.sent = []

    async def create_alias(self, token):
        if self.shorten_error:
            raise self.shorten_error
        self.shortened.append(token)
        return ShortenedLink(slug="Ab3dE5fGh", url=f"{ORIGIN}/share/Ab3dE5fGh")

    async def fetch_alias(self, slug):
        raise AssertionError("not expected")

    async def send_exchange(self, initiator_id, target_id, payload):
        if self.send_error:
            raise self.send_error
        self.sent.append((initiator_id, target_id, payload))

    async def fetch_exchanges(self, profile_id):
        return []


def _service(api=None, store=None, limit=None):
    merger = ContactMerger(store or InMemoryContactStore())
    kwargs = {"limit": limit} if limit else {}
    return ShareService(merger, api or FakeApi(), origin=ORIGIN, **kwargs)


def _dana_token(**owner_fields):
    payload = SharePayload(
        owner=Owner(id="u1", name="Dana", **owner_fields),
        groups=(ShareGroup(id="g1", name="Work", facts=(Fact(id="f1", text="Backend engineer"),)),),
        generated_at=1700000000000,
        privacy=PrivacyLevel.PUBLIC,
    )
    return encode(payload)


def test_select_groups_keeps_stored_order():
    assert [g.id for g in select_groups(GROUPS, ["g3", "g1"])] == ["g1", "g3"]
    assert select_groups(GROUPS, None) == GROUPS
    assert select_groups(GROUPS, []) == ()


def test_build_payload_applies_privacy_and_selection():
    payload = _service().build_payload(ME, GROUPS, "direct-only", selected_group_ids=["g2"])

    assert payload.owner.id == "me"
    assert payload.owner.phone is None
    assert payload.owner.telegram is None
    assert payload.privacy is PrivacyLevel.DIRECT_ONLY
    assert [g.id for g in payload.groups] == ["g2"]
    assert payload.generated_at > 0


def test_build_payload_unknown_privacy_is_direct_only():
    payload = _service().build_payload(ME, GROUPS, "everyone")
    assert payload.privacy is PrivacyLevel.DIRECT_ONLY
    assert payload.owner.phone is None


def test_build_payload_public_keeps_channels():
    payload = _service().build_payload(ME, GROUPS, PrivacyLevel.PUBLIC)
    assert payload.owner.phone == "+12025550000"
    assert len(payload.groups) == 3


def test_build_payload_without_full_privacy_downgrades_direct_only():
    merger = ContactMerger(InMemoryContactStore())
    service = ShareService(merger, FakeApi(), origin=ORIGIN, allow_full_privacy=False)

    payload = service.build_payload(ME, GROUPS, "direct-only")
    assert payload.privacy is PrivacyLevel.PUBLIC
    assert payload.owner.phone == "+12025550000"

    assert service.build_payload(ME, GROUPS, "everyone").privacy is PrivacyLevel.PUBLIC
    assert service.build_payload(ME, GROUPS, "second-degree").privacy is PrivacyLevel.SECOND_DEGREE


def test_render_link_within_capacity_is_raw():
    api = FakeApi()
    service = _service(api)
    payload = service.build_payload(ME, GROUPS, "public")

    link = asyncio.run(service.render_link(payload))

    assert link.aliased is False
    assert link.url == f"{ORIGIN}/share?token={link.token}"
    assert decode(link.token) == payload
    assert link.overflow is False
    assert api.shortened == []


def test_render_link_over_capacity_is_shortened():
    api = FakeApi()
    service = _service(api, limit=50)
    payload = service.build_payload(ME, GROUPS, "public")

    link = asyncio.run(service.render_link(payload))

    assert link.aliased is True
    assert link.url == f"{ORIGIN}/share/Ab3dE5fGh"
    assert link.overflow is False
    assert api.shortened == [link.token]


def test_render_link_prefer_alias():
    api = FakeApi()
    service = _service(api)
    payload = service.build_payload(ME, GROUPS, "public")

    link = asyncio.run(service.render_link(payload, prefer_alias=True))

    assert link.aliased is True


def test_render_link_falls_back_to_raw_link_when_shortening_fails():
    api = FakeApi(shorten_error=RemoteServiceError("down", status_code=503))
    service = _service(api, limit=50)
    payload = service.build_payload(ME, GROUPS, "public")

    link = asyncio.run(service.render_link(payload))

    assert link.aliased is False
    assert link.url.startswith(f"{ORIGIN}/share?token={SHARE_PREFIX}")
    assert link.overflow is True


def test_receive_merges_and_sends_reciprocal():
    api = FakeApi()
    store = InMemoryContactStore()
    service = _service(api, store)
    mine = service.build_payload(ME, GROUPS, "public")

    received = asyncio.run(service.receive(f"{ORIGIN}/share?token={_dana_token()}", reciprocal=mine))

    assert received.merge.was_created is True
    assert received.merge.added_facts == 1
    assert received.reciprocal_sent is True
    assert received.reciprocal_error is None
    assert api.sent == [("me", "u1", mine)]
    assert store.get_by_remote_id("u1") is not None


def test_receive_without_reciprocal():
    api = FakeApi()
    received = asyncio.run(_service(api).receive(_dana_token()))
    assert received.reciprocal_sent is False
    assert api.sent == []


def test_receive_keeps_merge_when_reciprocal_fails():
    api = FakeApi(send_error=RemoteServiceError("Network error calling /exchange."))
    store = InMemoryContactStore()
    service = _service(api, store)
    mine = service.build_payload(ME, GROUPS, "public")

    received = asyncio.run(service.receive(_dana_token(), reciprocal=mine))

    assert received.reciprocal_sent is False
    assert received.reciprocal_error == "Network error calling /exchange."
    assert store.get_by_remote_id("u1") is not None


def test_receive_own_link_skips_reciprocal():
    api = FakeApi()
    service = _service(api)
    mine = service.build_payload(ME, GROUPS, "public")

    received = asyncio.run(service.receive(encode(mine), reciprocal=mine))

    assert received.reciprocal_sent is False
    assert api.sent == []


def test_receive_invalid_link_merges_nothing():
    store = InMemoryContactStore()
    with pytest.raises(InvalidShareToken):
        asyncio.run(_service(store=store).receive(SHARE_PREFIX + "bm90IGpzb24"))
    assert store.load() == []


def test_render_link_over_http_with_unreadable_expiry():
    def handler(request):
        return httpx.Response(200, json={"ok": True, "slug": "Ab3dE5fGh", "expiresAt": "soon"})

    async def run():
        async with ShareApiClient(ORIGIN, transport=httpx.MockTransport(handler)) as api:
            service = ShareService(ContactMerger(InMemoryContactStore()), api, origin=ORIGIN, limit=50)
            return await service.render_link(service.build_payload(ME, GROUPS, "public"))

    link = asyncio.run(run())

    assert link.aliased is True
    assert link.url == f"{ORIGIN}/share/Ab3dE5fGh"


def test_render_link_over_http_falls_back_on_bad_response():
    def handler(request):
        return httpx.Response(200, json={"ok": True})

    async def run():
        async with ShareApiClient(ORIGIN, transport=httpx.MockTransport(handler)) as api:
            service = ShareService(ContactMerger(InMemoryContactStore()), api, origin=ORIGIN, limit=50)
            return await service.render_link(service.build_payload(ME, GROUPS, "public"))

    link = asyncio.run(run())

    assert link.aliased is False
    assert link.overflow is True

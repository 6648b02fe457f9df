"""Tests for ExchangeQueue with the in-memory mailbox."""

import threading
from datetime import datetime, timedelta, timezone

import pytest

from factswap.application import ExchangeAccepted, ExchangeQueue, Invalid
from factswap.domain import ExchangeRecord, ExchangeStatus, Fact, Owner, ShareGroup, SharePayload
from factswap.infrastructure import InMemoryExchangeStore


def _payload(owner_id="u1", name="Dana"):
    return SharePayload(
        owner=Owner(id=owner_id, name=name),
        groups=(ShareGroup(id="g1", name="Work", facts=(Fact(id="f1", text="Backend engineer"),)),),
        generated_at=1700000000000,
    )


def test_enqueue_then_drain_once():
    store = InMemoryExchangeStore()
    queue = ExchangeQueue(store)

    accepted = queue.enqueue("u1", "u2", _payload())
    assert isinstance(accepted, ExchangeAccepted)
    assert accepted.exchange_id

    (record,) = queue.drain("u2")
    assert record.id == accepted.exchange_id
    assert record.initiator_profile_id == "u1"
    assert record.payload.owner.id == "u1"
    assert record.status is ExchangeStatus.DELIVERED
    assert record.consumed_at is not None

    assert queue.drain("u2") == []
    assert store.get(record.id).consumed_at == record.consumed_at


def test_self_share_is_accepted_without_a_record():
    store = InMemoryExchangeStore()
    queue = ExchangeQueue(store)

    assert queue.enqueue("u1", "u1", _payload()) == ExchangeAccepted(exchange_id=None)
    assert queue.drain("u1") == []


def test_blank_ids_and_missing_payload_are_rejected():
    queue = ExchangeQueue(InMemoryExchangeStore())
    assert isinstance(queue.enqueue("", "u2", _payload()), Invalid)
    assert isinstance(queue.enqueue("u1", "   ", _payload()), Invalid)
    assert isinstance(queue.enqueue("u1", "u2", None), Invalid)
    assert isinstance(queue.drain(" "), Invalid)


def test_enqueued_payload_is_sanitized():
    queue = ExchangeQueue(InMemoryExchangeStore())
    payload = SharePayload(
        owner=Owner(id="u1", name="  Dana  ", avatar="data:image/png;base64,AAAA"),
        groups=(ShareGroup(id="g1", name="Work", facts=(Fact(id="f1", text="  "), Fact(id="f2", text="ok"))),),
        generated_at=5,
    )
    queue.enqueue("u1", "u2", payload)

    (record,) = queue.drain("u2")
    assert record.payload.owner.name == "Dana"
    assert record.payload.owner.avatar is None
    assert record.payload.groups[0].facts == (Fact(id="f2", text="ok"),)


def test_drain_is_per_target():
    queue = ExchangeQueue(InMemoryExchangeStore())
    queue.enqueue("u1", "u2", _payload())
    queue.enqueue("u1", "u3", _payload())

    assert len(queue.drain("u3")) == 1
    assert len(queue.drain("u2")) == 1


def test_drain_oldest_first_in_batches():
    store = InMemoryExchangeStore()
    base = datetime(2025, 1, 1, tzinfo=timezone.utc)
    for i in reversed(range(7)):
        store.insert(
            ExchangeRecord(
                id=f"x{i}",
                initiator_profile_id=f"s{i}",
                target_profile_id="u2",
                payload=_payload(owner_id=f"s{i}"),
                created_at=base + timedelta(minutes=i),
            )
        )
    queue = ExchangeQueue(store)

    first = queue.drain("u2")
    second = queue.drain("u2")

    assert [r.id for r in first] == ["x0", "x1", "x2", "x3", "x4"]
    assert [r.id for r in second] == ["x5", "x6"]
    assert queue.drain("u2") == []


def test_drain_limit_override():
    queue = ExchangeQueue(InMemoryExchangeStore(), batch_size=5)
    for i in range(3):
        queue.enqueue(f"s{i}", "u2", _payload(owner_id=f"s{i}"))

    assert len(queue.drain("u2", limit=2)) == 2
    assert queue.drain("u2", limit=0) == []
    assert len(queue.drain("u2")) == 1


def test_batch_size_must_be_positive():
    with pytest.raises(ValueError):
        ExchangeQueue(InMemoryExchangeStore(), batch_size=0)


def test_concurrent_drains_deliver_each_record_once():
    queue = ExchangeQueue(InMemoryExchangeStore(), batch_size=3)
    for i in range(30):
        queue.enqueue(f"s{i}", "u2", _payload(owner_id=f"s{i}"))

    delivered = []
    lock = threading.Lock()
    start = threading.Barrier(6)

    def worker():
        start.wait()
        while True:
            batch = queue.drain("u2")
            if not batch:
                return
            with lock:
                delivered.extend(r.id for r in batch)

    threads = [threading.Thread(target=worker) for _ in range(6)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(delivered) == 30
    assert len(set(delivered)) == 30

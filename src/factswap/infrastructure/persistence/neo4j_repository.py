"""Neo4j implementations of ExchangeStore and AliasStore.
Graph: (:Exchange {id, initiator_profile_id, target_profile_id, payload, status, created_at, consumed_at})
and (:ShareLink {slug, token, created_at, expires_at}). Payloads are stored as wire JSON strings.
"""

import json
from datetime import datetime

from neo4j.exceptions import ConstraintError

from factswap.application.wire import payload_from_wire, payload_to_wire
from factswap.domain import AliasRecord, ExchangeRecord, ExchangeStatus

_CONSTRAINT_QUERIES = (
    """
    CREATE CONSTRAINT exchange_id_unique IF NOT EXISTS
    FOR (e:Exchange) REQUIRE e.id IS UNIQUE
    """,
    """
    CREATE CONSTRAINT share_link_slug_unique IF NOT EXISTS
    FOR (l:ShareLink) REQUIRE l.slug IS UNIQUE
    """,
)

_INSERT_EXCHANGE_QUERY = """
CREATE (e:Exchange {
    id: $id,
    initiator_profile_id: $initiator,
    target_profile_id: $target,
    payload: $payload,
    status: $status,
    created_at: $created_at
})
"""

# SET takes the node write lock; the second WHERE re-reads consumed_at after
# any concurrent claim of the same node has committed.
_CLAIM_PENDING_QUERY = """
MATCH (e:Exchange {target_profile_id: $target})
WHERE e.consumed_at IS NULL
WITH e ORDER BY e.created_at ASC LIMIT $limit
SET e.claimed_by = $claim_id
WITH e WHERE e.consumed_at IS NULL
SET e.consumed_at = $consumed_at, e.status = $status
RETURN e ORDER BY e.created_at ASC
"""

_INSERT_LINK_QUERY = """
CREATE (l:ShareLink { slug: $slug, token: $token, created_at: $created_at, expires_at: $expires_at })
"""

_FIND_ACTIVE_LINK_QUERY = """
MATCH (l:ShareLink { token: $token })
WHERE l.expires_at > $now
RETURN l
ORDER BY l.expires_at DESC
LIMIT 1
"""

_GET_LINK_QUERY = """
MATCH (l:ShareLink { slug: $slug })
RETURN l
"""


def _datetime_to_iso(dt: datetime) -> str:
    return dt.isoformat(timespec="microseconds")


def _iso_to_datetime(s: str) -> datetime:
    return datetime.fromisoformat(s.replace("Z", "+00:00"))


def ensure_share_constraints(driver) -> None:
    """Create unique constraints on Exchange(id) and ShareLink(slug) if missing."""
    with driver.session() as session:
        for query in _CONSTRAINT_QUERIES:
            session.run(query)


class Neo4jExchangeStore:
    def __init__(self, driver: object) -> None:
        self._driver = driver

    def insert(self, record: ExchangeRecord) -> None:
        with self._driver.session() as session:
            session.run(
                _INSERT_EXCHANGE_QUERY,
                id=record.id,
                initiator=record.initiator_profile_id,
                target=record.target_profile_id,
                payload=json.dumps(payload_to_wire(record.payload), ensure_ascii=False),
                status=record.status.value,
                created_at=_datetime_to_iso(record.created_at),
            )

    def claim_pending(
        self, target_profile_id: str, limit: int, consumed_at: datetime
    ) -> list[ExchangeRecord]:
        with self._driver.session() as session:
            result = session.run(
                _CLAIM_PENDING_QUERY,
                target=target_profile_id,
                limit=limit,
                claim_id=f"{target_profile_id}:{_datetime_to_iso(consumed_at)}",
                consumed_at=_datetime_to_iso(consumed_at),
                status=ExchangeStatus.DELIVERED.value,
            )
            return [_record_to_exchange(rec) for rec in result]


class Neo4jAliasStore:
    def __init__(self, driver: object) -> None:
        self._driver = driver

    def find_active(self, token: str, now: datetime) -> AliasRecord | None:
        with self._driver.session() as session:
            result = session.run(_FIND_ACTIVE_LINK_QUERY, token=token, now=_datetime_to_iso(now))
            record = result.single()
        return _record_to_alias(record) if record else None

    def insert(self, record: AliasRecord) -> bool:
        try:
            with self._driver.session() as session:
                session.run(
                    _INSERT_LINK_QUERY,
                    slug=record.slug,
                    token=record.token,
                    created_at=_datetime_to_iso(record.created_at),
                    expires_at=_datetime_to_iso(record.expires_at),
                ).consume()
        except ConstraintError:
            return False
        return True

    def get(self, slug: str) -> AliasRecord | None:
        with self._driver.session() as session:
            result = session.run(_GET_LINK_QUERY, slug=slug)
            record = result.single()
        return _record_to_alias(record) if record else None


def _record_to_exchange(record) -> ExchangeRecord:
    e = record["e"]
    consumed_at = e.get("consumed_at")
    return ExchangeRecord(
        id=e["id"],
        initiator_profile_id=e["initiator_profile_id"],
        target_profile_id=e["target_profile_id"],
        payload=payload_from_wire(json.loads(e["payload"])),
        status=ExchangeStatus(e["status"]),
        created_at=_iso_to_datetime(e["created_at"]),
        consumed_at=_iso_to_datetime(consumed_at) if consumed_at else None,
    )


def _record_to_alias(record) -> AliasRecord:
    link = record["l"]
    return AliasRecord(
        slug=link["slug"],
        token=link["token"],
        created_at=_iso_to_datetime(link["created_at"]),
        expires_at=_iso_to_datetime(link["expires_at"]),
    )

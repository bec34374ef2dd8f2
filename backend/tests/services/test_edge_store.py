"""SQL Edge Store — persistence contract against SQLite.

Invariants:
    - At most one pending/accepted/blocked row per unordered pair
    - Rejected rows never occupy the pair
    - update_status is compare-and-set; a missing row is a 404
    - A lost insert race is reported as the domain conflict, not a DB error
"""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from app.core.connection_lifecycle import build_request
from app.core.domain_types import (
    ConnectionId, ConnectionStatus, ConnectionType, UserId,
)
from app.core.errors import (
    BlockedPairError, DuplicateEdgeError, ResourceNotFoundError, StaleStateError,
)
from app.core.graph_queries import canonical_pair
from app.models.connection import Connection
from app.services.edge_store import SqlEdgeStore

T0 = datetime(2026, 2, 1, tzinfo=timezone.utc)


@pytest.fixture
def store(test_db):
    return SqlEdgeStore(test_db)


@pytest.fixture
async def pair(seed):
    return UserId(await seed.user("Alice")), UserId(await seed.user("Bob"))


def _request(a, b, when=T0, status=ConnectionStatus.PENDING, metadata=None):
    return build_request(a, b, ConnectionType.CONNECT, when, metadata, status)


async def test_insert_and_get(store, pair):
    alice, bob = pair
    edge = await store.insert(_request(alice, bob, metadata={"version": 1, "notes": "hi"}))

    loaded = await store.get(edge.id)

    assert loaded.status is ConnectionStatus.PENDING
    assert loaded.from_user_id == alice
    assert loaded.initiated_by == alice
    assert loaded.metadata == {"version": 1, "notes": "hi"}


async def test_insert_stores_canonical_pair(store, pair, test_db):
    alice, bob = pair
    edge = await store.insert(_request(bob, alice))
    row = (await test_db.execute(
        select(Connection).where(Connection.id == edge.id),
    )).scalar_one()
    assert (row.pair_low, row.pair_high) == canonical_pair(alice, bob)


async def test_get_missing_is_none(store):
    assert await store.get(ConnectionId(uuid4())) is None


async def test_duplicate_pair_either_direction(store, pair):
    alice, bob = pair
    await store.insert(_request(alice, bob))
    with pytest.raises(DuplicateEdgeError):
        await store.insert(_request(alice, bob))
    with pytest.raises(DuplicateEdgeError):
        await store.insert(_request(bob, alice))


async def test_blocked_pair_refuses_insert(store, pair):
    alice, bob = pair
    await store.insert(_request(alice, bob, status=ConnectionStatus.BLOCKED))
    with pytest.raises(BlockedPairError):
        await store.insert(_request(bob, alice))


async def test_rejected_row_frees_pair(store, pair):
    alice, bob = pair
    first = await store.insert(_request(alice, bob))
    await store.update_status(first.id, ConnectionStatus.REJECTED, ConnectionStatus.PENDING)

    second = await store.insert(_request(alice, bob, when=T0 + timedelta(hours=1)))

    assert (await store.find_by_pair(bob, alice)).id == second.id
    assert await store.count_rejected(alice, bob) == 1
    assert await store.count_rejected(bob, alice) == 0


async def test_find_by_pair_falls_back_to_latest_history(store, pair):
    alice, bob = pair
    first = await store.insert(_request(alice, bob))
    await store.update_status(first.id, ConnectionStatus.REJECTED, ConnectionStatus.PENDING)
    found = await store.find_by_pair(bob, alice)
    assert found.id == first.id
    assert found.status is ConnectionStatus.REJECTED


async def test_database_index_enforces_uniqueness(test_db, pair):
    alice, bob = pair
    low, high = canonical_pair(alice, bob)
    for _ in range(2):
        test_db.add(Connection(
            id=uuid4(), from_user_id=alice, to_user_id=bob,
            pair_low=low, pair_high=high, connection_type="connect",
            status="accepted", initiated_by=alice,
        ))
    with pytest.raises(IntegrityError):
        await test_db.commit()
    await test_db.rollback()


async def test_lost_insert_race_reported_as_duplicate(store, pair, monkeypatch):
    alice, bob = pair
    await store.insert(_request(alice, bob))

    real = store._find_exclusive
    calls = []

    async def miss_first(a, b):
        calls.append((a, b))
        return None if len(calls) == 1 else await real(a, b)

    monkeypatch.setattr(store, "_find_exclusive", miss_first)

    with pytest.raises(DuplicateEdgeError):
        await store.insert(_request(bob, alice))
    assert len(calls) == 2


async def test_update_status_compare_and_set(store, pair):
    alice, bob = pair
    edge = await store.insert(_request(alice, bob))

    accepted = await store.update_status(
        edge.id, ConnectionStatus.ACCEPTED, ConnectionStatus.PENDING, accepted_at=T0,
    )
    assert accepted.status is ConnectionStatus.ACCEPTED
    assert accepted.accepted_at is not None

    with pytest.raises(StaleStateError):
        await store.update_status(
            edge.id, ConnectionStatus.REJECTED, ConnectionStatus.PENDING,
        )


async def test_update_status_records_blocker(store, pair):
    alice, bob = pair
    edge = await store.insert(_request(alice, bob))
    blocked = await store.update_status(
        edge.id, ConnectionStatus.BLOCKED, ConnectionStatus.PENDING, blocked_by=bob,
    )
    assert blocked.blocked_by == bob


async def test_update_missing_edge_is_404(store):
    with pytest.raises(ResourceNotFoundError):
        await store.update_status(
            ConnectionId(uuid4()), ConnectionStatus.ACCEPTED, ConnectionStatus.PENDING,
        )


async def test_delete_twice_is_404(store, pair):
    alice, bob = pair
    edge = await store.insert(_request(alice, bob))
    await store.delete(edge.id)
    assert await store.get(edge.id) is None
    with pytest.raises(ResourceNotFoundError):
        await store.delete(edge.id)


async def test_listing_queries(store, seed, pair):
    alice, bob = pair
    carol = UserId(await seed.user("Carol"))
    dave = UserId(await seed.user("Dave"))
    accepted = await store.insert(_request(alice, bob, status=ConnectionStatus.ACCEPTED))
    pending = await store.insert(_request(carol, alice))
    blocked = await store.insert(_request(dave, alice, status=ConnectionStatus.BLOCKED))
    other = await store.insert(_request(bob, carol, status=ConnectionStatus.ACCEPTED))

    assert [e.id for e in await store.find_accepted(alice)] == [accepted.id]
    assert [e.id for e in await store.find_pending(alice)] == [pending.id]
    assert [e.id for e in await store.find_blocked(alice)] == [blocked.id]
    assert {e.id for e in await store.find_accepted_for_users([alice, carol])} == {
        accepted.id, other.id,
    }
    assert await store.find_accepted_for_users([]) == []

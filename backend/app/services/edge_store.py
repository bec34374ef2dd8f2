"""SQL Edge Store - SQLAlchemy implementation of the EdgeStore protocol.

Invariants:
    - Every mutation commits on success and rolls back on failure (one transaction per call)
    - insert: pair-exclusivity check and INSERT share one transaction, and the partial
      unique index on (pair_low, pair_high) rejects a concurrent duplicate
    - update_status is a single conditional UPDATE ... WHERE status = :expected
      (compare-and-set); zero rows affected means the caller lost the race
    - Reads use populate_existing so a long-lived session never serves a stale status
    - Returns EdgeRecord snapshots, never ORM rows

Design Decisions:
    - Conditional UPDATE over SELECT ... FOR UPDATE: linearizable per edge across
      processes without holding row locks, and works on SQLite for tests
    - IntegrityError on insert is re-classified by re-reading the pair, so a lost
      insert race reports DuplicateEdge/BlockedPair instead of a 500
"""

import logging
from datetime import datetime, timezone
from typing import Iterable

from sqlalchemy import select, update, delete, or_, and_, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.domain_types import (
    ConnectionId, ConnectionStatus, ConnectionType, EdgeRecord,
    PAIR_EXCLUSIVE_STATUSES, UserId,
)
from app.core.errors import (
    BlockedPairError, DatabaseError, DuplicateEdgeError, ErrorContext,
    ResourceNotFoundError, StaleStateError,
)
from app.core.graph_queries import canonical_pair
from app.models.connection import Connection

logger = logging.getLogger(__name__)

_EXCLUSIVE = [s.value for s in PAIR_EXCLUSIVE_STATUSES]


def to_record(row: Connection) -> EdgeRecord:
    return EdgeRecord(
        id=ConnectionId(row.id),
        from_user_id=UserId(row.from_user_id),
        to_user_id=UserId(row.to_user_id),
        connection_type=ConnectionType(row.connection_type),
        status=ConnectionStatus(row.status),
        initiated_by=UserId(row.initiated_by),
        created_at=row.created_at,
        accepted_at=row.accepted_at,
        blocked_by=UserId(row.blocked_by) if row.blocked_by else None,
        metadata=row.metadata_,
    )


def _incident(user_id: UserId):
    return or_(Connection.from_user_id == user_id, Connection.to_user_id == user_id)


class SqlEdgeStore:
    """Connection persistence over an AsyncSession."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _select(self, stmt) -> list[EdgeRecord]:
        result = await self.db.execute(
            stmt.execution_options(populate_existing=True),
        )
        return [to_record(row) for row in result.scalars().all()]

    async def _find_exclusive(self, a: UserId, b: UserId) -> EdgeRecord | None:
        low, high = canonical_pair(a, b)
        rows = await self._select(
            select(Connection)
            .where(Connection.pair_low == low)
            .where(Connection.pair_high == high)
            .where(Connection.status.in_(_EXCLUSIVE))
        )
        return rows[0] if rows else None

    @staticmethod
    def _raise_occupied(existing: EdgeRecord, edge: EdgeRecord) -> None:
        context = ErrorContext(
            user_id=str(edge.initiated_by), connection_id=str(existing.id),
        )
        if existing.status is ConnectionStatus.BLOCKED:
            raise BlockedPairError(context)
        raise DuplicateEdgeError(existing.status.value, context)

    async def insert(self, edge: EdgeRecord) -> EdgeRecord:
        existing = await self._find_exclusive(edge.from_user_id, edge.to_user_id)
        if existing is not None:
            await self.db.rollback()
            self._raise_occupied(existing, edge)

        low, high = canonical_pair(edge.from_user_id, edge.to_user_id)
        row = Connection(
            id=edge.id,
            from_user_id=edge.from_user_id,
            to_user_id=edge.to_user_id,
            pair_low=low,
            pair_high=high,
            connection_type=edge.connection_type.value,
            status=edge.status.value,
            initiated_by=edge.initiated_by,
            blocked_by=edge.blocked_by,
            metadata_=edge.metadata,
            created_at=edge.created_at,
            updated_at=edge.created_at,
        )
        self.db.add(row)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            existing = await self._find_exclusive(edge.from_user_id, edge.to_user_id)
            if existing is None:
                logger.error(f"Connection insert failed: {e}")
                raise DatabaseError("Integrity constraint violated", "insert")
            logger.warning(
                "Lost insert race for connection pair",
                extra={"user_id": str(edge.initiated_by), "connection_id": str(existing.id)},
            )
            self._raise_occupied(existing, edge)
        return edge

    async def get(self, edge_id: ConnectionId) -> EdgeRecord | None:
        rows = await self._select(
            select(Connection).where(Connection.id == edge_id),
        )
        return rows[0] if rows else None

    async def find_by_pair(self, a: UserId, b: UserId) -> EdgeRecord | None:
        exclusive = await self._find_exclusive(a, b)
        if exclusive is not None:
            return exclusive
        low, high = canonical_pair(a, b)
        rows = await self._select(
            select(Connection)
            .where(Connection.pair_low == low)
            .where(Connection.pair_high == high)
            .order_by(Connection.created_at.desc())
            .limit(1)
        )
        return rows[0] if rows else None

    async def find_accepted(self, user_id: UserId) -> list[EdgeRecord]:
        return await self._select(
            select(Connection)
            .where(_incident(user_id))
            .where(Connection.status == ConnectionStatus.ACCEPTED.value)
            .order_by(Connection.created_at.desc())
        )

    async def find_accepted_for_users(
        self, user_ids: Iterable[UserId],
    ) -> list[EdgeRecord]:
        ids = list(user_ids)
        if not ids:
            return []
        return await self._select(
            select(Connection)
            .where(Connection.status == ConnectionStatus.ACCEPTED.value)
            .where(or_(
                Connection.from_user_id.in_(ids),
                Connection.to_user_id.in_(ids),
            ))
        )

    async def find_blocked(self, user_id: UserId) -> list[EdgeRecord]:
        return await self._select(
            select(Connection)
            .where(_incident(user_id))
            .where(Connection.status == ConnectionStatus.BLOCKED.value)
        )

    async def find_pending(self, user_id: UserId) -> list[EdgeRecord]:
        return await self._select(
            select(Connection)
            .where(_incident(user_id))
            .where(Connection.status == ConnectionStatus.PENDING.value)
            .order_by(Connection.created_at.desc())
        )

    async def count_rejected(
        self, from_user_id: UserId, to_user_id: UserId,
    ) -> int:
        result = await self.db.execute(
            select(func.count(Connection.id)).where(and_(
                Connection.from_user_id == from_user_id,
                Connection.to_user_id == to_user_id,
                Connection.status == ConnectionStatus.REJECTED.value,
            ))
        )
        return result.scalar_one()

    async def update_status(
        self,
        edge_id: ConnectionId,
        new_status: ConnectionStatus,
        expected_current_status: ConnectionStatus,
        accepted_at: datetime | None = None,
        blocked_by: UserId | None = None,
    ) -> EdgeRecord:
        values: dict = {
            "status": new_status.value,
            "updated_at": datetime.now(timezone.utc),
        }
        if accepted_at is not None:
            values["accepted_at"] = accepted_at
        if blocked_by is not None:
            values["blocked_by"] = blocked_by

        result = await self.db.execute(
            update(Connection)
            .where(Connection.id == edge_id)
            .where(Connection.status == expected_current_status.value)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            await self.db.rollback()
            context = ErrorContext(connection_id=str(edge_id))
            if await self.get(edge_id) is None:
                raise ResourceNotFoundError("Connection", str(edge_id), context)
            raise StaleStateError(expected_current_status.value, context)

        await self.db.commit()
        updated = await self.get(edge_id)
        if updated is None:
            raise ResourceNotFoundError("Connection", str(edge_id))
        return updated

    async def delete(self, edge_id: ConnectionId) -> None:
        result = await self.db.execute(
            delete(Connection)
            .where(Connection.id == edge_id)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            await self.db.rollback()
            raise ResourceNotFoundError("Connection", str(edge_id))
        await self.db.commit()

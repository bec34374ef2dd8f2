"""In-memory EdgeStore / UserDirectory — protocol fakes for service tests.

Invariants:
    - Same observable contract as the SQL implementations: pair exclusivity,
      compare-and-set update_status, 404 on deleting a missing edge
    - Every method yields to the event loop once (asyncio.sleep(0)) so
      asyncio.gather can interleave two requests between read and write
"""

import asyncio
from dataclasses import replace
from datetime import datetime, timezone
from uuid import uuid4

from app.core.domain_types import (
    ConnectionId, ConnectionStatus, EdgeRecord, LocationFilter, NeighborhoodId,
    PAIR_EXCLUSIVE_STATUSES, UserId, UserLocation, UserProfile,
)
from app.core.errors import (
    BlockedPairError, DuplicateEdgeError, ResourceNotFoundError, StaleStateError,
)
from app.core.graph_queries import canonical_pair, sorted_ids


class InMemoryEdgeStore:

    def __init__(self):
        self.edges: dict[ConnectionId, EdgeRecord] = {}

    def _exclusive(self, a: UserId, b: UserId) -> EdgeRecord | None:
        key = canonical_pair(a, b)
        for edge in self.edges.values():
            if (
                canonical_pair(edge.from_user_id, edge.to_user_id) == key
                and edge.status in PAIR_EXCLUSIVE_STATUSES
            ):
                return edge
        return None

    async def insert(self, edge: EdgeRecord) -> EdgeRecord:
        await asyncio.sleep(0)
        existing = self._exclusive(edge.from_user_id, edge.to_user_id)
        if existing is not None and edge.status in PAIR_EXCLUSIVE_STATUSES:
            if existing.status is ConnectionStatus.BLOCKED:
                raise BlockedPairError()
            raise DuplicateEdgeError(existing.status.value)
        self.edges[edge.id] = edge
        return edge

    async def get(self, edge_id: ConnectionId) -> EdgeRecord | None:
        await asyncio.sleep(0)
        return self.edges.get(edge_id)

    async def find_by_pair(self, a: UserId, b: UserId) -> EdgeRecord | None:
        await asyncio.sleep(0)
        exclusive = self._exclusive(a, b)
        if exclusive is not None:
            return exclusive
        key = canonical_pair(a, b)
        history = [
            e for e in self.edges.values()
            if canonical_pair(e.from_user_id, e.to_user_id) == key
        ]
        return max(history, key=lambda e: e.created_at) if history else None

    async def find_accepted(self, user_id: UserId) -> list[EdgeRecord]:
        await asyncio.sleep(0)
        return sorted(
            (
                e for e in self.edges.values()
                if e.status is ConnectionStatus.ACCEPTED and e.involves(user_id)
            ),
            key=lambda e: e.created_at, reverse=True,
        )

    async def find_accepted_for_users(self, user_ids) -> list[EdgeRecord]:
        await asyncio.sleep(0)
        ids = set(user_ids)
        return [
            e for e in self.edges.values()
            if e.status is ConnectionStatus.ACCEPTED
            and (e.from_user_id in ids or e.to_user_id in ids)
        ]

    async def find_blocked(self, user_id: UserId) -> list[EdgeRecord]:
        await asyncio.sleep(0)
        return [
            e for e in self.edges.values()
            if e.status is ConnectionStatus.BLOCKED and e.involves(user_id)
        ]

    async def find_pending(self, user_id: UserId) -> list[EdgeRecord]:
        await asyncio.sleep(0)
        return sorted(
            (
                e for e in self.edges.values()
                if e.status is ConnectionStatus.PENDING and e.involves(user_id)
            ),
            key=lambda e: e.created_at, reverse=True,
        )

    async def count_rejected(self, from_user_id: UserId, to_user_id: UserId) -> int:
        await asyncio.sleep(0)
        return sum(
            1 for e in self.edges.values()
            if e.status is ConnectionStatus.REJECTED
            and e.from_user_id == from_user_id and e.to_user_id == to_user_id
        )

    async def update_status(
        self,
        edge_id: ConnectionId,
        new_status: ConnectionStatus,
        expected_current_status: ConnectionStatus,
        accepted_at: datetime | None = None,
        blocked_by: UserId | None = None,
    ) -> EdgeRecord:
        await asyncio.sleep(0)
        current = self.edges.get(edge_id)
        if current is None:
            raise ResourceNotFoundError("Connection", str(edge_id))
        if current.status is not expected_current_status:
            raise StaleStateError(expected_current_status.value)
        updated = replace(
            current,
            status=new_status,
            accepted_at=accepted_at or current.accepted_at,
            blocked_by=blocked_by or current.blocked_by,
        )
        self.edges[edge_id] = updated
        return updated

    async def delete(self, edge_id: ConnectionId) -> None:
        await asyncio.sleep(0)
        if self.edges.pop(edge_id, None) is None:
            raise ResourceNotFoundError("Connection", str(edge_id))


class InMemoryUserDirectory:

    def __init__(self):
        self.profiles: dict[UserId, UserProfile] = {}
        self.locations: dict[UserId, UserLocation] = {}

    def add_user(
        self,
        first_name: str = "",
        last_name: str = "",
        neighborhood: NeighborhoodId | None = None,
        parent: NeighborhoodId | None = None,
        lga=None,
        interests: tuple[str, ...] = (),
        joined_at: datetime | None = None,
        user_id: UserId | None = None,
    ) -> UserId:
        uid = user_id or UserId(uuid4())
        self.profiles[uid] = UserProfile(
            id=uid, first_name=first_name, last_name=last_name,
            interests=interests,
            joined_at=joined_at or datetime.now(timezone.utc),
        )
        if neighborhood is not None:
            self.locations[uid] = UserLocation(
                user_id=uid, neighborhood_id=neighborhood,
                neighborhood_name=f"hood-{str(neighborhood)[:4]}",
                parent_neighborhood_id=parent, lga_id=lga,
            )
        return uid

    async def exists(self, user_id: UserId) -> bool:
        await asyncio.sleep(0)
        return user_id in self.profiles

    async def get_profiles(self, user_ids) -> dict[UserId, UserProfile]:
        await asyncio.sleep(0)
        return {uid: self.profiles[uid] for uid in user_ids if uid in self.profiles}

    async def get_primary_location(self, user_id: UserId) -> UserLocation | None:
        await asyncio.sleep(0)
        return self.locations.get(user_id)

    async def get_locations(self, user_ids) -> dict[UserId, UserLocation]:
        await asyncio.sleep(0)
        return {uid: self.locations[uid] for uid in user_ids if uid in self.locations}

    async def find_users(self, location_filter: LocationFilter) -> list[UserId]:
        await asyncio.sleep(0)
        return sorted_ids(
            uid for uid in self.profiles
            if location_filter.matches(self.locations.get(uid))
        )

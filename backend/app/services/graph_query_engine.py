"""Graph Query Engine - store-backed neighbor, mutual and discovery queries.

Invariants:
    - Every call re-reads the store: no cross-request cache of graph state
    - Set algebra delegated to core.graph_queries (pure)
    - Blocked partners in either direction never reach discovery output

Design Decisions:
    - Engine takes EdgeStore and UserDirectory protocols, not sessions: tests inject fakes
    - neighbor_sets is the batched path used by the recommendation pipeline
"""

from typing import Iterable

from app.core.domain_types import LocationFilter, UserId
from app.core.graph_queries import (
    blocked_partners, build_adjacency, count_mutual, discovery_candidates,
    mutual_connections, neighbors_from_edges,
)
from app.core.repository_protocols import EdgeStore, UserDirectory


class GraphQueryEngine:
    """Accepted-neighbor sets and their intersections/differences."""

    def __init__(self, store: EdgeStore, directory: UserDirectory):
        self.store = store
        self.directory = directory

    async def neighbors_of(self, user_id: UserId) -> set[UserId]:
        edges = await self.store.find_accepted(user_id)
        return neighbors_from_edges(user_id, edges)

    async def neighbor_sets(
        self, user_ids: Iterable[UserId],
    ) -> dict[UserId, set[UserId]]:
        ids = list(user_ids)
        adjacency = build_adjacency(await self.store.find_accepted_for_users(ids))
        return {uid: adjacency.get(uid, set()) for uid in ids}

    async def blocked_partners_of(self, user_id: UserId) -> set[UserId]:
        return blocked_partners(user_id, await self.store.find_blocked(user_id))

    async def mutual_connections(self, a: UserId, b: UserId) -> set[UserId]:
        sets = await self.neighbor_sets([a, b])
        return mutual_connections(a, b, sets[a], sets[b])

    async def mutual_count(self, a: UserId, b: UserId) -> int:
        sets = await self.neighbor_sets([a, b])
        return count_mutual(a, b, sets[a], sets[b])

    async def discovery_candidates(
        self, user_id: UserId, location_filter: LocationFilter,
    ) -> set[UserId]:
        pool = await self.directory.find_users(location_filter)
        return discovery_candidates(
            user_id,
            pool,
            await self.neighbors_of(user_id),
            await self.blocked_partners_of(user_id),
        )

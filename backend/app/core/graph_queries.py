"""Graph Queries - pure set algebra over accepted-edge snapshots.

Invariants:
    - Accepted edges are undirected: a->b and b->a contribute the same neighbor pair
    - Only ACCEPTED edges count as neighbors; pending/rejected/blocked never do
    - mutual connections never include either of the two users themselves
    - Blocked partners (either direction) are always excluded from discovery candidates
    - canonical_pair is the single definition of the unordered pair key

Design Decisions:
    - Functions take edge lists, not a store: shell fetches, core computes
      (ADR: impureim sandwich, testable without a database)
    - count_mutual iterates the smaller set and probes the larger one, so callers
      that only need the count never build the intersection
"""

from typing import Iterable

from app.core.domain_types import ConnectionStatus, EdgeRecord, UserId


def canonical_pair(a: UserId, b: UserId) -> tuple[UserId, UserId]:
    """Order-independent key for a pair of users."""
    return (a, b) if str(a) <= str(b) else (b, a)


def neighbors_from_edges(user_id: UserId, edges: Iterable[EdgeRecord]) -> set[UserId]:
    """Accepted-edge partners of user_id, both directions collapsed."""
    return {
        edge.partner_of(user_id)
        for edge in edges
        if edge.status is ConnectionStatus.ACCEPTED and edge.involves(user_id)
    }


def build_adjacency(edges: Iterable[EdgeRecord]) -> dict[UserId, set[UserId]]:
    """Undirected neighbor sets for every user touched by accepted edges."""
    adjacency: dict[UserId, set[UserId]] = {}
    for edge in edges:
        if edge.status is not ConnectionStatus.ACCEPTED:
            continue
        adjacency.setdefault(edge.from_user_id, set()).add(edge.to_user_id)
        adjacency.setdefault(edge.to_user_id, set()).add(edge.from_user_id)
    return adjacency


def mutual_connections(
    a: UserId, b: UserId,
    neighbors_a: set[UserId], neighbors_b: set[UserId],
) -> set[UserId]:
    return (neighbors_a & neighbors_b) - {a, b}


def count_mutual(
    a: UserId, b: UserId,
    neighbors_a: set[UserId], neighbors_b: set[UserId],
) -> int:
    small, large = (
        (neighbors_a, neighbors_b)
        if len(neighbors_a) <= len(neighbors_b)
        else (neighbors_b, neighbors_a)
    )
    return sum(1 for uid in small if uid in large and uid != a and uid != b)


def blocked_partners(user_id: UserId, edges: Iterable[EdgeRecord]) -> set[UserId]:
    """Users on the other side of a blocked edge, whoever placed the block."""
    return {
        edge.partner_of(user_id)
        for edge in edges
        if edge.status is ConnectionStatus.BLOCKED and edge.involves(user_id)
    }


def discovery_candidates(
    user_id: UserId,
    pool: Iterable[UserId],
    neighbors: set[UserId],
    blocked: set[UserId],
) -> set[UserId]:
    """pool minus the user, their neighbors and anyone blocked either way."""
    excluded = neighbors | blocked | {user_id}
    return {uid for uid in pool if uid not in excluded}


def sorted_ids(user_ids: Iterable[UserId]) -> list[UserId]:
    """Stable order for reproducible pagination."""
    return sorted(user_ids, key=str)

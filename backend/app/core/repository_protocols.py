"""Boundary Protocols - contracts between core and shell.

Invariants:
    - Core NEVER imports from shell: dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - Implementations provided by shell via dependency injection
    - EdgeStore is the ONLY writer of connection status and accepted_at
    - UserDirectory is read-only: the engine never writes profile or location data

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - Async in Protocol: boundary methods are async because implementations do IO,
      but core pure functions that USE these protocols are never async themselves;
      the shell orchestrates the async calls around the pure logic
    - Bulk methods (find_accepted_for_users, get_profiles, get_locations) exist so the
      recommendation pipeline fetches everything in a fixed number of round trips
"""

from datetime import datetime
from typing import Iterable, Protocol

from app.core.domain_types import (
    ConnectionId, ConnectionStatus, EdgeRecord, LocationFilter,
    UserId, UserLocation, UserProfile,
)


class EdgeStore(Protocol):
    """Contract for connection edge persistence."""

    async def insert(self, edge: EdgeRecord) -> EdgeRecord:
        """Atomically check pair exclusivity and insert.

        Raises DuplicateEdgeError / BlockedPairError when the pair is occupied.
        """
        ...

    async def get(self, edge_id: ConnectionId) -> EdgeRecord | None: ...

    async def find_by_pair(self, a: UserId, b: UserId) -> EdgeRecord | None:
        """Current edge between the unordered pair, checking both directions."""
        ...

    async def find_accepted(self, user_id: UserId) -> list[EdgeRecord]: ...

    async def find_accepted_for_users(
        self, user_ids: Iterable[UserId],
    ) -> list[EdgeRecord]: ...

    async def find_blocked(self, user_id: UserId) -> list[EdgeRecord]: ...

    async def find_pending(self, user_id: UserId) -> list[EdgeRecord]:
        """Incoming and outgoing pending edges, newest first."""
        ...

    async def count_rejected(
        self, from_user_id: UserId, to_user_id: UserId,
    ) -> int: ...

    async def update_status(
        self,
        edge_id: ConnectionId,
        new_status: ConnectionStatus,
        expected_current_status: ConnectionStatus,
        accepted_at: datetime | None = None,
        blocked_by: UserId | None = None,
    ) -> EdgeRecord:
        """Compare-and-set. Raises StaleStateError when the expectation fails."""
        ...

    async def delete(self, edge_id: ConnectionId) -> None:
        """Hard delete. Raises ResourceNotFoundError when already gone."""
        ...


class UserDirectory(Protocol):
    """Read-only contract for user identity, profile and location lookups."""

    async def exists(self, user_id: UserId) -> bool: ...

    async def get_profiles(
        self, user_ids: Iterable[UserId],
    ) -> dict[UserId, UserProfile]: ...

    async def get_primary_location(self, user_id: UserId) -> UserLocation | None: ...

    async def get_locations(
        self, user_ids: Iterable[UserId],
    ) -> dict[UserId, UserLocation]: ...

    async def find_users(self, location_filter: LocationFilter) -> list[UserId]:
        """Users matching the filter (all users when empty), ordered by id."""
        ...

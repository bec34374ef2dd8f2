"""Connection Service - request, transition, remove and list connection edges.

Invariants:
    - Every status change is planned by core.connection_lifecycle and applied through
      EdgeStore.update_status (compare-and-set); no direct status writes here
    - Self-connection and unknown targets are rejected before the store is touched
    - Request metadata is captured once at insert and never recomputed
    - Errors propagate to the caller unchanged; nothing is retried internally

Design Decisions:
    - EdgeStore and UserDirectory injected via constructor: no module-level singletons
    - describe() fetches profiles, locations and accepted edges for a whole page in three
      calls, then derives mutual counts and stats in memory
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from app.core.connection_lifecycle import (
    allowed_actions, build_request, check_removal, check_request_allowed,
    plan_transition,
)
from app.core.connection_metadata import capture_metadata
from app.core.domain_types import (
    ConnectionAction, ConnectionId, ConnectionStatus, ConnectionType,
    EdgeRecord, LocationFilter, ProximityLevel, UserId, UserLocation,
    UserProfile,
)
from app.core.errors import (
    ErrorContext, InvalidTransitionError, ResourceNotFoundError,
    SelfConnectionError,
)
from app.core.graph_queries import build_adjacency, count_mutual, sorted_ids
from app.core.pagination import PageInfo, paginate
from app.core.repository_protocols import EdgeStore, UserDirectory
from app.services.graph_query_engine import GraphQueryEngine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConnectionStats:
    total_connections: int = 0
    trusted_connections: int = 0


@dataclass(frozen=True)
class ConnectionDetails:
    """An edge as seen by one of its parties."""
    edge: EdgeRecord
    partner_id: UserId
    partner: UserProfile | None
    partner_location: UserLocation | None
    partner_stats: ConnectionStats
    mutual_count: int
    actions: tuple[ConnectionAction, ...]


@dataclass(frozen=True)
class PendingRequests:
    incoming: list[ConnectionDetails]
    outgoing: list[ConnectionDetails]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _matches_search(profile: UserProfile | None, search: str) -> bool:
    if profile is None:
        return False
    needle = search.strip().lower()
    return (
        needle in profile.first_name.lower()
        or needle in profile.last_name.lower()
    )


class ConnectionService:
    """Connection lifecycle orchestration over EdgeStore + UserDirectory."""

    def __init__(
        self,
        store: EdgeStore,
        directory: UserDirectory,
        rerequest_limit: int | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.store = store
        self.directory = directory
        self.engine = GraphQueryEngine(store, directory)
        self.rerequest_limit = rerequest_limit
        self._clock = clock

    # ─── Mutations ──────────────────────────────────────────────

    async def request_connection(
        self,
        actor: UserId,
        target: UserId,
        connection_type: ConnectionType = ConnectionType.CONNECT,
        proximity_level: ProximityLevel | None = None,
        shared_interests: tuple[str, ...] = (),
        notes: str | None = None,
    ) -> ConnectionDetails:
        """Create a pending edge actor -> target."""
        if actor == target:
            raise SelfConnectionError(ErrorContext(user_id=str(actor)))
        await self._require_user(actor)
        await self._require_user(target)

        existing = await self.store.find_by_pair(actor, target)
        rejected = (
            await self.store.count_rejected(actor, target)
            if self.rerequest_limit is not None else 0
        )
        check_request_allowed(
            actor, target, existing, rejected, self.rerequest_limit,
        )

        neighbor_sets = await self.engine.neighbor_sets([actor, target])
        locations = await self.directory.get_locations([actor, target])
        metadata = capture_metadata(
            proximity_level=proximity_level,
            shared_interests=shared_interests,
            notes=notes,
            mutual_count=count_mutual(
                actor, target, neighbor_sets[actor], neighbor_sets[target],
            ),
            requester=locations.get(actor),
            target=locations.get(target),
        )
        edge = await self.store.insert(build_request(
            actor, target, connection_type, self._clock(), metadata.to_dict(),
        ))
        logger.info(
            "Connection requested",
            extra={"user_id": str(actor), "connection_id": str(edge.id)},
        )
        return (await self.describe([edge], actor))[0]

    async def accept(self, edge_id: ConnectionId, actor: UserId) -> ConnectionDetails:
        edge = await self._apply(edge_id, actor, ConnectionAction.ACCEPT)
        return (await self.describe([edge], actor))[0]

    async def reject(self, edge_id: ConnectionId, actor: UserId) -> ConnectionDetails:
        edge = await self._apply(edge_id, actor, ConnectionAction.REJECT)
        return (await self.describe([edge], actor))[0]

    async def block(self, edge_id: ConnectionId, actor: UserId) -> ConnectionDetails:
        edge = await self._apply(edge_id, actor, ConnectionAction.BLOCK)
        return (await self.describe([edge], actor))[0]

    async def block_user(self, actor: UserId, target: UserId) -> ConnectionDetails:
        """Block target whether or not an edge exists yet.

        An existing pending/accepted edge is moved to blocked; an existing block is
        returned as-is; otherwise a new blocked edge is inserted.
        """
        if actor == target:
            raise SelfConnectionError(ErrorContext(user_id=str(actor)))
        await self._require_user(actor)
        await self._require_user(target)

        existing = await self.store.find_by_pair(actor, target)
        if existing is not None and existing.status is ConnectionStatus.BLOCKED:
            edge = existing
        elif existing is not None and existing.status in (
            ConnectionStatus.PENDING, ConnectionStatus.ACCEPTED,
        ):
            edge = await self._apply(existing.id, actor, ConnectionAction.BLOCK, existing)
        else:
            edge = await self.store.insert(build_request(
                actor, target, ConnectionType.CONNECT, self._clock(),
                status=ConnectionStatus.BLOCKED,
            ))
            logger.info(
                "User blocked",
                extra={"user_id": str(actor), "connection_id": str(edge.id)},
            )
        return (await self.describe([edge], actor))[0]

    async def remove(self, edge_id: ConnectionId, actor: UserId) -> None:
        """Hard delete. A second removal of the same edge is a 404."""
        edge = await self._get_or_404(edge_id)
        check_removal(edge, actor)
        await self.store.delete(edge_id)
        logger.info(
            "Connection removed",
            extra={
                "user_id": str(actor), "connection_id": str(edge_id),
                "from_status": edge.status.value,
            },
        )

    # ─── Queries ────────────────────────────────────────────────

    async def list_connections(
        self,
        viewer: UserId,
        page: int = 1,
        page_size: int = 20,
        connection_type: ConnectionType | None = None,
        location_filter: LocationFilter | None = None,
        search: str | None = None,
    ) -> tuple[list[ConnectionDetails], PageInfo]:
        """Accepted connections of viewer, newest first."""
        edges = await self.store.find_accepted(viewer)
        if connection_type is not None:
            edges = [e for e in edges if e.connection_type is connection_type]

        if location_filter is not None and not location_filter.is_empty:
            locations = await self.directory.get_locations(
                e.partner_of(viewer) for e in edges
            )
            edges = [
                e for e in edges
                if location_filter.matches(locations.get(e.partner_of(viewer)))
            ]

        if search and search.strip():
            profiles = await self.directory.get_profiles(
                e.partner_of(viewer) for e in edges
            )
            edges = [
                e for e in edges
                if _matches_search(profiles.get(e.partner_of(viewer)), search)
            ]

        edges.sort(key=lambda e: str(e.id))
        edges.sort(key=lambda e: e.created_at, reverse=True)
        page_edges, info = paginate(edges, page, page_size)
        return await self.describe(page_edges, viewer), info

    async def list_requests(self, viewer: UserId) -> PendingRequests:
        pending = await self.store.find_pending(viewer)
        details = await self.describe(pending, viewer)
        return PendingRequests(
            incoming=[d for d in details if d.edge.to_user_id == viewer],
            outgoing=[d for d in details if d.edge.from_user_id == viewer],
        )

    async def mutual_connections(
        self, viewer: UserId, target: UserId, limit: int,
    ) -> tuple[list[UserProfile], int]:
        """Up to `limit` mutual connections (sorted by id) and the full count."""
        if viewer == target:
            raise SelfConnectionError(ErrorContext(user_id=str(viewer)))
        await self._require_user(target)
        mutual_ids = sorted_ids(await self.engine.mutual_connections(viewer, target))
        profiles = await self.directory.get_profiles(mutual_ids[:limit])
        shown = [profiles[uid] for uid in mutual_ids[:limit] if uid in profiles]
        return shown, len(mutual_ids)

    async def describe(
        self, edges: list[EdgeRecord], viewer: UserId,
    ) -> list[ConnectionDetails]:
        """Attach partner profile, location, stats and mutual count to each edge."""
        if not edges:
            return []
        partners = [e.partner_of(viewer) for e in edges]
        profiles = await self.directory.get_profiles(partners)
        locations = await self.directory.get_locations(partners)
        accepted = await self.store.find_accepted_for_users([viewer, *partners])

        adjacency = build_adjacency(accepted)
        viewer_neighbors = adjacency.get(viewer, set())
        stats: dict[UserId, ConnectionStats] = {}
        for partner in set(partners):
            incident = [e for e in accepted if e.involves(partner)]
            stats[partner] = ConnectionStats(
                total_connections=len(incident),
                trusted_connections=sum(
                    1 for e in incident
                    if e.connection_type is ConnectionType.TRUSTED
                ),
            )

        return [
            ConnectionDetails(
                edge=edge,
                partner_id=partner,
                partner=profiles.get(partner),
                partner_location=locations.get(partner),
                partner_stats=stats[partner],
                mutual_count=count_mutual(
                    viewer, partner, viewer_neighbors,
                    adjacency.get(partner, set()),
                ),
                actions=tuple(allowed_actions(edge, viewer)),
            )
            for edge, partner in zip(edges, partners)
        ]

    # ─── Internals ──────────────────────────────────────────────

    async def _require_user(self, user_id: UserId) -> None:
        if not await self.directory.exists(user_id):
            raise ResourceNotFoundError("User", str(user_id))

    async def _get_or_404(self, edge_id: ConnectionId) -> EdgeRecord:
        edge = await self.store.get(edge_id)
        if edge is None:
            raise ResourceNotFoundError(
                "Connection", str(edge_id),
                ErrorContext(connection_id=str(edge_id)),
            )
        return edge

    async def _apply(
        self,
        edge_id: ConnectionId,
        actor: UserId,
        action: ConnectionAction,
        edge: EdgeRecord | None = None,
    ) -> EdgeRecord:
        edge = edge or await self._get_or_404(edge_id)
        try:
            plan = plan_transition(edge, actor, action, self._clock())
        except InvalidTransitionError as e:
            logger.warning(
                f"Rejected transition: {e.message}",
                extra={
                    "user_id": str(actor), "connection_id": str(edge_id),
                    "error_code": e.code, "from_status": edge.status.value,
                },
            )
            raise
        updated = await self.store.update_status(
            plan.edge_id, plan.new_status, plan.expected_status,
            accepted_at=plan.accepted_at, blocked_by=plan.blocked_by,
        )
        logger.info(
            f"Connection {action.value}",
            extra={
                "user_id": str(actor), "connection_id": str(edge_id),
                "from_status": plan.expected_status.value,
                "to_status": plan.new_status.value,
            },
        )
        return updated

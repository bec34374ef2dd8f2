"""Connection Routes — request, transition, list and discover neighbor connections.

Invariants:
    - Caller identity always comes from get_current_user_id (X-User-Id)
    - Routes never contain business logic: services decide, presenters shape
    - limit/page_size validated against settings bounds before any service call
    - Static paths (/requests, /recommendations, /discover, /mutual, /block) are
      declared before /{connection_id} so they never parse as an id

Design Decisions:
    - Domain errors propagate to the global NeighborGraphError handler; no
      try/except in handlers
    - Defaults for limit/page_size come from Settings, so Query(None) + fallback
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from app.api.dependencies import (
    get_connection_service, get_current_user_id, get_recommendation_service,
)
from app.api.routes.connection_presenters import (
    page_fields, present_connection, present_discovery_item, present_neighbor,
    present_recommendation,
)
from app.config import Settings, get_settings
from app.core.domain_types import (
    ConnectionId, ConnectionType, DiscoverySort, LocationFilter, NeighborhoodId,
    UserId,
)
from app.core.pagination import validate_bounds
from app.schemas.connection import (
    BlockUserRequest, ConnectionCreate, ConnectionRequestsResponse,
    ConnectionResponse, MutualConnectionsResponse, PaginatedConnectionsResponse,
)
from app.schemas.discovery import DiscoveryPageResponse, RecommendationListResponse
from app.services.connection_service import ConnectionService
from app.services.recommendation_service import RecommendationService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/connections", tags=["connections"])


def _location_filter(
    neighborhood_id: UUID | None = Query(None),
    estate_id: UUID | None = Query(None),
    lga_id: UUID | None = Query(None),
) -> LocationFilter:
    return LocationFilter(
        neighborhood_id=NeighborhoodId(neighborhood_id) if neighborhood_id else None,
        estate_id=NeighborhoodId(estate_id) if estate_id else None,
        lga_id=lga_id,
    )


def _page_size(requested: int | None, settings: Settings) -> int:
    return validate_bounds(
        "page_size",
        requested if requested is not None else settings.discovery_default_page_size,
        settings.discovery_max_page_size,
    )


# ─── Collection ─────────────────────────────────────────────────

@router.post(
    "", response_model=ConnectionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def request_connection(
    body: ConnectionCreate,
    user_id: UserId = Depends(get_current_user_id),
    service: ConnectionService = Depends(get_connection_service),
):
    """Send a connection request to another user."""
    meta = body.metadata
    details = await service.request_connection(
        user_id,
        UserId(body.to_user_id),
        connection_type=body.connection_type,
        proximity_level=meta.proximity_level if meta else None,
        shared_interests=tuple(meta.shared_interests) if meta else (),
        notes=meta.notes if meta else None,
    )
    return present_connection(details)


@router.get("", response_model=PaginatedConnectionsResponse)
async def list_connections(
    page: int = Query(1),
    page_size: int | None = Query(None),
    connection_type: ConnectionType | None = Query(None),
    search: str | None = Query(None, max_length=100),
    location: LocationFilter = Depends(_location_filter),
    user_id: UserId = Depends(get_current_user_id),
    service: ConnectionService = Depends(get_connection_service),
    settings: Settings = Depends(get_settings),
):
    """Accepted connections of the caller, newest first."""
    details, info = await service.list_connections(
        user_id,
        page=page,
        page_size=_page_size(page_size, settings),
        connection_type=connection_type,
        location_filter=location,
        search=search,
    )
    return PaginatedConnectionsResponse(
        data=[present_connection(d) for d in details], **page_fields(info),
    )


# ─── Static sub-resources ───────────────────────────────────────

@router.get("/requests", response_model=ConnectionRequestsResponse)
async def list_requests(
    user_id: UserId = Depends(get_current_user_id),
    service: ConnectionService = Depends(get_connection_service),
):
    """Pending requests addressed to, and sent by, the caller."""
    pending = await service.list_requests(user_id)
    return ConnectionRequestsResponse(
        incoming=[present_connection(d) for d in pending.incoming],
        outgoing=[present_connection(d) for d in pending.outgoing],
    )


@router.get("/recommendations", response_model=RecommendationListResponse)
async def recommendations(
    limit: int | None = Query(None),
    user_id: UserId = Depends(get_current_user_id),
    service: RecommendationService = Depends(get_recommendation_service),
    settings: Settings = Depends(get_settings),
):
    """Ranked neighbors the caller may want to connect with."""
    limit = validate_bounds(
        "limit",
        limit if limit is not None else settings.recommendation_default_limit,
        settings.recommendation_max_limit,
    )
    result = await service.recommend(user_id, limit)
    return RecommendationListResponse(
        data=[present_recommendation(r) for r in result.items],
        total_candidates=result.candidate_count,
        truncated=result.truncated,
        location_scoped=result.location_scoped,
    )


@router.get("/discover", response_model=DiscoveryPageResponse)
async def discover(
    page: int = Query(1),
    page_size: int | None = Query(None),
    sort: DiscoverySort = Query(DiscoverySort.JOINED),
    search: str | None = Query(None, max_length=100),
    location: LocationFilter = Depends(_location_filter),
    user_id: UserId = Depends(get_current_user_id),
    service: RecommendationService = Depends(get_recommendation_service),
    settings: Settings = Depends(get_settings),
):
    """Browse users not yet connected with the caller."""
    result = await service.discover(
        user_id,
        location,
        page=page,
        page_size=_page_size(page_size, settings),
        sort=sort,
        search=search,
    )
    return DiscoveryPageResponse(
        data=[present_discovery_item(item) for item in result.items],
        truncated=result.truncated,
        **page_fields(result.page),
    )


@router.get("/mutual/{other_user_id}", response_model=MutualConnectionsResponse)
async def mutual_connections(
    other_user_id: UUID,
    user_id: UserId = Depends(get_current_user_id),
    service: ConnectionService = Depends(get_connection_service),
    settings: Settings = Depends(get_settings),
):
    """Connections the caller shares with another user."""
    profiles, count = await service.mutual_connections(
        user_id, UserId(other_user_id),
        settings.mutual_connections_display_limit,
    )
    return MutualConnectionsResponse(
        data=[present_neighbor(p.id, p) for p in profiles], count=count,
    )


@router.post("/block", response_model=ConnectionResponse)
async def block_user(
    body: BlockUserRequest,
    user_id: UserId = Depends(get_current_user_id),
    service: ConnectionService = Depends(get_connection_service),
):
    """Block a user, with or without an existing connection."""
    details = await service.block_user(user_id, UserId(body.user_id))
    return present_connection(details)


# ─── Single connection ──────────────────────────────────────────

@router.post("/{connection_id}/accept", response_model=ConnectionResponse)
async def accept_connection(
    connection_id: UUID,
    user_id: UserId = Depends(get_current_user_id),
    service: ConnectionService = Depends(get_connection_service),
):
    details = await service.accept(ConnectionId(connection_id), user_id)
    return present_connection(details)


@router.post("/{connection_id}/reject", response_model=ConnectionResponse)
async def reject_connection(
    connection_id: UUID,
    user_id: UserId = Depends(get_current_user_id),
    service: ConnectionService = Depends(get_connection_service),
):
    details = await service.reject(ConnectionId(connection_id), user_id)
    return present_connection(details)


@router.post("/{connection_id}/block", response_model=ConnectionResponse)
async def block_connection(
    connection_id: UUID,
    user_id: UserId = Depends(get_current_user_id),
    service: ConnectionService = Depends(get_connection_service),
):
    details = await service.block(ConnectionId(connection_id), user_id)
    return present_connection(details)


@router.delete("/{connection_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_connection(
    connection_id: UUID,
    user_id: UserId = Depends(get_current_user_id),
    service: ConnectionService = Depends(get_connection_service),
):
    """Hard-delete a connection the caller is party to."""
    await service.remove(ConnectionId(connection_id), user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

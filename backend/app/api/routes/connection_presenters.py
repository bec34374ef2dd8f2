"""Connection Presenters — map service results onto response schemas.

Invariants:
    - Pure mapping: no IO, no service calls
    - A partner whose profile is gone still renders, as an id-only neighbor
"""

from app.core.connection_metadata import ConnectionMetadata
from app.core.domain_types import UserId, UserLocation, UserProfile, VerificationLevel
from app.core.pagination import PageInfo
from app.core.recommendation_scoring import Reason
from app.schemas.connection import (
    ConnectionMetadataResponse, ConnectionResponse, ConnectionStatsResponse,
    NeighborProfileResponse,
)
from app.schemas.discovery import (
    DiscoveryItemResponse, RecommendationReasonResponse, RecommendationResponse,
)
from app.services.connection_service import ConnectionDetails, ConnectionStats
from app.services.recommendation_service import DiscoveryItem, Recommendation


def present_neighbor(
    user_id: UserId,
    profile: UserProfile | None,
    location: UserLocation | None = None,
    stats: ConnectionStats | None = None,
) -> NeighborProfileResponse:
    stats_out = ConnectionStatsResponse(
        total_connections=stats.total_connections if stats else 0,
        trusted_connections=stats.trusted_connections if stats else 0,
    )
    estate = location.neighborhood_name if location else None
    if profile is None:
        return NeighborProfileResponse(
            id=user_id, estate=estate, connection_stats=stats_out,
        )
    return NeighborProfileResponse(
        id=profile.id,
        first_name=profile.first_name,
        last_name=profile.last_name,
        display_name=profile.display_name,
        profile_picture=profile.profile_picture_url,
        estate=estate,
        is_verified=profile.verification_level is not VerificationLevel.NONE,
        verification_level=profile.verification_level,
        trust_score=profile.trust_score,
        interests=list(profile.interests),
        bio=profile.bio,
        connection_stats=stats_out,
    )


def present_metadata(raw: dict | None) -> ConnectionMetadataResponse | None:
    if not raw:
        return None
    meta = ConnectionMetadata.from_dict(raw)
    return ConnectionMetadataResponse(
        version=meta.version,
        proximity_level=meta.proximity_level,
        shared_interests=list(meta.shared_interests),
        mutual_count_at_request=meta.mutual_count_at_request,
        notes=meta.notes,
    )


def present_connection(details: ConnectionDetails) -> ConnectionResponse:
    edge = details.edge
    return ConnectionResponse(
        id=edge.id,
        from_user_id=edge.from_user_id,
        to_user_id=edge.to_user_id,
        connection_type=edge.connection_type,
        status=edge.status,
        initiated_by=edge.initiated_by,
        created_at=edge.created_at,
        accepted_at=edge.accepted_at,
        metadata=present_metadata(edge.metadata),
        neighbor=present_neighbor(
            details.partner_id, details.partner,
            details.partner_location, details.partner_stats,
        ),
        mutual_connections=details.mutual_count,
        available_actions=list(details.actions),
    )


def present_reasons(reasons: tuple[Reason, ...]) -> list[RecommendationReasonResponse]:
    return [
        RecommendationReasonResponse(
            type=r.type, description=r.description, strength=r.strength,
        )
        for r in reasons
    ]


def present_recommendation(item: Recommendation) -> RecommendationResponse:
    scored = item.scored
    return RecommendationResponse(
        user_id=scored.candidate_id,
        neighbor=present_neighbor(scored.candidate_id, item.profile, item.location),
        recommendation_score=scored.score,
        mutual_connections=scored.mutual_count,
        same_neighborhood=scored.same_location,
        reasons=present_reasons(scored.reasons),
    )


def present_discovery_item(item: DiscoveryItem) -> DiscoveryItemResponse:
    scored = item.scored
    return DiscoveryItemResponse(
        user_id=item.user_id,
        neighbor=present_neighbor(item.user_id, item.profile, item.location),
        mutual_connections=item.mutual_count,
        has_pending_request=item.has_pending_request,
        recommendation_score=scored.score if scored else None,
        reasons=present_reasons(scored.reasons) if scored else [],
    )


def page_fields(info: PageInfo) -> dict:
    return {
        "total": info.total,
        "page": info.page,
        "page_size": info.page_size,
        "total_pages": info.total_pages,
        "has_next": info.has_next,
        "has_prev": info.has_prev,
    }

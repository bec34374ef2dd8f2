"""Discovery Schemas - response models for recommendations and discovery.

Invariants:
    - recommendation_score is always within 0-100
    - reasons are ordered by strength, strongest first
    - truncated=true means the candidate cap was hit and results are best-effort
"""

from uuid import UUID

from pydantic import BaseModel, Field

from app.core.domain_types import ReasonType
from app.schemas.connection import NeighborProfileResponse


class RecommendationReasonResponse(BaseModel):
    type: ReasonType
    description: str
    strength: int


class RecommendationResponse(BaseModel):
    user_id: UUID
    neighbor: NeighborProfileResponse | None = None
    recommendation_score: int = Field(ge=0, le=100)
    mutual_connections: int = 0
    same_neighborhood: bool = False
    reasons: list[RecommendationReasonResponse] = Field(default_factory=list)


class RecommendationListResponse(BaseModel):
    data: list[RecommendationResponse]
    total_candidates: int
    truncated: bool = False
    location_scoped: bool = True


class DiscoveryItemResponse(BaseModel):
    user_id: UUID
    neighbor: NeighborProfileResponse | None = None
    mutual_connections: int = 0
    has_pending_request: bool = False
    recommendation_score: int | None = Field(None, ge=0, le=100)
    reasons: list[RecommendationReasonResponse] = Field(default_factory=list)


class DiscoveryPageResponse(BaseModel):
    data: list[DiscoveryItemResponse]
    total: int
    page: int
    page_size: int
    total_pages: int
    has_next: bool
    has_prev: bool
    truncated: bool = False

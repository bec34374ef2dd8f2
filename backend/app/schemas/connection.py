"""Connection Schemas - Pydantic models with field-level validation for API boundaries.

Invariants:
    - ConnectionCreate.to_user_id must be a UUID; self-targeting is rejected in the service
    - Client metadata is limited to proximity_level, shared_interests, notes;
      mutual_count_at_request is server-computed and never accepted from input
    - Paginated responses always carry total, total_pages, has_next, has_prev

Design Decisions:
    - Enum-typed fields (ConnectionType, ConnectionStatus, ...) from core.domain_types:
      Pydantic rejects unknown values with a 400 before any handler runs
    - field_validator for side-effect-free transforms (strip, lowercase) keeps models pure
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from app.core.domain_types import (
    ConnectionAction, ConnectionStatus, ConnectionType, ProximityLevel,
    VerificationLevel,
)


# --- Requests -----------------------------------------------------------------

class ConnectionMetadataIn(BaseModel):
    """Signals a client may attach to a new request."""
    proximity_level: ProximityLevel | None = None
    shared_interests: list[str] = Field(default_factory=list, max_length=20)
    notes: str | None = Field(None, max_length=500)

    @field_validator("shared_interests")
    @classmethod
    def normalize_interests(cls, v: list[str]) -> list[str]:
        seen: list[str] = []
        for tag in v:
            tag = tag.strip().lower()
            if tag and tag not in seen:
                seen.append(tag)
        return seen


class ConnectionCreate(BaseModel):
    """New connection request."""
    to_user_id: UUID
    connection_type: ConnectionType = ConnectionType.CONNECT
    metadata: ConnectionMetadataIn | None = None


class BlockUserRequest(BaseModel):
    user_id: UUID


# --- Responses ----------------------------------------------------------------

class ConnectionStatsResponse(BaseModel):
    total_connections: int = 0
    trusted_connections: int = 0


class NeighborProfileResponse(BaseModel):
    """Public view of the other party."""
    id: UUID
    first_name: str = ""
    last_name: str = ""
    display_name: str = ""
    profile_picture: str | None = None
    estate: str | None = None
    is_verified: bool = False
    verification_level: VerificationLevel = VerificationLevel.NONE
    trust_score: int = 0
    interests: list[str] = Field(default_factory=list)
    bio: str | None = None
    connection_stats: ConnectionStatsResponse = ConnectionStatsResponse()


class ConnectionMetadataResponse(BaseModel):
    version: int = 1
    proximity_level: ProximityLevel | None = None
    shared_interests: list[str] = Field(default_factory=list)
    mutual_count_at_request: int | None = None
    notes: str | None = None


class ConnectionResponse(BaseModel):
    id: UUID
    from_user_id: UUID
    to_user_id: UUID
    connection_type: ConnectionType
    status: ConnectionStatus
    initiated_by: UUID
    created_at: datetime
    accepted_at: datetime | None = None
    metadata: ConnectionMetadataResponse | None = None
    neighbor: NeighborProfileResponse | None = None
    mutual_connections: int = 0
    available_actions: list[ConnectionAction] = Field(default_factory=list)


class PaginatedConnectionsResponse(BaseModel):
    data: list[ConnectionResponse]
    total: int
    page: int
    page_size: int
    total_pages: int
    has_next: bool
    has_prev: bool


class ConnectionRequestsResponse(BaseModel):
    incoming: list[ConnectionResponse]
    outgoing: list[ConnectionResponse]


class MutualConnectionsResponse(BaseModel):
    data: list[NeighborProfileResponse]
    count: int

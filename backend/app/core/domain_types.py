"""Domain Types - rich types that replace bare primitives across the codebase.

Invariants:
    - UserId and ConnectionId wrap UUIDs: never use bare UUID in domain logic
    - All valid states encoded as Enums: no raw string matching
    - Snapshots (EdgeRecord, UserProfile, UserLocation) are frozen: core reads, never mutates
    - LocationFilter applies the most specific key only (neighborhood > estate > lga)

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders
    - Store implementations return EdgeRecord, not ORM rows, so core and fakes share one shape
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

UserId = NewType("UserId", UUID)
ConnectionId = NewType("ConnectionId", UUID)
NeighborhoodId = NewType("NeighborhoodId", UUID)


# ─── Enums ───────────────────────────────────────────────────────

class ConnectionStatus(str, Enum):
    """Edge lifecycle states. Only PENDING is non-terminal."""
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    BLOCKED = "blocked"


# Statuses that occupy the pair: at most one such row per unordered pair
PAIR_EXCLUSIVE_STATUSES = frozenset({
    ConnectionStatus.PENDING, ConnectionStatus.ACCEPTED, ConnectionStatus.BLOCKED,
})


class ConnectionType(str, Enum):
    """Nature of the relationship. Has no effect on the state machine."""
    CONNECT = "connect"
    FOLLOW = "follow"
    TRUSTED = "trusted"
    COLLEAGUE = "colleague"
    NEIGHBOR = "neighbor"
    FAMILY = "family"


class ConnectionAction(str, Enum):
    """Lifecycle operations a party can request on an edge."""
    ACCEPT = "accept"
    REJECT = "reject"
    BLOCK = "block"
    REMOVE = "remove"


class ProximityLevel(str, Enum):
    """Proximity class captured at request time."""
    SAME_BUILDING = "same_building"
    SAME_ESTATE = "same_estate"
    SAME_NEIGHBORHOOD = "same_neighborhood"
    SAME_LGA = "same_lga"
    NEARBY = "nearby"
    UNKNOWN = "unknown"


class ReasonType(str, Enum):
    """Explainability tags attached to a recommendation."""
    PROXIMITY = "proximity"
    MUTUAL_CONNECTIONS = "mutual_connections"
    SHARED_INTERESTS = "shared_interests"


class DiscoverySort(str, Enum):
    """Orderings accepted by discovery. SCORE is opt-in."""
    JOINED = "joined"
    NAME = "name"
    SCORE = "score"


class VerificationLevel(str, Enum):
    NONE = "none"
    BASIC = "basic"
    ENHANCED = "enhanced"


# ─── Snapshots ───────────────────────────────────────────────────

@dataclass(frozen=True)
class EdgeRecord:
    """Read-only view of one connection row."""
    id: ConnectionId
    from_user_id: UserId
    to_user_id: UserId
    connection_type: ConnectionType
    status: ConnectionStatus
    initiated_by: UserId
    created_at: datetime
    accepted_at: datetime | None = None
    blocked_by: UserId | None = None
    metadata: dict | None = None

    def involves(self, user_id: UserId) -> bool:
        return user_id in (self.from_user_id, self.to_user_id)

    def partner_of(self, user_id: UserId) -> UserId:
        """The other side of the edge, regardless of direction."""
        if user_id == self.from_user_id:
            return self.to_user_id
        if user_id == self.to_user_id:
            return self.from_user_id
        raise ValueError(f"user {user_id} is not a party of edge {self.id}")


@dataclass(frozen=True)
class UserLocation:
    """A user's primary neighborhood, as supplied by the user directory."""
    user_id: UserId
    neighborhood_id: NeighborhoodId
    neighborhood_name: str | None = None
    parent_neighborhood_id: NeighborhoodId | None = None
    lga_id: UUID | None = None


@dataclass(frozen=True)
class UserProfile:
    """Read-only profile data owned by the user directory."""
    id: UserId
    first_name: str = ""
    last_name: str = ""
    profile_picture_url: str | None = None
    bio: str | None = None
    trust_score: int = 0
    email_verified: bool = False
    phone_verified: bool = False
    interests: tuple[str, ...] = ()
    joined_at: datetime | None = None

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def verification_level(self) -> VerificationLevel:
        if self.email_verified:
            return VerificationLevel.ENHANCED
        if self.phone_verified:
            return VerificationLevel.BASIC
        return VerificationLevel.NONE


@dataclass(frozen=True)
class LocationFilter:
    """Location scope for listings and discovery.

    An estate is itself a neighborhood, so ``estate_id`` matches users whose
    neighborhood is the estate or is nested directly under it.
    """
    neighborhood_id: NeighborhoodId | None = None
    estate_id: NeighborhoodId | None = None
    lga_id: UUID | None = None

    @property
    def is_empty(self) -> bool:
        return (
            self.neighborhood_id is None
            and self.estate_id is None
            and self.lga_id is None
        )

    def matches(self, location: UserLocation | None) -> bool:
        if self.is_empty:
            return True
        if location is None:
            return False
        if self.neighborhood_id is not None:
            return location.neighborhood_id == self.neighborhood_id
        if self.estate_id is not None:
            return self.estate_id in (
                location.neighborhood_id, location.parent_neighborhood_id,
            )
        return location.lga_id == self.lga_id

    @classmethod
    def for_neighborhood(cls, location: UserLocation | None) -> "LocationFilter":
        """Filter scoped to a user's primary neighborhood; empty when unknown."""
        if location is None:
            return cls()
        return cls(neighborhood_id=location.neighborhood_id)


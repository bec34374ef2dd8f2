"""Connection Metadata - versioned, write-once signals captured at request time.

Invariants:
    - Fields are fixed and optional; unknown keys are dropped on read
    - mutual_count_at_request is always computed by the server, never trusted from clients
    - Stored once at insert; nothing recomputes or rewrites it

Design Decisions:
    - Frozen dataclass with explicit version over an open dict: scorer inputs are statically known
    - proximity_level derived from the two primary locations when the client omits it
"""

from dataclasses import dataclass

from app.core.domain_types import ProximityLevel, UserLocation

METADATA_VERSION: int = 1


@dataclass(frozen=True)
class ConnectionMetadata:
    version: int = METADATA_VERSION
    proximity_level: ProximityLevel | None = None
    shared_interests: tuple[str, ...] = ()
    mutual_count_at_request: int | None = None
    notes: str | None = None

    def to_dict(self) -> dict:
        return {
            "version": self.version,
            "proximity_level": (
                self.proximity_level.value if self.proximity_level else None
            ),
            "shared_interests": list(self.shared_interests),
            "mutual_count_at_request": self.mutual_count_at_request,
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: dict | None) -> "ConnectionMetadata":
        if not data:
            return cls()
        proximity = data.get("proximity_level")
        return cls(
            version=int(data.get("version", METADATA_VERSION)),
            proximity_level=ProximityLevel(proximity) if proximity else None,
            shared_interests=tuple(data.get("shared_interests") or ()),
            mutual_count_at_request=data.get("mutual_count_at_request"),
            notes=data.get("notes"),
        )


def derive_proximity(
    requester: UserLocation | None, target: UserLocation | None,
) -> ProximityLevel:
    """Closest shared location level between two users."""
    if requester is None or target is None:
        return ProximityLevel.UNKNOWN
    if requester.neighborhood_id == target.neighborhood_id:
        return ProximityLevel.SAME_NEIGHBORHOOD
    estates = {requester.neighborhood_id, requester.parent_neighborhood_id}
    if target.neighborhood_id in estates or (
        target.parent_neighborhood_id is not None
        and target.parent_neighborhood_id in estates
    ):
        return ProximityLevel.SAME_ESTATE
    if requester.lga_id is not None and requester.lga_id == target.lga_id:
        return ProximityLevel.SAME_LGA
    return ProximityLevel.NEARBY


def capture_metadata(
    proximity_level: ProximityLevel | None,
    shared_interests: tuple[str, ...],
    notes: str | None,
    mutual_count: int,
    requester: UserLocation | None,
    target: UserLocation | None,
) -> ConnectionMetadata:
    """Freeze request-time signals; server-computed fields override client input."""
    return ConnectionMetadata(
        proximity_level=proximity_level or derive_proximity(requester, target),
        shared_interests=tuple(shared_interests),
        mutual_count_at_request=mutual_count,
        notes=notes,
    )

"""Connection Metadata — tests for request-time signal capture."""

from uuid import uuid4

from app.core.connection_metadata import (
    METADATA_VERSION, ConnectionMetadata, capture_metadata, derive_proximity,
)
from app.core.domain_types import NeighborhoodId, ProximityLevel, UserId, UserLocation

ESTATE = NeighborhoodId(uuid4())
STREET_A = NeighborhoodId(uuid4())
STREET_B = NeighborhoodId(uuid4())
LGA = uuid4()


def _loc(hood, parent=None, lga=None):
    return UserLocation(
        user_id=UserId(uuid4()), neighborhood_id=hood,
        parent_neighborhood_id=parent, lga_id=lga,
    )


def test_same_neighborhood():
    assert derive_proximity(_loc(STREET_A), _loc(STREET_A)) is ProximityLevel.SAME_NEIGHBORHOOD


def test_sibling_streets_share_estate():
    assert derive_proximity(
        _loc(STREET_A, ESTATE), _loc(STREET_B, ESTATE),
    ) is ProximityLevel.SAME_ESTATE


def test_street_inside_requesters_estate():
    assert derive_proximity(_loc(ESTATE), _loc(STREET_A, ESTATE)) is ProximityLevel.SAME_ESTATE


def test_same_lga():
    assert derive_proximity(
        _loc(STREET_A, lga=LGA), _loc(STREET_B, lga=LGA),
    ) is ProximityLevel.SAME_LGA


def test_unrelated_locations_are_nearby():
    assert derive_proximity(_loc(STREET_A), _loc(STREET_B)) is ProximityLevel.NEARBY


def test_unknown_without_location():
    assert derive_proximity(None, _loc(STREET_A)) is ProximityLevel.UNKNOWN


def test_capture_prefers_client_proximity_and_counts_mutuals():
    meta = capture_metadata(
        proximity_level=ProximityLevel.NEARBY, shared_interests=("chess",),
        notes="met at the market", mutual_count=3,
        requester=_loc(STREET_A), target=_loc(STREET_A),
    )
    assert meta.proximity_level is ProximityLevel.NEARBY
    assert meta.mutual_count_at_request == 3
    assert meta.version == METADATA_VERSION


def test_dict_round_trip_drops_unknown_keys():
    raw = {
        "version": 1, "proximity_level": "same_estate",
        "shared_interests": ["chess"], "mutual_count_at_request": 2,
        "notes": None, "unexpected": "ignored",
    }
    meta = ConnectionMetadata.from_dict(raw)
    assert meta.proximity_level is ProximityLevel.SAME_ESTATE
    assert "unexpected" not in meta.to_dict()


def test_from_empty_dict():
    assert ConnectionMetadata.from_dict(None) == ConnectionMetadata()

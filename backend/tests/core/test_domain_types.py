"""Domain Types — verifies value types, enums and location filtering.

Tests:
    - Only pending/accepted/blocked occupy a pair
    - EdgeRecord.partner_of works in both directions and rejects strangers
    - UserProfile derives display name and verification level
    - LocationFilter matches neighborhood, estate (self or parent) and LGA
"""

from datetime import datetime, timezone
from uuid import uuid4

import pytest

from app.core.domain_types import (
    ConnectionId, ConnectionStatus, ConnectionType, EdgeRecord, LocationFilter,
    NeighborhoodId, PAIR_EXCLUSIVE_STATUSES, UserId, UserLocation, UserProfile,
    VerificationLevel,
)


def _edge(a, b, status=ConnectionStatus.ACCEPTED):
    return EdgeRecord(
        id=ConnectionId(uuid4()), from_user_id=a, to_user_id=b,
        connection_type=ConnectionType.CONNECT, status=status,
        initiated_by=a, created_at=datetime.now(timezone.utc),
    )


def test_rejected_does_not_occupy_pair():
    assert PAIR_EXCLUSIVE_STATUSES == {
        ConnectionStatus.PENDING,
        ConnectionStatus.ACCEPTED,
        ConnectionStatus.BLOCKED,
    }


def test_status_values_are_wire_strings():
    assert ConnectionStatus("pending") is ConnectionStatus.PENDING
    assert ConnectionType.TRUSTED.value == "trusted"


def test_partner_of_is_direction_independent():
    a, b = UserId(uuid4()), UserId(uuid4())
    edge = _edge(a, b)
    assert edge.partner_of(a) == b
    assert edge.partner_of(b) == a


def test_partner_of_rejects_non_party():
    edge = _edge(UserId(uuid4()), UserId(uuid4()))
    with pytest.raises(ValueError):
        edge.partner_of(UserId(uuid4()))


def test_display_name_trims_missing_last_name():
    profile = UserProfile(id=UserId(uuid4()), first_name="Ada")
    assert profile.display_name == "Ada"


def test_verification_level_prefers_email():
    uid = UserId(uuid4())
    assert UserProfile(id=uid).verification_level is VerificationLevel.NONE
    assert UserProfile(id=uid, phone_verified=True).verification_level is VerificationLevel.BASIC
    assert UserProfile(
        id=uid, phone_verified=True, email_verified=True,
    ).verification_level is VerificationLevel.ENHANCED


# ─── LocationFilter ─────────────────────────────────────────────

ESTATE = NeighborhoodId(uuid4())
STREET = NeighborhoodId(uuid4())
LGA = uuid4()


def _located(neighborhood, parent=None, lga=None):
    return UserLocation(
        user_id=UserId(uuid4()), neighborhood_id=neighborhood,
        parent_neighborhood_id=parent, lga_id=lga,
    )


def test_empty_filter_matches_everyone_including_unlocated():
    f = LocationFilter()
    assert f.is_empty
    assert f.matches(None)
    assert f.matches(_located(STREET))


def test_neighborhood_filter_is_exact():
    f = LocationFilter(neighborhood_id=STREET)
    assert f.matches(_located(STREET, parent=ESTATE))
    assert not f.matches(_located(ESTATE))
    assert not f.matches(None)


def test_estate_filter_matches_estate_and_children():
    f = LocationFilter(estate_id=ESTATE)
    assert f.matches(_located(ESTATE))
    assert f.matches(_located(STREET, parent=ESTATE))
    assert not f.matches(_located(NeighborhoodId(uuid4())))


def test_lga_filter():
    f = LocationFilter(lga_id=LGA)
    assert f.matches(_located(STREET, lga=LGA))
    assert not f.matches(_located(STREET, lga=uuid4()))


def test_for_neighborhood_without_location_is_empty():
    assert LocationFilter.for_neighborhood(None).is_empty
    scoped = LocationFilter.for_neighborhood(_located(STREET))
    assert scoped.neighborhood_id == STREET

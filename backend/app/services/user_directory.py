"""SQL User Directory - read-only UserDirectory over the identity mirror tables.

Invariants:
    - Never writes: users, neighborhoods and memberships belong to the directory service
    - Location means the PRIMARY membership; users without one have no location
    - find_users returns ids sorted by string form (same order as core.sorted_ids)

Design Decisions:
    - Bulk lookups (get_profiles, get_locations) take an id list so the recommendation
      pipeline issues a fixed number of queries regardless of candidate count
"""

import logging
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.domain_types import (
    LocationFilter, NeighborhoodId, UserId, UserLocation, UserProfile,
)
from app.core.graph_queries import sorted_ids
from app.models.neighborhood import Neighborhood
from app.models.user import User
from app.models.user_neighborhood import UserNeighborhood

logger = logging.getLogger(__name__)


def _to_profile(user: User) -> UserProfile:
    return UserProfile(
        id=UserId(user.id),
        first_name=user.first_name or "",
        last_name=user.last_name or "",
        profile_picture_url=user.profile_picture_url,
        bio=user.bio,
        trust_score=user.trust_score or 0,
        email_verified=bool(user.is_email_verified),
        phone_verified=bool(user.phone_verified),
        interests=tuple(
            str(tag).strip().lower() for tag in (user.interests or []) if tag
        ),
        joined_at=user.created_at,
    )


def _to_location(membership: UserNeighborhood) -> UserLocation:
    hood = membership.neighborhood
    return UserLocation(
        user_id=UserId(membership.user_id),
        neighborhood_id=NeighborhoodId(membership.neighborhood_id),
        neighborhood_name=hood.name if hood else None,
        parent_neighborhood_id=(
            NeighborhoodId(hood.parent_neighborhood_id)
            if hood and hood.parent_neighborhood_id else None
        ),
        lga_id=hood.lga_id if hood else None,
    )


class SqlUserDirectory:
    """Read-only identity, profile and location lookups."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def exists(self, user_id: UserId) -> bool:
        result = await self.db.execute(
            select(User.id).where(User.id == user_id),
        )
        return result.scalar_one_or_none() is not None

    async def get_profiles(
        self, user_ids: Iterable[UserId],
    ) -> dict[UserId, UserProfile]:
        ids = list(set(user_ids))
        if not ids:
            return {}
        result = await self.db.execute(
            select(User)
            .where(User.id.in_(ids))
            .execution_options(populate_existing=True)
        )
        return {
            UserId(user.id): _to_profile(user) for user in result.scalars().all()
        }

    async def get_primary_location(self, user_id: UserId) -> UserLocation | None:
        locations = await self.get_locations([user_id])
        return locations.get(user_id)

    async def get_locations(
        self, user_ids: Iterable[UserId],
    ) -> dict[UserId, UserLocation]:
        ids = list(set(user_ids))
        if not ids:
            return {}
        result = await self.db.execute(
            select(UserNeighborhood)
            .where(UserNeighborhood.user_id.in_(ids))
            .where(UserNeighborhood.is_primary.is_(True))
            .execution_options(populate_existing=True)
        )
        return {
            UserId(m.user_id): _to_location(m) for m in result.scalars().all()
        }

    async def find_users(self, location_filter: LocationFilter) -> list[UserId]:
        if location_filter.is_empty:
            result = await self.db.execute(select(User.id))
            return sorted_ids(UserId(uid) for uid in result.scalars().all())

        query = (
            select(UserNeighborhood.user_id)
            .join(Neighborhood, Neighborhood.id == UserNeighborhood.neighborhood_id)
            .where(UserNeighborhood.is_primary.is_(True))
        )
        if location_filter.neighborhood_id is not None:
            query = query.where(
                UserNeighborhood.neighborhood_id == location_filter.neighborhood_id,
            )
        elif location_filter.estate_id is not None:
            query = query.where(
                (Neighborhood.id == location_filter.estate_id)
                | (Neighborhood.parent_neighborhood_id == location_filter.estate_id)
            )
        else:
            query = query.where(Neighborhood.lga_id == location_filter.lga_id)

        result = await self.db.execute(query)
        users = sorted_ids(UserId(uid) for uid in result.scalars().all())
        logger.debug(
            "Location pool resolved", extra={"candidate_count": len(users)},
        )
        return users

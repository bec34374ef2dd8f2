"""Recommendation Service - ranked recommendations and paginated discovery.

Invariants:
    - Two phases: (1) bulk-fetch candidates, accepted edges, locations, profiles;
      (2) pure scoring and sorting in memory. No per-candidate round trips
    - Candidates never include the user, accepted neighbors, or blocked partners
    - At most candidate_cap candidates are scored per call, taken in stable id order;
      exceeding the cap degrades to best-effort results flagged truncated
    - Same snapshot in, same ordered output out (score desc, id asc)
    - No primary location: location scoping is skipped, not an error
    - recommend rejects limit outside 1..max_limit before touching the stores

Design Decisions:
    - Discovery defaults to attribute ordering (joined, name) and scores only on opt-in,
      so the common page computes mutual counts for one page of candidates only
"""

import logging
from dataclasses import dataclass

from app.core.domain_types import (
    DiscoverySort, LocationFilter, UserId, UserLocation, UserProfile,
)
from app.core.graph_queries import build_adjacency, count_mutual, sorted_ids
from app.core.pagination import PageInfo, paginate, validate_bounds
from app.core.recommendation_scoring import (
    CandidateSignals, ScoredCandidate, ScoringContext, rank_candidates,
    score_candidate,
)
from app.core.repository_protocols import EdgeStore, UserDirectory
from app.services.graph_query_engine import GraphQueryEngine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Recommendation:
    profile: UserProfile | None
    location: UserLocation | None
    scored: ScoredCandidate


@dataclass(frozen=True)
class RecommendationResult:
    items: list[Recommendation]
    candidate_count: int
    scanned: int
    truncated: bool
    location_scoped: bool


@dataclass(frozen=True)
class DiscoveryItem:
    user_id: UserId
    profile: UserProfile | None
    location: UserLocation | None
    mutual_count: int
    has_pending_request: bool
    scored: ScoredCandidate | None = None


@dataclass(frozen=True)
class DiscoveryResult:
    items: list[DiscoveryItem]
    page: PageInfo
    truncated: bool = False


@dataclass(frozen=True)
class CandidateSnapshot:
    """Everything phase 2 needs, fetched in phase 1."""
    context: ScoringContext
    adjacency: dict[UserId, set[UserId]]
    locations: dict[UserId, UserLocation]
    profiles: dict[UserId, UserProfile]


def _interests(profile: UserProfile | None) -> frozenset[str]:
    return frozenset(profile.interests) if profile else frozenset()


def score_snapshot(
    candidates: list[UserId], snapshot: CandidateSnapshot,
) -> list[ScoredCandidate]:
    """Pure phase: signals from the snapshot, then the additive scorer."""
    user_id = snapshot.context.user_id
    user_neighbors = snapshot.adjacency.get(user_id, set())
    return [
        score_candidate(
            CandidateSignals(
                candidate_id=cid,
                location=snapshot.locations.get(cid),
                mutual_count=count_mutual(
                    user_id, cid, user_neighbors,
                    snapshot.adjacency.get(cid, set()),
                ),
                interests=_interests(snapshot.profiles.get(cid)),
            ),
            snapshot.context,
        )
        for cid in candidates
    ]


class RecommendationService:
    """Orchestrates GraphQueryEngine + scorer + pagination."""

    def __init__(
        self,
        store: EdgeStore,
        directory: UserDirectory,
        candidate_cap: int = 500,
        max_limit: int = 100,
    ):
        self.store = store
        self.directory = directory
        self.engine = GraphQueryEngine(store, directory)
        self.candidate_cap = candidate_cap
        self.max_limit = max_limit

    async def _snapshot(
        self,
        user_id: UserId,
        candidates: list[UserId],
        user_location: UserLocation | None,
        profiles: dict[UserId, UserProfile] | None = None,
    ) -> CandidateSnapshot:
        ids = [user_id, *candidates]
        edges = await self.store.find_accepted_for_users(ids)
        locations = await self.directory.get_locations(candidates)
        if profiles is None:
            profiles = await self.directory.get_profiles(ids)
        elif user_id not in profiles:
            profiles = {**profiles, **await self.directory.get_profiles([user_id])}
        return CandidateSnapshot(
            context=ScoringContext(
                user_id=user_id,
                location=user_location,
                interests=_interests(profiles.get(user_id)),
            ),
            adjacency=build_adjacency(edges),
            locations=locations,
            profiles=profiles,
        )

    def _cap(self, candidates: list[UserId], user_id: UserId) -> tuple[list[UserId], bool]:
        if len(candidates) <= self.candidate_cap:
            return candidates, False
        logger.warning(
            "Candidate pool capped",
            extra={
                "user_id": str(user_id), "candidate_count": len(candidates),
            },
        )
        return candidates[:self.candidate_cap], True

    async def recommend(self, user_id: UserId, limit: int = 10) -> RecommendationResult:
        """Top `limit` candidates by score within the user's primary neighborhood."""
        limit = validate_bounds("limit", limit, self.max_limit)
        location = await self.directory.get_primary_location(user_id)
        candidates = sorted_ids(await self.engine.discovery_candidates(
            user_id, LocationFilter.for_neighborhood(location),
        ))
        scanned, truncated = self._cap(candidates, user_id)

        snapshot = await self._snapshot(user_id, scanned, location)
        ranked = rank_candidates(score_snapshot(scanned, snapshot), limit)

        logger.info(
            "Recommendations computed",
            extra={"user_id": str(user_id), "candidate_count": len(candidates)},
        )
        return RecommendationResult(
            items=[
                Recommendation(
                    profile=snapshot.profiles.get(s.candidate_id),
                    location=snapshot.locations.get(s.candidate_id),
                    scored=s,
                )
                for s in ranked
            ],
            candidate_count=len(candidates),
            scanned=len(scanned),
            truncated=truncated,
            location_scoped=location is not None,
        )

    async def discover(
        self,
        user_id: UserId,
        location_filter: LocationFilter,
        page: int = 1,
        page_size: int = 20,
        sort: DiscoverySort = DiscoverySort.JOINED,
        search: str | None = None,
    ) -> DiscoveryResult:
        """Paginated discovery candidates; attribute ordering unless sort=score."""
        candidates = sorted_ids(
            await self.engine.discovery_candidates(user_id, location_filter),
        )
        profiles = await self.directory.get_profiles([user_id, *candidates])
        if search and search.strip():
            needle = search.strip().lower()
            candidates = [
                cid for cid in candidates
                if cid in profiles and (
                    needle in profiles[cid].first_name.lower()
                    or needle in profiles[cid].last_name.lower()
                )
            ]

        pending_with = {
            e.partner_of(user_id) for e in await self.store.find_pending(user_id)
        }
        user_location = await self.directory.get_primary_location(user_id)

        if sort is DiscoverySort.SCORE:
            scanned, truncated = self._cap(candidates, user_id)
            snapshot = await self._snapshot(user_id, scanned, user_location, profiles)
            ranked = rank_candidates(score_snapshot(scanned, snapshot))
            page_items, info = paginate(ranked, page, page_size)
            return DiscoveryResult(
                items=[
                    DiscoveryItem(
                        user_id=s.candidate_id,
                        profile=profiles.get(s.candidate_id),
                        location=snapshot.locations.get(s.candidate_id),
                        mutual_count=s.mutual_count,
                        has_pending_request=s.candidate_id in pending_with,
                        scored=s,
                    )
                    for s in page_items
                ],
                page=info,
                truncated=truncated,
            )

        ordered = order_by_attribute(candidates, profiles, sort)
        page_ids, info = paginate(ordered, page, page_size)
        snapshot = await self._snapshot(user_id, page_ids, user_location, profiles)
        user_neighbors = snapshot.adjacency.get(user_id, set())
        return DiscoveryResult(
            items=[
                DiscoveryItem(
                    user_id=cid,
                    profile=profiles.get(cid),
                    location=snapshot.locations.get(cid),
                    mutual_count=count_mutual(
                        user_id, cid, user_neighbors,
                        snapshot.adjacency.get(cid, set()),
                    ),
                    has_pending_request=cid in pending_with,
                )
                for cid in page_ids
            ],
            page=info,
        )


def order_by_attribute(
    candidates: list[UserId],
    profiles: dict[UserId, UserProfile],
    sort: DiscoverySort,
) -> list[UserId]:
    """Stable attribute ordering; id ascending breaks every tie."""
    ordered = sorted(candidates, key=str)
    if sort is DiscoverySort.NAME:
        return sorted(ordered, key=lambda cid: (
            profiles[cid].display_name.lower() if cid in profiles else "",
        ))
    # newest members first; unknown join dates last
    return sorted(ordered, key=lambda cid: (
        -profiles[cid].joined_at.timestamp()
        if cid in profiles and profiles[cid].joined_at else float("inf")
    ))

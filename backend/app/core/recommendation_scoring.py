"""Recommendation Scoring - pure, bounded additive scorer with explainable reasons.

Invariants:
    - score is an int in [MIN_SCORE, MAX_SCORE] for every input
    - Each term is bounded on its own; the sum is clamped once at the end
    - Deterministic: output depends only on (CandidateSignals, ScoringContext)
    - rank_candidates orders by score desc, then candidate id asc (stable pagination)

Design Decisions:
    - Mutual bonus capped at MUTUAL_BONUS_CAP: one hyper-connected candidate cannot
      dominate on mutual count alone
    - Shared-interest bonus is an extension term: zero unless both sides declare interests
    - Reasons carry the exact contribution of each term, ordered by strength
"""

from dataclasses import dataclass, field

from app.core.domain_types import ReasonType, UserId, UserLocation

BASE_SCORE: int = 50
SAME_LOCATION_BONUS: int = 30
MUTUAL_WEIGHT: int = 5
MUTUAL_BONUS_CAP: int = 20
INTEREST_WEIGHT: int = 2
INTEREST_BONUS_CAP: int = 10
MIN_SCORE: int = 0
MAX_SCORE: int = 100


@dataclass(frozen=True)
class ScoringContext:
    """Requesting user's side of the snapshot."""
    user_id: UserId
    location: UserLocation | None = None
    interests: frozenset[str] = frozenset()


@dataclass(frozen=True)
class CandidateSignals:
    """Per-candidate inputs, gathered by the shell before scoring."""
    candidate_id: UserId
    location: UserLocation | None = None
    mutual_count: int = 0
    interests: frozenset[str] = frozenset()


@dataclass(frozen=True)
class Reason:
    type: ReasonType
    description: str
    strength: int


@dataclass(frozen=True)
class ScoredCandidate:
    candidate_id: UserId
    score: int
    mutual_count: int
    same_location: bool
    reasons: tuple[Reason, ...] = field(default_factory=tuple)


def shares_location(candidate: CandidateSignals, context: ScoringContext) -> bool:
    if candidate.location is None or context.location is None:
        return False
    return candidate.location.neighborhood_id == context.location.neighborhood_id


def mutual_bonus(mutual_count: int) -> int:
    return min(max(mutual_count, 0) * MUTUAL_WEIGHT, MUTUAL_BONUS_CAP)


def interest_bonus(shared: int) -> int:
    return min(max(shared, 0) * INTEREST_WEIGHT, INTEREST_BONUS_CAP)


def _clamp(value: int) -> int:
    return max(MIN_SCORE, min(value, MAX_SCORE))


def score_candidate(
    candidate: CandidateSignals, context: ScoringContext,
) -> ScoredCandidate:
    """Score one candidate and explain the score."""
    reasons: list[Reason] = []
    total = BASE_SCORE

    same_location = shares_location(candidate, context)
    if same_location:
        total += SAME_LOCATION_BONUS
        reasons.append(Reason(
            ReasonType.PROXIMITY, "Lives in the same neighborhood",
            SAME_LOCATION_BONUS,
        ))

    bonus = mutual_bonus(candidate.mutual_count)
    if bonus:
        total += bonus
        plural = "s" if candidate.mutual_count > 1 else ""
        reasons.append(Reason(
            ReasonType.MUTUAL_CONNECTIONS,
            f"You have {candidate.mutual_count} mutual connection{plural}",
            bonus,
        ))

    shared = sorted(candidate.interests & context.interests)
    bonus = interest_bonus(len(shared))
    if bonus:
        total += bonus
        reasons.append(Reason(
            ReasonType.SHARED_INTERESTS,
            f"Shares interests: {', '.join(shared[:3])}",
            bonus,
        ))

    reasons.sort(key=lambda r: -r.strength)
    return ScoredCandidate(
        candidate_id=candidate.candidate_id,
        score=_clamp(total),
        mutual_count=candidate.mutual_count,
        same_location=same_location,
        reasons=tuple(reasons),
    )


def score(candidate: CandidateSignals, context: ScoringContext) -> int:
    return score_candidate(candidate, context).score


def rank_candidates(
    scored: list[ScoredCandidate], limit: int | None = None,
) -> list[ScoredCandidate]:
    """Score descending, candidate id ascending on ties."""
    ranked = sorted(scored, key=lambda s: (-s.score, str(s.candidate_id)))
    return ranked if limit is None else ranked[:limit]

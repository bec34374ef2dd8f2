"""Connection Lifecycle - pure state machine for connection edges.

Invariants:
    - plan_transition is PURE: returns a TransitionPlan, does NOT touch the store
    - Shell applies the plan through EdgeStore.update_status (compare-and-set)
    - Only the non-initiating side may accept or reject a pending request
    - Either party may block a pending or accepted edge; blocked is terminal
    - Either incident party may remove (hard delete) an edge in any state, except that
      a blocked edge can only be removed by the side that placed the block
    - accepted_at is planned only on pending -> accepted

Design Decisions:
    - TRANSITIONS table is the single source of truth for legal moves
      (ADR: adding a transition means editing one dict)
    - Authorization checked before state: a stranger learns nothing about an edge's status
    - check_request_allowed mirrors the store's atomic insert checks so the common
      failure is reported before a write; the store's unique index still backs it
"""

import uuid
from dataclasses import dataclass
from datetime import datetime

from app.core.domain_types import (
    ConnectionAction, ConnectionId, ConnectionStatus, ConnectionType,
    EdgeRecord, UserId,
)
from app.core.errors import (
    BlockedPairError, DuplicateEdgeError, ErrorContext,
    ForbiddenTransitionError, InvalidTransitionError,
    NotIncidentPartyError, RerequestLimitError, SelfConnectionError,
)


@dataclass(frozen=True)
class TransitionRule:
    from_statuses: frozenset[ConnectionStatus]
    to_status: ConnectionStatus
    recipient_only: bool


TRANSITIONS: dict[ConnectionAction, TransitionRule] = {
    ConnectionAction.ACCEPT: TransitionRule(
        frozenset({ConnectionStatus.PENDING}), ConnectionStatus.ACCEPTED, True,
    ),
    ConnectionAction.REJECT: TransitionRule(
        frozenset({ConnectionStatus.PENDING}), ConnectionStatus.REJECTED, True,
    ),
    ConnectionAction.BLOCK: TransitionRule(
        frozenset({ConnectionStatus.PENDING, ConnectionStatus.ACCEPTED}),
        ConnectionStatus.BLOCKED, False,
    ),
}


@dataclass(frozen=True)
class TransitionPlan:
    """What the shell must compare-and-set on the store."""
    edge_id: ConnectionId
    action: ConnectionAction
    expected_status: ConnectionStatus
    new_status: ConnectionStatus
    accepted_at: datetime | None = None
    blocked_by: UserId | None = None


def _context(edge: EdgeRecord, actor: UserId) -> ErrorContext:
    return ErrorContext(user_id=str(actor), connection_id=str(edge.id))


def plan_transition(
    edge: EdgeRecord, actor: UserId, action: ConnectionAction, now: datetime,
) -> TransitionPlan:
    """Validate a status transition requested by actor. Pure: raises or returns a plan."""
    if action is ConnectionAction.REMOVE:
        raise ValueError("removal is not a status transition; use check_removal")
    if not edge.involves(actor):
        raise NotIncidentPartyError(_context(edge, actor))

    rule = TRANSITIONS[action]
    if rule.recipient_only and actor == edge.initiated_by:
        raise ForbiddenTransitionError(
            edge.status.value, action.value,
            f"You can only {action.value} connection requests sent to you",
            _context(edge, actor),
        )
    if edge.status not in rule.from_statuses:
        raise InvalidTransitionError(
            edge.status.value, action.value, context=_context(edge, actor),
        )

    return TransitionPlan(
        edge_id=edge.id,
        action=action,
        expected_status=edge.status,
        new_status=rule.to_status,
        accepted_at=now if rule.to_status is ConnectionStatus.ACCEPTED else None,
        blocked_by=actor if rule.to_status is ConnectionStatus.BLOCKED else None,
    )


def check_removal(edge: EdgeRecord, actor: UserId) -> None:
    """Any incident party may hard-delete an edge, whatever its status.

    Deleting a blocked edge lifts the block, so only the blocking side may do it.
    """
    if not edge.involves(actor):
        raise NotIncidentPartyError(_context(edge, actor))
    if (
        edge.status is ConnectionStatus.BLOCKED
        and edge.blocked_by is not None
        and edge.blocked_by != actor
    ):
        raise ForbiddenTransitionError(
            edge.status.value, ConnectionAction.REMOVE.value,
            "Only the user who placed the block can remove it",
            _context(edge, actor),
        )


def allowed_actions(edge: EdgeRecord, viewer: UserId) -> list[ConnectionAction]:
    """Actions the viewer could perform right now, in display order."""
    if not edge.involves(viewer):
        return []
    actions = [
        action for action, rule in TRANSITIONS.items()
        if edge.status in rule.from_statuses
        and not (rule.recipient_only and viewer == edge.initiated_by)
    ]
    if not (
        edge.status is ConnectionStatus.BLOCKED
        and edge.blocked_by is not None
        and edge.blocked_by != viewer
    ):
        actions.append(ConnectionAction.REMOVE)
    return actions


def check_request_allowed(
    actor: UserId,
    target: UserId,
    existing: EdgeRecord | None,
    rejected_count: int = 0,
    rerequest_limit: int | None = None,
) -> None:
    """Pre-insert validation for a new connection request.

    Re-requesting after a rejection is allowed unless rerequest_limit is set
    and the actor has already been rejected that many times by target.
    """
    context = ErrorContext(user_id=str(actor))
    if actor == target:
        raise SelfConnectionError(context)
    if existing is not None:
        if existing.status is ConnectionStatus.BLOCKED:
            raise BlockedPairError(context)
        if existing.status in (ConnectionStatus.PENDING, ConnectionStatus.ACCEPTED):
            raise DuplicateEdgeError(existing.status.value, context)
    if rerequest_limit is not None and rejected_count >= rerequest_limit:
        raise RerequestLimitError(rerequest_limit, context)


def build_request(
    actor: UserId,
    target: UserId,
    connection_type: ConnectionType,
    now: datetime,
    metadata: dict | None = None,
    status: ConnectionStatus = ConnectionStatus.PENDING,
) -> EdgeRecord:
    """New edge initiated by actor. initiated_by always equals from_user_id here."""
    return EdgeRecord(
        id=ConnectionId(uuid.uuid4()),
        from_user_id=actor,
        to_user_id=target,
        connection_type=connection_type,
        status=status,
        initiated_by=actor,
        created_at=now,
        blocked_by=actor if status is ConnectionStatus.BLOCKED else None,
        metadata=metadata,
    )

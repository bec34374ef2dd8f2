"""Error Hierarchy - typed, categorized exceptions for every connection-graph failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors are 4xx and local to the caller; infrastructure errors are 5xx
    - Only StaleStateError is marked retryable: the caller may re-read and retry
    - to_response() produces the REST envelope; no internal details in messages

Design Decisions:
    - Single hierarchy with NeighborGraphError base: FastAPI global handler catches all (ADR: uniform error shape)
    - ErrorContext as dataclass: rich observability without coupling to logging framework
    - ForbiddenTransitionError subclasses InvalidTransitionError: callers catching the
      state-machine failure also catch the wrong-actor case, but HTTP maps it to 403
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    RESOURCE_NOT_FOUND = "resource_not_found"
    CONFLICT = "conflict"
    FORBIDDEN = "forbidden"
    UNAUTHORIZED = "unauthorized"
    DATABASE = "database"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    user_id: str | None = None
    connection_id: str | None = None
    debug_info: dict[str, Any] | None = None


class NeighborGraphError(Exception):
    """Base exception for all connection-graph errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
        retryable: bool = False,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status
        self.retryable = retryable

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "retryable": self.retryable,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "user_id": self.context.user_id,
                    "connection_id": self.context.connection_id,
                    "details": self.context.debug_info,
                },
            }
        }


# ─── Validation (400) ───────────────────────────────────────────

class SelfConnectionError(NeighborGraphError):
    """A user tried to connect with, or block, themselves."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Cannot connect with yourself",
            "SELF_CONNECTION", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context, 400,
        )


class InvalidParameterError(NeighborGraphError):
    """A bounded query parameter (limit, page_size, ...) is out of range."""
    def __init__(self, field: str, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context, 400,
        )
        self.field = field


class CallerIdentityError(NeighborGraphError):
    """Caller identity missing or malformed at the gateway boundary."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "UNAUTHENTICATED", ErrorCategory.UNAUTHORIZED,
            ErrorSeverity.WARNING, context, 401,
        )


# ─── Not Found (404) ────────────────────────────────────────────

class ResourceNotFoundError(NeighborGraphError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


# ─── Conflict (409) ─────────────────────────────────────────────

class DuplicateEdgeError(NeighborGraphError):
    """A pending or accepted connection already exists between the pair."""
    def __init__(self, existing_status: str, context: ErrorContext | None = None):
        super().__init__(
            f"A {existing_status} connection already exists between these users",
            "DUPLICATE_CONNECTION", ErrorCategory.CONFLICT,
            ErrorSeverity.WARNING, context, 409,
        )
        self.existing_status = existing_status


class BlockedPairError(NeighborGraphError):
    """The pair is blocked in at least one direction."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Connection is blocked",
            "BLOCKED_PAIR", ErrorCategory.CONFLICT,
            ErrorSeverity.WARNING, context, 409,
        )


class StaleStateError(NeighborGraphError):
    """Compare-and-set lost: the edge changed since it was read."""
    def __init__(
        self, expected_status: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Connection is no longer '{expected_status}'",
            "STALE_STATE", ErrorCategory.CONFLICT,
            ErrorSeverity.WARNING, context, 409, retryable=True,
        )
        self.expected_status = expected_status


class RerequestLimitError(NeighborGraphError):
    """Too many requests re-sent to a user who already rejected them."""
    def __init__(self, limit: int, context: ErrorContext | None = None):
        super().__init__(
            f"Connection request was rejected {limit} time(s); no further requests allowed",
            "REREQUEST_LIMIT", ErrorCategory.CONFLICT,
            ErrorSeverity.WARNING, context, 409,
        )
        self.limit = limit


class InvalidTransitionError(NeighborGraphError):
    """Requested lifecycle transition is not allowed from the current state."""
    def __init__(
        self,
        current_status: str,
        requested: str,
        message: str | None = None,
        context: ErrorContext | None = None,
        code: str = "INVALID_TRANSITION",
        category: ErrorCategory = ErrorCategory.CONFLICT,
        http_status: int = 409,
    ):
        ctx = context or ErrorContext()
        ctx.debug_info = {
            **(ctx.debug_info or {}),
            "current_status": current_status,
            "requested": requested,
        }
        super().__init__(
            message or f"Cannot {requested} a connection that is '{current_status}'",
            code, category, ErrorSeverity.WARNING, ctx, http_status,
        )
        self.current_status = current_status
        self.requested = requested


# ─── Forbidden (403) ────────────────────────────────────────────

class ForbiddenTransitionError(InvalidTransitionError):
    """Transition attempted by a user who is not allowed to perform it."""
    def __init__(
        self,
        current_status: str,
        requested: str,
        message: str,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            current_status, requested, message, context,
            code="FORBIDDEN_TRANSITION", category=ErrorCategory.FORBIDDEN,
            http_status=403,
        )


class NotIncidentPartyError(NeighborGraphError):
    """Caller is neither side of the connection."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "You can only manage your own connections",
            "NOT_CONNECTION_PARTY", ErrorCategory.FORBIDDEN,
            ErrorSeverity.WARNING, context, 403,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(NeighborGraphError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation

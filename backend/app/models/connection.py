"""Connection ORM - one directed request row per edge, unique per unordered pair.

Invariants:
    - from_user_id != to_user_id (check constraint)
    - (pair_low, pair_high) is the canonical unordered pair; set once at insert
    - At most one row per pair with status pending/accepted/blocked (partial unique index)
    - accepted_at written only by the pending -> accepted compare-and-set
    - metadata is write-once (versioned ConnectionMetadata dict)

Design Decisions:
    - Partial unique index over the canonical pair: invariants 1 and 2 are enforced by the
      database, so check-then-insert cannot race (ADR: structural guarantee over app checks)
    - rejected rows are kept (not covered by the index): re-request detection and history
    - metadata attribute is metadata_ because DeclarativeBase reserves `metadata`
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    String, DateTime, JSON, ForeignKey, Index, CheckConstraint, text,
)
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base

ACTIVE_PAIR_PREDICATE = "status IN ('pending', 'accepted', 'blocked')"


class Connection(Base):
    """Connection edge between two residents."""
    __tablename__ = "connections"
    __table_args__ = (
        CheckConstraint(
            "from_user_id <> to_user_id", name="ck_connections_no_self",
        ),
        Index(
            "uq_connections_active_pair", "pair_low", "pair_high",
            unique=True,
            postgresql_where=text(ACTIVE_PAIR_PREDICATE),
            sqlite_where=text(ACTIVE_PAIR_PREDICATE),
        ),
        Index("ix_connections_from_status", "from_user_id", "status"),
        Index("ix_connections_to_status", "to_user_id", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    from_user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    to_user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    pair_low: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), nullable=False,
    )
    pair_high: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), nullable=False,
    )
    connection_type: Mapped[str] = mapped_column(
        String(20), nullable=False, default="connect",
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="pending",
    )
    initiated_by: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), nullable=False,
    )
    metadata_: Mapped[dict | None] = mapped_column(
        "metadata", JSON, nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    accepted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    blocked_by: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), nullable=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

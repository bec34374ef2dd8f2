"""User ORM - read-only mirror of the identity directory.

Invariants:
    - The connection engine never writes this table (directory service owns it)
    - interests is a JSON list of lowercase tags

Design Decisions:
    - Profile fields limited to what connection responses display
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Text, Integer, Boolean, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base


class User(Base):
    """Resident profile as exposed by the identity directory."""
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    first_name: Mapped[str] = mapped_column(
        String(100), nullable=False, default="",
    )
    last_name: Mapped[str] = mapped_column(
        String(100), nullable=False, default="",
    )
    profile_picture_url: Mapped[str | None] = mapped_column(
        String(500), nullable=True,
    )
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    trust_score: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0,
    )
    is_email_verified: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )
    phone_verified: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )
    interests: Mapped[list] = mapped_column(
        JSON, nullable=False, default=list,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

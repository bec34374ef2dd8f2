"""UserNeighborhood ORM - membership of a user in a neighborhood.

Invariants:
    - A user has at most one membership with is_primary = true
    - Primary membership is the user's location for discovery and scoring

Design Decisions:
    - selectin relationship to Neighborhood: location lookups always need the hierarchy
"""

import uuid

from sqlalchemy import Boolean, ForeignKey, Index, text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base


class UserNeighborhood(Base):
    __tablename__ = "user_neighborhoods"
    __table_args__ = (
        Index(
            "uq_user_neighborhoods_primary", "user_id",
            unique=True,
            postgresql_where=text("is_primary"),
            sqlite_where=text("is_primary = 1"),
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    neighborhood_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("neighborhoods.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    is_primary: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )

    neighborhood: Mapped["Neighborhood"] = relationship(
        "Neighborhood", lazy="selectin",
    )

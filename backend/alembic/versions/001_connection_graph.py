"""Connection graph schema — users, neighborhoods, memberships, connections.

Revision ID: 001_connection_graph
Revises: None
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001_connection_graph"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ACTIVE_PAIR_PREDICATE = "status IN ('pending', 'accepted', 'blocked')"


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("first_name", sa.String(100), nullable=False, server_default=""),
        sa.Column("last_name", sa.String(100), nullable=False, server_default=""),
        sa.Column("profile_picture_url", sa.String(500), nullable=True),
        sa.Column("bio", sa.Text, nullable=True),
        sa.Column("trust_score", sa.Integer, nullable=False, server_default="0"),
        sa.Column("is_email_verified", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("phone_verified", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("interests", sa.JSON, nullable=False, server_default="[]"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "neighborhoods",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("parent_neighborhood_id", UUID(as_uuid=True), sa.ForeignKey("neighborhoods.id"), nullable=True),
        sa.Column("lga_id", UUID(as_uuid=True), nullable=True),
    )
    op.create_index("ix_neighborhoods_lga_id", "neighborhoods", ["lga_id"])

    op.create_table(
        "user_neighborhoods",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("neighborhood_id", UUID(as_uuid=True), sa.ForeignKey("neighborhoods.id", ondelete="CASCADE"), nullable=False),
        sa.Column("is_primary", sa.Boolean, nullable=False, server_default="false"),
    )
    op.create_index("ix_user_neighborhoods_user_id", "user_neighborhoods", ["user_id"])
    op.create_index("ix_user_neighborhoods_neighborhood_id", "user_neighborhoods", ["neighborhood_id"])
    op.create_index(
        "uq_user_neighborhoods_primary", "user_neighborhoods", ["user_id"],
        unique=True, postgresql_where=sa.text("is_primary"),
    )

    op.create_table(
        "connections",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("from_user_id", UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("to_user_id", UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("pair_low", UUID(as_uuid=True), nullable=False),
        sa.Column("pair_high", UUID(as_uuid=True), nullable=False),
        sa.Column("connection_type", sa.String(20), nullable=False, server_default="connect"),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("initiated_by", UUID(as_uuid=True), nullable=False),
        sa.Column("metadata", sa.JSON, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("accepted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("blocked_by", UUID(as_uuid=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("from_user_id <> to_user_id", name="ck_connections_no_self"),
    )
    op.create_index(
        "uq_connections_active_pair", "connections", ["pair_low", "pair_high"],
        unique=True, postgresql_where=sa.text(ACTIVE_PAIR_PREDICATE),
    )
    op.create_index("ix_connections_from_status", "connections", ["from_user_id", "status"])
    op.create_index("ix_connections_to_status", "connections", ["to_user_id", "status"])


def downgrade() -> None:
    op.drop_index("ix_connections_to_status", table_name="connections")
    op.drop_index("ix_connections_from_status", table_name="connections")
    op.drop_index("uq_connections_active_pair", table_name="connections")
    op.drop_table("connections")
    op.drop_index("uq_user_neighborhoods_primary", table_name="user_neighborhoods")
    op.drop_index("ix_user_neighborhoods_neighborhood_id", table_name="user_neighborhoods")
    op.drop_index("ix_user_neighborhoods_user_id", table_name="user_neighborhoods")
    op.drop_table("user_neighborhoods")
    op.drop_index("ix_neighborhoods_lga_id", table_name="neighborhoods")
    op.drop_table("neighborhoods")
    op.drop_table("users")

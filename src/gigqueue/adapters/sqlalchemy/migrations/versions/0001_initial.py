"""Catalog and review queue tables.

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None

_REVIEW_STATES = ("PENDING", "APPROVED", "REJECTED")


def upgrade() -> None:
    op.create_table(
        "venue",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("normalized_name", sa.String(), nullable=False),
        sa.Column("address", sa.String(), nullable=True),
        sa.Column("website", sa.String(), nullable=True),
        sa.Column("social_url", sa.String(), nullable=True),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_venue")),
        sa.UniqueConstraint("normalized_name", name=op.f("uq_venue_venue_normalized_name")),
    )
    op.create_table(
        "artist",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("normalized_name", sa.String(), nullable=False),
        sa.Column("location", sa.String(), nullable=True),
        sa.Column("social_url", sa.String(), nullable=True),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_artist")),
        sa.UniqueConstraint("normalized_name", name=op.f("uq_artist_artist_normalized_name")),
    )
    op.create_table(
        "event",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("venue_id", sa.Uuid(), nullable=False),
        sa.Column("artist_id", sa.Uuid(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=True),
        sa.Column("notes", sa.String(), nullable=True),
        sa.Column("source_url", sa.String(), nullable=True),
        sa.ForeignKeyConstraint(
            ["venue_id"],
            ["venue.id"],
            name=op.f("fk_event_event_venue_id_venue"),
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["artist_id"],
            ["artist.id"],
            name=op.f("fk_event_event_artist_id_artist"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_event")),
    )
    op.create_table(
        "queue_item",
        sa.Column("queue_id", sa.Uuid(), nullable=False),
        sa.Column(
            "state",
            sa.Enum(*_REVIEW_STATES, name="reviewstate", native_enum=False),
            nullable=False,
        ),
        sa.Column("venue_group_key", sa.String(), nullable=False),
        sa.Column("artist_group_key", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("decided_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.PrimaryKeyConstraint("queue_id", name=op.f("pk_queue_item")),
    )
    op.create_index(
        "ix_queue_item_state_created_at", "queue_item", ["state", "created_at"], unique=False
    )


def downgrade() -> None:
    op.drop_index("ix_queue_item_state_created_at", table_name="queue_item")
    op.drop_table("queue_item")
    op.drop_table("event")
    op.drop_table("artist")
    op.drop_table("venue")

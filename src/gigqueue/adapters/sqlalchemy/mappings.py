"""SQLAlchemy mapping metadata for the gigqueue catalog and review queue."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from functools import cache
from typing import TYPE_CHECKING, Final

from sqlalchemy import (
    JSON,
    Column,
    Date,
    DateTime,
    Dialect,
    Enum,
    ForeignKey,
    Index,
    String,
    Table,
    Time,
    TypeDecorator,
    UniqueConstraint,
    Uuid,
    orm,
)
from sqlalchemy.orm import configure_mappers

from gigqueue.domain.model import Artist, EntityType, Event, Venue
from gigqueue.domain.review.contracts import ReviewState

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

    from gigqueue.domain.model import CatalogEntity

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    aware = value if value.tzinfo is not None else value.replace(tzinfo=UTC)
    return aware.astimezone(UTC)


class UTCDateTime(TypeDecorator[datetime]):
    """Timezone-aware datetimes stored as UTC; naive values read back as UTC (SQLite)."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        return _as_utc(value)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        return _as_utc(value)


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# Catalog tables --------------------------------------------------------------

venue_table = Table(
    "venue",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("name", String, nullable=False),
    Column("normalized_name", String, nullable=False),
    Column("address", String, nullable=True),
    Column("website", String, nullable=True),
    Column("social_url", String, nullable=True),
    UniqueConstraint("normalized_name"),
)

artist_table = Table(
    "artist",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("name", String, nullable=False),
    Column("normalized_name", String, nullable=False),
    Column("location", String, nullable=True),
    Column("social_url", String, nullable=True),
    UniqueConstraint("normalized_name"),
)

event_table = Table(
    "event",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column(
        "venue_id", UUIDColumnType, ForeignKey("venue.id", ondelete="CASCADE"), nullable=False
    ),
    Column(
        "artist_id", UUIDColumnType, ForeignKey("artist.id", ondelete="CASCADE"), nullable=False
    ),
    Column("date", Date, nullable=False),
    Column("start_time", Time, nullable=True),
    Column("notes", String, nullable=True),
    Column("source_url", String, nullable=True),
)

# Review queue ----------------------------------------------------------------

queue_item_table = Table(
    "queue_item",
    mapper_registry.metadata,
    Column("queue_id", UUIDColumnType, primary_key=True),
    Column("state", Enum(ReviewState, native_enum=False), nullable=False),
    Column("venue_group_key", String, nullable=False),
    Column("artist_group_key", String, nullable=False),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("decided_at", UTCDateTime(), nullable=True),
    Column("payload", JSON, nullable=False),
)

Index("ix_queue_item_state_created_at", queue_item_table.c.state, queue_item_table.c.created_at)

TABLE_BY_ENTITY_TYPE: Final[dict[EntityType, Table]] = {
    EntityType.VENUE: venue_table,
    EntityType.ARTIST: artist_table,
    EntityType.EVENT: event_table,
}

CLASS_BY_ENTITY_TYPE: Final[dict[EntityType, type[CatalogEntity]]] = {
    EntityType.VENUE: Venue,
    EntityType.ARTIST: Artist,
    EntityType.EVENT: Event,
}


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the catalog model."""

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(Venue, venue_table)
    mapper_registry.map_imperatively(Artist, artist_table)
    mapper_registry.map_imperatively(Event, event_table)

    configure_mappers()
    return mapper_registry


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the mapped metadata."""

    log.info("Creating all tables")
    mapper_registry.metadata.create_all(engine)

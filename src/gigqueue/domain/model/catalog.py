"""Canonical catalog records owned by the registry.

Venues and artists are keyed by ``normalized_name``; the registry refuses a
second record of the same type with the same key. Events reference both by id.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar
from uuid import UUID, uuid4

from gigqueue.domain.model.enums import EntityType

if TYPE_CHECKING:
    from datetime import date, time


@dataclass(eq=False, kw_only=True)
class Entity:
    """Registry record with a stable id assigned at construction."""

    ENTITY_TYPE: ClassVar[EntityType]

    id: UUID = field(default_factory=uuid4)

    @property
    def entity_type(self) -> EntityType:
        return self.ENTITY_TYPE


@dataclass(eq=False, kw_only=True)
class NamedEntity(Entity):
    """Registry record that can be matched by name."""

    ENRICHABLE_FIELDS: ClassVar[tuple[str, ...]] = ()

    name: str
    normalized_name: str = ""

    def field_value(self, field_name: str) -> str | None:
        if field_name not in self.ENRICHABLE_FIELDS:
            raise KeyError(f"{self.entity_type} has no enrichable field {field_name!r}")
        value = getattr(self, field_name)
        if isinstance(value, str) and value.strip():
            return value
        return None


@dataclass(eq=False, kw_only=True)
class Venue(NamedEntity):
    ENTITY_TYPE: ClassVar[EntityType] = EntityType.VENUE
    ENRICHABLE_FIELDS: ClassVar[tuple[str, ...]] = ("address", "website", "social_url")

    address: str | None = None
    website: str | None = None
    social_url: str | None = None


@dataclass(eq=False, kw_only=True)
class Artist(NamedEntity):
    ENTITY_TYPE: ClassVar[EntityType] = EntityType.ARTIST
    ENRICHABLE_FIELDS: ClassVar[tuple[str, ...]] = ("location", "social_url")

    location: str | None = None
    social_url: str | None = None


@dataclass(eq=False, kw_only=True)
class Event(Entity):
    ENTITY_TYPE: ClassVar[EntityType] = EntityType.EVENT

    venue_id: UUID
    artist_id: UUID
    date: date
    start_time: time | None = None
    notes: str | None = None
    source_url: str | None = None


type CatalogEntity = Venue | Artist | Event

CLASS_BY_ENTITY_TYPE: dict[EntityType, type[NamedEntity]] = {
    EntityType.VENUE: Venue,
    EntityType.ARTIST: Artist,
}

"""Public domain model surface."""

from __future__ import annotations

from gigqueue.domain.model.catalog import (
    CLASS_BY_ENTITY_TYPE,
    Artist,
    CatalogEntity,
    Entity,
    Event,
    NamedEntity,
    Venue,
)
from gigqueue.domain.model.enums import EntityType

__all__ = [
    "CLASS_BY_ENTITY_TYPE",
    "Artist",
    "CatalogEntity",
    "Entity",
    "EntityType",
    "Event",
    "NamedEntity",
    "Venue",
]

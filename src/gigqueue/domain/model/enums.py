"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class EntityType(StrEnum):
    """Typed-reference discriminator for catalog records."""

    VENUE = "venue"
    ARTIST = "artist"
    EVENT = "event"

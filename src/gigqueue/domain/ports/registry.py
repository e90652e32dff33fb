"""Port for the canonical venue/artist/event registry."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping
    from uuid import UUID

    from gigqueue.domain.model import CatalogEntity, EntityType, NamedEntity


@runtime_checkable
class CanonicalRegistry(Protocol):
    """System of record the review queue reconciles against.

    Lookups raise ``UpstreamLookupError`` and writes ``UpstreamWriteError`` when
    the backing store is unreachable or times out. ``create`` raises
    ``ConflictError`` when a venue or artist with the same normalized name
    already exists.
    """

    def find_by_name(
        self, entity_type: EntityType, normalized_name: str
    ) -> tuple[NamedEntity, ...]: ...

    def list_entities(self, entity_type: EntityType) -> tuple[NamedEntity, ...]: ...

    def get(self, entity_type: EntityType, entity_id: UUID) -> CatalogEntity | None: ...

    def create(self, entity: CatalogEntity) -> UUID: ...

    def update(
        self, entity_type: EntityType, entity_id: UUID, patch: Mapping[str, str]
    ) -> None: ...

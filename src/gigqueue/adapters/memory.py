"""Thread-safe in-memory registry and queue store.

Both keep their state behind a single lock. The registry enforces the same
unique ``(entity_type, normalized_name)`` constraint a database would.
"""

from __future__ import annotations

import threading
from dataclasses import replace
from typing import TYPE_CHECKING

from gigqueue.domain.model import NamedEntity
from gigqueue.domain.ports import CanonicalRegistry, QueueStore
from gigqueue.domain.review.contracts import ReviewState
from gigqueue.domain.review.errors import ConflictError, NotFoundError, ValidationError
from gigqueue.domain.review.normalize import normalize_name

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from uuid import UUID

    from gigqueue.domain.model import CatalogEntity, EntityType
    from gigqueue.domain.review.contracts import QueueItem


class InMemoryRegistry:
    def __init__(self, entities: Iterable[CatalogEntity] = ()) -> None:
        self._lock = threading.Lock()
        self._entities: dict[tuple[EntityType, UUID], CatalogEntity] = {}
        self._by_name: dict[tuple[EntityType, str], UUID] = {}
        for entity in entities:
            self.create(entity)

    def find_by_name(
        self, entity_type: EntityType, normalized_name: str
    ) -> tuple[NamedEntity, ...]:
        with self._lock:
            entity_id = self._by_name.get((entity_type, normalized_name))
            if entity_id is None:
                return ()
            return (self._copy_named(entity_type, entity_id),)

    def list_entities(self, entity_type: EntityType) -> tuple[NamedEntity, ...]:
        with self._lock:
            return tuple(
                self._copy_named(kind, entity_id)
                for kind, entity_id in self._entities
                if kind is entity_type
            )

    def get(self, entity_type: EntityType, entity_id: UUID) -> CatalogEntity | None:
        with self._lock:
            entity = self._entities.get((entity_type, entity_id))
            return replace(entity) if entity is not None else None

    def create(self, entity: CatalogEntity) -> UUID:
        stored = replace(entity)
        with self._lock:
            if isinstance(stored, NamedEntity):
                stored.normalized_name = stored.normalized_name or normalize_name(stored.name)
                name_key = (stored.entity_type, stored.normalized_name)
                existing_id = self._by_name.get(name_key)
                if existing_id is not None:
                    raise ConflictError(
                        entity_type=stored.entity_type,
                        normalized_name=stored.normalized_name,
                        existing_id=existing_id,
                    )
                self._by_name[name_key] = stored.id
            self._entities[(stored.entity_type, stored.id)] = stored
        return stored.id

    def update(
        self, entity_type: EntityType, entity_id: UUID, patch: Mapping[str, str]
    ) -> None:
        with self._lock:
            entity = self._entities.get((entity_type, entity_id))
            if not isinstance(entity, NamedEntity):
                raise NotFoundError(
                    f"No {entity_type.value} with id {entity_id}", reference=entity_id
                )
            unknown = sorted(name for name in patch if name not in entity.ENRICHABLE_FIELDS)
            if unknown:
                raise ValidationError(
                    f"{entity_type.value} has no writable field(s) {', '.join(unknown)}"
                )
            for name, value in patch.items():
                setattr(entity, name, value)

    def count(self, entity_type: EntityType) -> int:
        with self._lock:
            return sum(1 for kind, _ in self._entities if kind is entity_type)

    def _copy_named(self, entity_type: EntityType, entity_id: UUID) -> NamedEntity:
        entity = self._entities[(entity_type, entity_id)]
        if not isinstance(entity, NamedEntity):
            raise TypeError(f"{entity_type.value} records are not matchable by name")
        return replace(entity)


class InMemoryQueueStore:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._pending: dict[UUID, QueueItem] = {}
        self._claimed: dict[UUID, QueueItem] = {}
        self._decided: dict[UUID, ReviewState] = {}

    def add(self, items: Iterable[QueueItem]) -> None:
        with self._lock:
            for item in items:
                self._pending[item.queue_id] = item

    def get(self, queue_id: UUID) -> QueueItem | None:
        with self._lock:
            return self._pending.get(queue_id)

    def pending(self) -> list[QueueItem]:
        with self._lock:
            return list(self._pending.values())

    def claim(self, queue_id: UUID) -> QueueItem | None:
        with self._lock:
            item = self._pending.pop(queue_id, None)
            if item is not None:
                self._claimed[queue_id] = item
            return item

    def release(self, queue_id: UUID) -> None:
        with self._lock:
            item = self._claimed.pop(queue_id, None)
            if item is not None:
                self._pending[queue_id] = item

    def mark_decided(self, queue_id: UUID, state: ReviewState) -> None:
        with self._lock:
            if self._claimed.pop(queue_id, None) is None:
                raise NotFoundError(f"No claimed queue item {queue_id}", reference=queue_id)
            self._decided[queue_id] = state

    def decided_state(self, queue_id: UUID) -> ReviewState | None:
        with self._lock:
            if queue_id in self._claimed:
                return ReviewState.APPLYING
            return self._decided.get(queue_id)


if TYPE_CHECKING:
    _registry_check: CanonicalRegistry = InMemoryRegistry()
    _store_check: QueueStore = InMemoryQueueStore()

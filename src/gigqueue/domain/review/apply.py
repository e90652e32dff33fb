"""Materialize approved queue items in the canonical registry.

Venues and artists are created with an upsert keyed by normalized name: the
registry refuses a duplicate key with ``ConflictError`` and the applier then
reuses the record that won the race. The Event is written last, so a failed
apply can be retried without duplicating venues or artists.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from gigqueue.domain.model import CLASS_BY_ENTITY_TYPE, EntityType, Event

from .contracts import ApplyOutcome, MatchExisting
from .enrichment import fill_gaps
from .errors import (
    ConflictError,
    NotFoundError,
    UpstreamLookupError,
    UpstreamWriteError,
    ValidationError,
)
from .normalize import normalize_name

if TYPE_CHECKING:
    from collections.abc import Callable
    from uuid import UUID

    from gigqueue.domain.model import NamedEntity
    from gigqueue.domain.ports import CanonicalRegistry

    from .contracts import QueueItem, ResolutionTarget

log = logging.getLogger(__name__)


@dataclass(slots=True, kw_only=True)
class Applier:
    registry: CanonicalRegistry

    def apply(self, item: QueueItem) -> ApplyOutcome:
        """Create or reuse venue and artist, then create the Event for ``item``."""

        event_date = item.candidate.require_date(queue_id=item.queue_id)
        created: list[EntityType] = []

        venue_id = self._entity_id_for(item, EntityType.VENUE, created)
        artist_id = self._entity_id_for(item, EntityType.ARTIST, created)

        venue_resolution = item.venue_resolution
        if isinstance(venue_resolution, MatchExisting) and venue_resolution.enrichments:
            self._write(
                lambda: fill_gaps(
                    self.registry, EntityType.VENUE, venue_id, venue_resolution.enrichments
                ),
                operation="enrich:venue",
            )

        event = Event(
            venue_id=venue_id,
            artist_id=artist_id,
            date=event_date,
            start_time=item.candidate.time,
            notes=item.candidate.notes,
            source_url=item.candidate.source_url,
        )
        event_id = self._write(lambda: self.registry.create(event), operation="create:event")
        created.append(EntityType.EVENT)
        log.info(
            "Applied queue item %s: venue=%s artist=%s event=%s",
            item.queue_id,
            venue_id,
            artist_id,
            event_id,
        )
        return ApplyOutcome(
            venue_id=venue_id,
            artist_id=artist_id,
            event_id=event_id,
            created=tuple(created),
        )

    def upsert(self, target: ResolutionTarget, name: str) -> tuple[UUID, bool]:
        """Return the id for ``name`` and whether this call created it."""

        key = normalize_name(name)
        if not key:
            raise ValidationError(f"Cannot create a {target.value} with a blank name")
        existing = self._find(target, key)
        if existing is not None:
            return existing.id, False

        entity = CLASS_BY_ENTITY_TYPE[target](name=" ".join(name.split()), normalized_name=key)
        try:
            return self._write(
                lambda: self.registry.create(entity), operation=f"create:{target.value}"
            ), True
        except ConflictError as conflict:
            winner_id = conflict.existing_id
            if winner_id is None:
                winner = self._find(target, key)
                if winner is None:
                    raise
                winner_id = winner.id
            log.info(
                "Concurrent creation of %s %r resolved by reusing %s",
                target.value,
                key,
                winner_id,
            )
            return winner_id, False

    def _entity_id_for(
        self,
        item: QueueItem,
        target: ResolutionTarget,
        created: list[EntityType],
    ) -> UUID:
        resolution = item.resolution_for(target)
        if isinstance(resolution, MatchExisting):
            if self._lookup(lambda: self.registry.get(target, resolution.matched_id)) is None:
                raise NotFoundError(
                    f"Matched {target.value} {resolution.matched_id} no longer exists",
                    reference=resolution.matched_id,
                )
            return resolution.matched_id

        candidate = item.candidate
        name = candidate.venue_name if target is EntityType.VENUE else candidate.artist_name
        entity_id, was_created = self.upsert(target, name)
        if was_created:
            created.append(target)
        return entity_id

    def _find(self, target: ResolutionTarget, key: str) -> NamedEntity | None:
        matches = self._lookup(lambda: self.registry.find_by_name(target, key))
        if not matches:
            return None
        return min(matches, key=lambda entity: str(entity.id))

    @staticmethod
    def _lookup[T](func: Callable[[], T]) -> T:
        try:
            return func()
        except TimeoutError as exc:
            raise UpstreamLookupError("Registry lookup timed out", operation="apply") from exc

    @staticmethod
    def _write[T](func: Callable[[], T], *, operation: str) -> T:
        try:
            return func()
        except TimeoutError as exc:
            raise UpstreamWriteError("Registry write timed out", operation=operation) from exc

"""Gap-filling enrichment of matched registry entities.

Enrichment only ever writes fields that are currently empty. Proposals are
gated on the resolution having matched the entity with at least the
auto-enrichment confidence.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from gigqueue.config.review import DEFAULT_AUTO_ENRICH_THRESHOLD
from gigqueue.domain.model import NamedEntity

from .contracts import EnrichmentCandidate, EnrichmentPatch, MatchExisting, ResolutionAction
from .errors import NotFoundError, ReviewError, ValidationError

if TYPE_CHECKING:
    from collections.abc import Iterable
    from uuid import UUID

    from gigqueue.domain.model import EntityType
    from gigqueue.domain.ports import CanonicalRegistry

    from .contracts import CreateNew, NeedsReview, Resolution
    from .resolve import ResolutionFailure

log = logging.getLogger(__name__)

DEFAULT_ENRICHMENT_FIELD = "social_url"


@dataclass(slots=True)
class EnrichmentRun:
    """Summary of one ``enrich_all`` pass."""

    enriched: list[UUID] = field(default_factory=list["UUID"])
    skipped: list[UUID] = field(default_factory=list["UUID"])
    failed: dict[UUID, ReviewError] = field(default_factory=dict["UUID", "ReviewError"])



@dataclass(frozen=True, slots=True, kw_only=True)
class VenueMatch:
    """Extracted venue name that resolved to a registry venue."""

    resolution: MatchExisting
    enrichment: EnrichmentCandidate

    @property
    def venue_id(self) -> UUID:
        return self.resolution.matched_id

    @property
    def needs_enrichment(self) -> bool:
        return self.enrichment.needs_enrichment


@dataclass(frozen=True, slots=True, kw_only=True)
class NewVenue:
    """Extracted venue name without a certain registry match."""

    extracted_name: str
    source_url: str | None
    resolution: CreateNew | NeedsReview


@dataclass(frozen=True, slots=True, kw_only=True)
class VenueEnrichmentResult:
    """Venues found in one source, split into registry matches and new names."""

    perfect_matches: tuple[VenueMatch, ...] = ()
    new_venues: tuple[NewVenue, ...] = ()
    total_extracted: int = 0
    failures: tuple[ResolutionFailure, ...] = ()

    def enrichment_candidates(self) -> list[EnrichmentCandidate]:
        return [match.enrichment for match in self.perfect_matches if match.needs_enrichment]


def fill_gaps(
    registry: CanonicalRegistry,
    entity_type: EntityType,
    entity_id: UUID,
    patch: EnrichmentPatch | Mapping[str, str | None],
) -> dict[str, str]:
    """Write the non-empty values of ``patch`` into empty fields of the entity.

    Returns the fields that were written; populated fields are left untouched.
    """

    values = patch.as_dict() if isinstance(patch, EnrichmentPatch) else dict(patch)
    entity = registry.get(entity_type, entity_id)
    if not isinstance(entity, NamedEntity):
        raise NotFoundError(f"No {entity_type.value} with id {entity_id}", reference=entity_id)

    unknown = sorted(name for name in values if name not in entity.ENRICHABLE_FIELDS)
    if unknown:
        raise ValidationError(f"{entity_type.value} cannot be enriched with {', '.join(unknown)}")

    writable = {
        name: value.strip()
        for name, value in values.items()
        if value is not None and value.strip() and entity.field_value(name) is None
    }
    if writable:
        registry.update(entity_type, entity_id, writable)
        log.info("Enriched %s %s with %s", entity_type.value, entity_id, sorted(writable))
    return writable


@dataclass(slots=True, kw_only=True)
class EnrichmentEngine:
    registry: CanonicalRegistry
    threshold: float = DEFAULT_AUTO_ENRICH_THRESHOLD

    def evaluate(
        self,
        resolution: Resolution,
        entity: NamedEntity,
        *,
        extracted_name: str,
        proposed_value: str | None,
        field_name: str = DEFAULT_ENRICHMENT_FIELD,
    ) -> EnrichmentCandidate:
        """Decide whether ``entity`` should receive ``proposed_value`` in ``field_name``."""

        if isinstance(resolution, MatchExisting) and resolution.matched_id != entity.id:
            raise ValueError(
                f"Resolution matched {resolution.matched_id}, not entity {entity.id}"
            )
        current = entity.field_value(field_name)
        proposed = proposed_value.strip() if proposed_value and proposed_value.strip() else None
        needs_enrichment = (
            resolution.action is ResolutionAction.MATCH_EXISTING
            and resolution.confidence >= self.threshold
            and current is None
            and proposed is not None
        )
        return EnrichmentCandidate(
            entity_id=entity.id,
            entity_type=entity.entity_type,
            extracted_name=extracted_name,
            field=field_name,
            current_value=current,
            proposed_value=proposed,
            needs_enrichment=needs_enrichment,
        )

    def enrich(
        self,
        entity_type: EntityType,
        entity_id: UUID,
        patch: EnrichmentPatch | Mapping[str, str | None],
    ) -> dict[str, str]:
        return fill_gaps(self.registry, entity_type, entity_id, patch)

    def enrich_all(self, candidates: Iterable[EnrichmentCandidate]) -> EnrichmentRun:
        """Apply every pending proposal in order.

        Each entry re-reads the entity, so re-running after a partial failure
        only writes the entries that are still empty.
        """

        run = EnrichmentRun()
        for candidate in candidates:
            if not candidate.needs_enrichment or candidate.proposed_value is None:
                run.skipped.append(candidate.entity_id)
                continue
            try:
                written = self.enrich(
                    candidate.entity_type,
                    candidate.entity_id,
                    {candidate.field: candidate.proposed_value},
                )
            except ReviewError as exc:
                log.warning("Enrichment failed for %s: %s", candidate.entity_id, exc)
                run.failed[candidate.entity_id] = exc
                continue
            if written:
                run.enriched.append(candidate.entity_id)
            else:
                run.skipped.append(candidate.entity_id)
        return run

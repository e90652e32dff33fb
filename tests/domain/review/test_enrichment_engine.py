from __future__ import annotations

from uuid import uuid4

import pytest

from gigqueue.adapters.memory import InMemoryRegistry
from gigqueue.domain.model import EntityType, Venue
from gigqueue.domain.review import (
    CreateNew,
    EnrichmentCandidate,
    EnrichmentEngine,
    MatchExisting,
    NotFoundError,
    ValidationError,
    fill_gaps,
)

FACEBOOK_URL = "https://facebook.com/thesnug"


def _candidate(venue: Venue, *, needs_enrichment: bool = True) -> EnrichmentCandidate:
    return EnrichmentCandidate(
        entity_id=venue.id,
        entity_type=EntityType.VENUE,
        extracted_name=venue.name,
        field="social_url",
        current_value=None,
        proposed_value=FACEBOOK_URL,
        needs_enrichment=needs_enrichment,
    )


def test_high_confidence_match_with_empty_field_needs_enrichment() -> None:
    venue = Venue(name="The Snug, Stoke")
    engine = EnrichmentEngine(registry=InMemoryRegistry([venue]))

    candidate = engine.evaluate(
        MatchExisting(matched_id=venue.id, confidence=0.99),
        venue,
        extracted_name="The Snug Stoke",
        proposed_value=FACEBOOK_URL,
    )

    assert candidate.needs_enrichment is True
    assert candidate.current_value is None
    assert candidate.proposed_value == FACEBOOK_URL


@pytest.mark.parametrize(
    ("confidence", "existing", "proposed"),
    [
        (0.98, None, FACEBOOK_URL),
        (1.0, "https://facebook.com/existing", FACEBOOK_URL),
        (1.0, None, "   "),
    ],
)
def test_enrichment_is_not_needed(
    confidence: float, existing: str | None, proposed: str | None
) -> None:
    venue = Venue(name="The Snug, Stoke", social_url=existing)
    engine = EnrichmentEngine(registry=InMemoryRegistry([venue]))

    candidate = engine.evaluate(
        MatchExisting(matched_id=venue.id, confidence=confidence),
        venue,
        extracted_name=venue.name,
        proposed_value=proposed,
    )

    assert candidate.needs_enrichment is False


def test_non_match_resolution_never_needs_enrichment() -> None:
    venue = Venue(name="The Snug, Stoke")
    engine = EnrichmentEngine(registry=InMemoryRegistry([venue]))

    candidate = engine.evaluate(
        CreateNew(confidence=1.0), venue, extracted_name=venue.name, proposed_value=FACEBOOK_URL
    )

    assert candidate.needs_enrichment is False


def test_threshold_is_configurable() -> None:
    venue = Venue(name="The Snug, Stoke")
    engine = EnrichmentEngine(registry=InMemoryRegistry([venue]), threshold=0.9)

    candidate = engine.evaluate(
        MatchExisting(matched_id=venue.id, confidence=0.92),
        venue,
        extracted_name=venue.name,
        proposed_value=FACEBOOK_URL,
    )

    assert candidate.needs_enrichment is True


def test_evaluate_rejects_mismatched_entity() -> None:
    venue = Venue(name="The Snug, Stoke")
    engine = EnrichmentEngine(registry=InMemoryRegistry([venue]))

    with pytest.raises(ValueError, match="not entity"):
        engine.evaluate(
            MatchExisting(matched_id=uuid4(), confidence=1.0),
            venue,
            extracted_name=venue.name,
            proposed_value=FACEBOOK_URL,
        )


def test_fill_gaps_never_overwrites_populated_fields() -> None:
    venue = Venue(name="The Snug, Stoke", website="https://thesnug.example")
    registry = InMemoryRegistry([venue])

    written = fill_gaps(
        registry,
        EntityType.VENUE,
        venue.id,
        {"website": "https://other.example", "social_url": FACEBOOK_URL},
    )

    stored = registry.get(EntityType.VENUE, venue.id)
    assert isinstance(stored, Venue)
    assert written == {"social_url": FACEBOOK_URL}
    assert stored.website == "https://thesnug.example"


def test_fill_gaps_rejects_unknown_fields() -> None:
    venue = Venue(name="The Snug, Stoke")

    with pytest.raises(ValidationError):
        fill_gaps(InMemoryRegistry([venue]), EntityType.VENUE, venue.id, {"capacity": "200"})


def test_fill_gaps_on_missing_entity_is_not_found() -> None:
    with pytest.raises(NotFoundError):
        fill_gaps(InMemoryRegistry(), EntityType.VENUE, uuid4(), {"social_url": FACEBOOK_URL})


def test_enrich_all_is_idempotent_and_isolates_failures() -> None:
    venue = Venue(name="The Snug, Stoke")
    registry = InMemoryRegistry([venue])
    engine = EnrichmentEngine(registry=registry)
    missing = Venue(name="Gone")
    entries = [_candidate(venue), _candidate(missing), _candidate(venue, needs_enrichment=False)]

    first = engine.enrich_all(entries)
    second = engine.enrich_all(entries)

    assert first.enriched == [venue.id]
    assert list(first.failed) == [missing.id]
    assert second.enriched == []
    assert venue.id in second.skipped
    stored = registry.get(EntityType.VENUE, venue.id)
    assert isinstance(stored, Venue)
    assert stored.social_url == FACEBOOK_URL

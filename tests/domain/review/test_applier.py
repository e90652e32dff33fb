from __future__ import annotations

from datetime import date, time
from uuid import uuid4

import pytest

from gigqueue.adapters.memory import InMemoryRegistry
from gigqueue.domain.model import Artist, EntityType, Event, Venue
from gigqueue.domain.review import (
    Applier,
    EnrichmentPatch,
    MatchExisting,
    NeedsReview,
    NotFoundError,
    ScoredCandidate,
    UpstreamWriteError,
    ValidationError,
)
from tests.helpers.review import RacingRegistry, WriteTimeoutRegistry, make_candidate, make_item


def test_apply_creates_venue_artist_and_event() -> None:
    registry = InMemoryRegistry()
    candidate = make_candidate(
        "The Example Band",
        "The Snug, Stoke",
        on=date(2025, 3, 14),
        at=time(20, 30),
        notes="Free entry",
        source_url="https://facebook.com/events/1",
    )

    outcome = Applier(registry=registry).apply(make_item(candidate))

    event = registry.get(EntityType.EVENT, outcome.event_id)
    assert isinstance(event, Event)
    assert event.venue_id == outcome.venue_id
    assert event.artist_id == outcome.artist_id
    assert event.date == date(2025, 3, 14)
    assert event.start_time == time(20, 30)
    assert event.source_url == "https://facebook.com/events/1"
    assert outcome.created == (EntityType.VENUE, EntityType.ARTIST, EntityType.EVENT)
    venue = registry.get(EntityType.VENUE, outcome.venue_id)
    assert isinstance(venue, Venue)
    assert venue.name == "The Snug, Stoke"
    assert venue.normalized_name == "the snug stoke"


def test_apply_reuses_matched_entities() -> None:
    venue = Venue(name="The Snug, Stoke")
    artist = Artist(name="The Example Band")
    registry = InMemoryRegistry([venue, artist])
    item = make_item(
        venue_resolution=MatchExisting(matched_id=venue.id, confidence=1.0),
        artist_resolution=MatchExisting(matched_id=artist.id, confidence=0.97),
    )

    outcome = Applier(registry=registry).apply(item)

    assert outcome.venue_id == venue.id
    assert outcome.artist_id == artist.id
    assert outcome.created == (EntityType.EVENT,)
    assert registry.count(EntityType.VENUE) == 1


def test_apply_fills_venue_gaps_without_overwriting() -> None:
    venue = Venue(name="The Snug, Stoke", website="https://thesnug.example")
    registry = InMemoryRegistry([venue])
    item = make_item(
        venue_resolution=MatchExisting(
            matched_id=venue.id,
            confidence=1.0,
            enrichments=EnrichmentPatch(
                website="https://other.example", social_url="https://facebook.com/thesnug"
            ),
        )
    )

    Applier(registry=registry).apply(item)

    stored = registry.get(EntityType.VENUE, venue.id)
    assert isinstance(stored, Venue)
    assert stored.website == "https://thesnug.example"
    assert stored.social_url == "https://facebook.com/thesnug"


def test_apply_with_missing_matched_entity_is_not_found() -> None:
    item = make_item(venue_resolution=MatchExisting(matched_id=uuid4(), confidence=1.0))

    with pytest.raises(NotFoundError):
        Applier(registry=InMemoryRegistry()).apply(item)


def test_apply_without_date_fails_before_writing() -> None:
    registry = InMemoryRegistry()

    with pytest.raises(ValidationError):
        Applier(registry=registry).apply(make_item(make_candidate(on=None)))

    assert registry.count(EntityType.VENUE) == 0
    assert registry.count(EntityType.ARTIST) == 0


def test_needs_review_approval_upserts_by_normalized_name() -> None:
    similar = Artist(name="The Beatles")
    existing = Artist(name="Beatles")
    registry = InMemoryRegistry([similar, existing])
    item = make_item(
        make_candidate("BEATLES!"),
        artist_resolution=NeedsReview(
            confidence=0.78,
            candidates=(ScoredCandidate(entity_id=similar.id, name=similar.name, score=0.78),),
        ),
    )

    outcome = Applier(registry=registry).apply(item)

    assert outcome.artist_id == existing.id
    assert registry.count(EntityType.ARTIST) == 2


def test_conflicting_create_reuses_the_winner() -> None:
    winner = Venue(name="The Snug, Stoke")
    registry = RacingRegistry([winner], hidden_lookups=1)
    applier = Applier(registry=registry)

    venue_id, created = applier.upsert(EntityType.VENUE, "the snug stoke")

    assert venue_id == winner.id
    assert created is False
    assert registry.count(EntityType.VENUE) == 1


def test_upsert_rejects_blank_names() -> None:
    with pytest.raises(ValidationError):
        Applier(registry=InMemoryRegistry()).upsert(EntityType.ARTIST, " ,, ")


def test_event_write_timeout_is_retryable_and_leaves_no_duplicates() -> None:
    registry = WriteTimeoutRegistry()
    applier = Applier(registry=registry)
    item = make_item()

    with pytest.raises(UpstreamWriteError) as excinfo:
        applier.apply(item)
    with pytest.raises(UpstreamWriteError):
        applier.apply(item)

    assert excinfo.value.retryable is True
    assert registry.count(EntityType.VENUE) == 1
    assert registry.count(EntityType.ARTIST) == 1

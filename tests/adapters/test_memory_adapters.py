from __future__ import annotations

from uuid import uuid4

import pytest

from gigqueue.adapters.memory import InMemoryQueueStore, InMemoryRegistry
from gigqueue.domain.model import EntityType, Venue
from gigqueue.domain.review import ConflictError, NotFoundError, ReviewState, ValidationError
from tests.helpers.review import make_item


def test_registry_normalizes_names_and_refuses_duplicates() -> None:
    registry = InMemoryRegistry()
    winner_id = registry.create(Venue(name="The Snug, Stoke"))

    with pytest.raises(ConflictError) as excinfo:
        registry.create(Venue(name="THE SNUG STOKE"))

    assert excinfo.value.existing_id == winner_id
    assert registry.count(EntityType.VENUE) == 1


def test_registry_returns_copies() -> None:
    venue = Venue(name="The Snug, Stoke")
    registry = InMemoryRegistry([venue])

    (found,) = registry.find_by_name(EntityType.VENUE, "the snug stoke")
    assert isinstance(found, Venue)
    found.website = "https://mutated.example"

    stored = registry.get(EntityType.VENUE, venue.id)
    assert isinstance(stored, Venue)
    assert stored.website is None
    assert stored is not venue


def test_registry_update_validates_fields() -> None:
    venue = Venue(name="The Snug, Stoke")
    registry = InMemoryRegistry([venue])

    with pytest.raises(ValidationError):
        registry.update(EntityType.VENUE, venue.id, {"name": "Renamed"})
    with pytest.raises(NotFoundError):
        registry.update(EntityType.ARTIST, venue.id, {"location": "Stoke"})


def test_store_moves_decided_items_out_of_pending() -> None:
    store = InMemoryQueueStore()
    first, second = make_item(), make_item(offset_seconds=5)
    store.add([first, second])

    assert store.claim(first.queue_id) is first
    store.mark_decided(first.queue_id, ReviewState.APPROVED)

    assert [item.queue_id for item in store.pending()] == [second.queue_id]
    assert store.get(first.queue_id) is None
    assert store.decided_state(first.queue_id) is ReviewState.APPROVED
    assert store.decided_state(second.queue_id) is None


def test_store_refuses_to_decide_unknown_items() -> None:
    with pytest.raises(NotFoundError):
        InMemoryQueueStore().mark_decided(uuid4(), ReviewState.REJECTED)


def test_store_hands_a_claim_to_one_caller_until_released() -> None:
    store = InMemoryQueueStore()
    item = make_item()
    store.add([item])

    assert store.claim(item.queue_id) is item
    assert store.claim(item.queue_id) is None
    assert store.pending() == []
    assert store.decided_state(item.queue_id) is ReviewState.APPLYING

    store.release(item.queue_id)

    assert store.get(item.queue_id) is item
    assert store.decided_state(item.queue_id) is None


def test_store_refuses_to_decide_unclaimed_items() -> None:
    store = InMemoryQueueStore()
    item = make_item()
    store.add([item])

    with pytest.raises(NotFoundError):
        store.mark_decided(item.queue_id, ReviewState.REJECTED)

    assert store.get(item.queue_id) is item

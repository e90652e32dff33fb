from __future__ import annotations

from gigqueue.domain.model import EntityType
from gigqueue.domain.review import artist_groups, group_items, venue_groups
from tests.helpers.review import make_candidate, make_item


def test_items_with_equal_normalized_venue_share_a_group() -> None:
    first = make_item(make_candidate("Band A", "The Snug, Stoke"), offset_seconds=0)
    second = make_item(make_candidate("Band B", "the snug stoke"), offset_seconds=5)
    other = make_item(make_candidate("Band C", "The Sugarmill"), offset_seconds=10)

    groups = venue_groups([first, second, other])

    assert set(groups) == {"the snug stoke", "the sugarmill"}
    assert groups["the snug stoke"] == (first.queue_id, second.queue_id)
    assert groups.group_of(other.queue_id) == "the sugarmill"


def test_grouping_is_independent_of_input_order() -> None:
    items = [
        make_item(make_candidate("Band A", "Venue One"), offset_seconds=3),
        make_item(make_candidate("Band A", "Venue Two"), offset_seconds=1),
        make_item(make_candidate("Band B", "Venue One"), offset_seconds=2),
        make_item(make_candidate("band a", "Venue Three"), offset_seconds=0),
    ]

    forward = group_items(items, EntityType.ARTIST)
    backward = group_items(list(reversed(items)), EntityType.ARTIST)

    assert dict(forward) == dict(backward)
    assert list(forward) == ["band a", "band b"]
    assert len(forward["band a"]) == 3


def test_members_are_ordered_by_creation_time() -> None:
    late = make_item(make_candidate("Band A"), offset_seconds=60)
    early = make_item(make_candidate("Band A"), offset_seconds=0)

    groups = artist_groups([late, early])

    assert groups["band a"] == (early.queue_id, late.queue_id)


def test_no_items_no_groups() -> None:
    assert len(venue_groups([])) == 0
    assert venue_groups([]).group_of(make_item().queue_id) is None

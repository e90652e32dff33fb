"""Group queue items that reference the same venue or artist.

Groups are derived views: they are recomputed from the items handed in and
never stored. Items sharing a normalized name share a group regardless of the
extraction batch they came from.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING

from gigqueue.domain.model import EntityType

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator
    from uuid import UUID

    from .contracts import QueueItem, ResolutionTarget


@dataclass(frozen=True, slots=True)
class GroupMembership(Mapping[str, tuple["UUID", ...]]):
    """Read-only mapping from group key to member queue ids."""

    target: ResolutionTarget
    members: Mapping[str, tuple[UUID, ...]]

    def __getitem__(self, key: str) -> tuple[UUID, ...]:
        return self.members[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self.members)

    def __len__(self) -> int:
        return len(self.members)

    def group_of(self, queue_id: UUID) -> str | None:
        for key, ids in self.members.items():
            if queue_id in ids:
                return key
        return None


def group_items(items: Iterable[QueueItem], target: ResolutionTarget) -> GroupMembership:
    """Group ``items`` by their venue or artist group key.

    Keys are sorted and members ordered by ``(created_at, queue_id)`` so the
    result does not depend on input order.
    """

    buckets: dict[str, list[QueueItem]] = {}
    for item in items:
        buckets.setdefault(item.group_key_for(target), []).append(item)

    members = {
        key: tuple(
            item.queue_id
            for item in sorted(
                buckets[key], key=lambda member: (member.created_at, str(member.queue_id))
            )
        )
        for key in sorted(buckets)
    }
    return GroupMembership(target=target, members=members)


def venue_groups(items: Iterable[QueueItem]) -> GroupMembership:
    return group_items(items, EntityType.VENUE)


def artist_groups(items: Iterable[QueueItem]) -> GroupMembership:
    return group_items(items, EntityType.ARTIST)

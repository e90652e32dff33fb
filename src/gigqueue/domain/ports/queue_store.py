"""Port for storing queue items and their terminal decisions."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterable
    from uuid import UUID

    from gigqueue.domain.review.contracts import QueueItem, ReviewState


@runtime_checkable
class QueueStore(Protocol):
    """Holds pending items; decided items leave only their terminal state behind.

    Deciding an item is a two-step protocol shared by every reviewer process:
    ``claim`` atomically moves a PENDING item to APPLYING and hands it to
    exactly one caller, which then either ``mark_decided`` or ``release``.
    """

    def add(self, items: Iterable[QueueItem]) -> None: ...

    def get(self, queue_id: UUID) -> QueueItem | None: ...

    def pending(self) -> list[QueueItem]: ...

    def claim(self, queue_id: UUID) -> QueueItem | None:
        """Compare-and-set PENDING -> APPLYING; ``None`` when the item was not pending."""
        ...

    def release(self, queue_id: UUID) -> None:
        """Return a claimed item to PENDING."""
        ...

    def mark_decided(self, queue_id: UUID, state: ReviewState) -> None:
        """Move a claimed item to its terminal ``state``."""
        ...

    def decided_state(self, queue_id: UUID) -> ReviewState | None:
        """State of a known item that is no longer PENDING."""
        ...

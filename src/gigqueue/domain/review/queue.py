"""Review queue state machine.

Items move PENDING -> APPROVED or PENDING -> REJECTED and nothing else. A
decided item leaves the pending listing; its terminal state stays in the
store so a late second decision raises ``AlreadyProcessedError`` instead of
applying twice.

Every decision first claims the item in the store (PENDING -> APPLYING), so
reviewers in separate processes cannot both apply it; only the claim holder
writes to the registry. Within one process, mutations also hold the locks of
both group keys of the item.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from gigqueue.domain.model import EntityType

from .contracts import GroupDecision, ReviewState
from .errors import AlreadyProcessedError, NotFoundError, ReviewError
from .grouping import group_items
from .locks import KeyedLocks

if TYPE_CHECKING:
    from collections.abc import Iterable
    from uuid import UUID

    from gigqueue.domain.ports import QueueStore

    from .apply import Applier
    from .contracts import ApplyOutcome, QueueItem, ResolutionTarget
    from .grouping import GroupMembership

log = logging.getLogger(__name__)

_TARGETS: tuple[ResolutionTarget, ...] = (EntityType.VENUE, EntityType.ARTIST)


def _lock_keys(item: QueueItem) -> tuple[tuple[str, str], ...]:
    return (
        (EntityType.VENUE.value, item.venue_group_key),
        (EntityType.ARTIST.value, item.artist_group_key),
    )


@dataclass(slots=True, kw_only=True)
class ReviewQueue:
    store: QueueStore
    applier: Applier
    _locks: KeyedLocks = field(default_factory=KeyedLocks, init=False, repr=False)

    def enqueue(self, items: Iterable[QueueItem]) -> list[QueueItem]:
        pending = [item for item in items if item.state is ReviewState.PENDING]
        self.store.add(pending)
        return pending

    def list(self) -> list[QueueItem]:
        """Snapshot of PENDING items, oldest first."""

        return sorted(self.store.pending(), key=lambda item: (item.created_at, str(item.queue_id)))

    def get(self, queue_id: UUID) -> QueueItem:
        return self._require_pending(queue_id)

    def groups(self, target: ResolutionTarget) -> GroupMembership:
        return group_items(self.store.pending(), target)

    def approve(self, queue_id: UUID) -> ApplyOutcome:
        """Approve and apply one item; on apply failure the item returns to PENDING."""

        item = self._require_pending(queue_id)
        with self._locks.holding(_lock_keys(item)):
            approved = self._claim(queue_id).transition(ReviewState.APPROVED)
            try:
                outcome = self.applier.apply(approved)
            except Exception:
                self.store.release(queue_id)
                raise
            self.store.mark_decided(queue_id, ReviewState.APPROVED)
        log.info("Approved queue item %s", queue_id)
        return outcome

    def reject(self, queue_id: UUID) -> None:
        """Reject one item; nothing is written to the registry."""

        item = self._require_pending(queue_id)
        with self._locks.holding(_lock_keys(item)):
            self._claim(queue_id).transition(ReviewState.REJECTED)
            self.store.mark_decided(queue_id, ReviewState.REJECTED)
        log.info("Rejected queue item %s", queue_id)

    def approve_group(
        self,
        group_key: str,
        *,
        target: ResolutionTarget | None = None,
    ) -> GroupDecision:
        return self._decide_group(group_key, target=target, state=ReviewState.APPROVED)

    def reject_group(
        self,
        group_key: str,
        *,
        target: ResolutionTarget | None = None,
    ) -> GroupDecision:
        return self._decide_group(group_key, target=target, state=ReviewState.REJECTED)

    def _decide_group(
        self,
        group_key: str,
        *,
        target: ResolutionTarget | None,
        state: ReviewState,
    ) -> GroupDecision:
        members = self._group_members(group_key, target)
        if not members:
            raise NotFoundError(f"No pending items in group {group_key!r}", reference=group_key)

        decision = GroupDecision(group_key=group_key, state=state)
        for queue_id in members:
            try:
                if state is ReviewState.APPROVED:
                    decision.outcomes[queue_id] = self.approve(queue_id)
                else:
                    self.reject(queue_id)
            except ReviewError as exc:
                log.warning(
                    "Group %r: %s of %s failed: %s", group_key, state.value, queue_id, exc
                )
                decision.failed[queue_id] = exc
                continue
            except Exception as exc:
                log.exception("Group %r: %s of %s crashed", group_key, state.value, queue_id)
                decision.failed[queue_id] = exc
                continue
            decision.succeeded.append(queue_id)

        log.info(
            "Group %r %s: %s succeeded, %s failed",
            group_key,
            state.value,
            len(decision.succeeded),
            len(decision.failed),
        )
        return decision

    def _group_members(
        self, group_key: str, target: ResolutionTarget | None
    ) -> tuple[UUID, ...]:
        pending = self.store.pending()
        targets = _TARGETS if target is None else (target,)
        members: list[UUID] = []
        for each in targets:
            for queue_id in group_items(pending, each).get(group_key, ()):
                if queue_id not in members:
                    members.append(queue_id)
        return tuple(members)

    def _require_pending(self, queue_id: UUID) -> QueueItem:
        item = self.store.get(queue_id)
        if item is None:
            raise self._not_pending(queue_id)
        return item

    def _claim(self, queue_id: UUID) -> QueueItem:
        item = self.store.claim(queue_id)
        if item is None:
            raise self._not_pending(queue_id)
        return item

    def _not_pending(self, queue_id: UUID) -> ReviewError:
        state = self.store.decided_state(queue_id)
        if state is not None:
            return AlreadyProcessedError(queue_id, state)
        return NotFoundError(f"Unknown queue item {queue_id}", reference=queue_id)

"""Queue store backed by the ``queue_item`` table.

Items are stored as their wire record. Deciding an item flips its ``state``
column; the row stays behind as the terminal-state tombstone. Claims are a
conditional ``UPDATE ... WHERE state = 'PENDING'``, so exactly one reviewer
process wins an item however many act on the same database.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import pydantic
from sqlalchemy import insert, select, update
from sqlalchemy.exc import DBAPIError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from gigqueue.adapters.records import dump_item, load_item
from gigqueue.domain.ports import QueueStore
from gigqueue.domain.review.contracts import ReviewState
from gigqueue.domain.review.errors import (
    NotFoundError,
    UpstreamLookupError,
    UpstreamWriteError,
    ValidationError,
)

from .mappings import queue_item_table
from .unit_of_work import SqlAlchemyUnitOfWork

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Mapping
    from uuid import UUID

    from sqlalchemy.orm import Session, sessionmaker

    from gigqueue.domain.review.contracts import QueueItem

log = logging.getLogger(__name__)

_columns = queue_item_table.c


class SqlAlchemyQueueStore:
    def __init__(self, session_factory: sessionmaker[Session] | None = None) -> None:
        self._session_factory = session_factory

    def add(self, items: Iterable[QueueItem]) -> None:
        rows = [
            {
                "queue_id": item.queue_id,
                "state": item.state,
                "venue_group_key": item.venue_group_key,
                "artist_group_key": item.artist_group_key,
                "created_at": item.created_at,
                "payload": dump_item(item),
            }
            for item in items
        ]
        if not rows:
            return
        with self._write("queue:add") as uow:
            uow.session.execute(insert(queue_item_table), rows)
            uow.commit()

    def get(self, queue_id: UUID) -> QueueItem | None:
        stmt = select(_columns.payload).where(
            _columns.queue_id == queue_id,
            _columns.state == ReviewState.PENDING,
        )
        with self._lookup("queue:get") as uow:
            payload = uow.session.execute(stmt).scalar_one_or_none()
        return _load(queue_id, payload) if payload is not None else None

    def pending(self) -> list[QueueItem]:
        """Readable pending items; unreadable rows are logged and left in place."""

        stmt = (
            select(_columns.queue_id, _columns.payload)
            .where(_columns.state == ReviewState.PENDING)
            .order_by(_columns.created_at, _columns.queue_id)
        )
        with self._lookup("queue:pending") as uow:
            rows = uow.session.execute(stmt).all()
        items: list[QueueItem] = []
        for queue_id, payload in rows:
            try:
                items.append(_load(queue_id, payload))
            except ValidationError as exc:
                log.warning("Skipping queue item %s: %s", queue_id, exc)
        return items

    def claim(self, queue_id: UUID) -> QueueItem | None:
        stmt = (
            update(queue_item_table)
            .where(_columns.queue_id == queue_id, _columns.state == ReviewState.PENDING)
            .values(state=ReviewState.APPLYING)
        )
        with self._write("queue:claim") as uow:
            if uow.session.execute(stmt).rowcount == 0:
                return None
            payload = uow.session.execute(
                select(_columns.payload).where(_columns.queue_id == queue_id)
            ).scalar_one()
            item = _load(queue_id, payload)
            uow.commit()
        return item

    def release(self, queue_id: UUID) -> None:
        stmt = (
            update(queue_item_table)
            .where(_columns.queue_id == queue_id, _columns.state == ReviewState.APPLYING)
            .values(state=ReviewState.PENDING)
        )
        with self._write("queue:release") as uow:
            uow.session.execute(stmt)
            uow.commit()

    def mark_decided(self, queue_id: UUID, state: ReviewState) -> None:
        stmt = (
            update(queue_item_table)
            .where(_columns.queue_id == queue_id, _columns.state == ReviewState.APPLYING)
            .values(state=state, decided_at=datetime.now(UTC))
        )
        with self._write("queue:decide") as uow:
            if uow.session.execute(stmt).rowcount == 0:
                raise NotFoundError(f"No claimed queue item {queue_id}", reference=queue_id)
            uow.commit()

    def decided_state(self, queue_id: UUID) -> ReviewState | None:
        stmt = select(_columns.state).where(
            _columns.queue_id == queue_id,
            _columns.state != ReviewState.PENDING,
        )
        with self._lookup("queue:state") as uow:
            return uow.session.execute(stmt).scalar_one_or_none()

    @contextmanager
    def _lookup(self, operation: str) -> Iterator[SqlAlchemyUnitOfWork]:
        try:
            with SqlAlchemyUnitOfWork(self._session_factory) as uow:
                yield uow
        except (DBAPIError, PoolTimeoutError) as exc:
            log.warning("Queue lookup %s failed: %s", operation, exc)
            raise UpstreamLookupError(f"Queue lookup failed: {exc}", operation=operation) from exc

    @contextmanager
    def _write(self, operation: str) -> Iterator[SqlAlchemyUnitOfWork]:
        try:
            with SqlAlchemyUnitOfWork(self._session_factory) as uow:
                yield uow
        except (DBAPIError, PoolTimeoutError) as exc:
            log.warning("Queue write %s failed: %s", operation, exc)
            raise UpstreamWriteError(f"Queue write failed: {exc}", operation=operation) from exc


def _load(queue_id: UUID, payload: Mapping[str, object]) -> QueueItem:
    try:
        return load_item(payload)
    except pydantic.ValidationError as exc:
        raise ValidationError(
            f"Stored queue item {queue_id} is unreadable: {exc.error_count()} error(s)",
            queue_id=queue_id,
        ) from exc


if TYPE_CHECKING:
    _store_check: QueueStore = SqlAlchemyQueueStore()

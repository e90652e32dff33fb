"""Canonical registry backed by SQLAlchemy.

Every call runs in its own short unit of work, so the registry can be shared
between resolver and reviewer threads. Database failures are translated into
the review error taxonomy at this boundary.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, cast

from sqlalchemy import select
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from gigqueue.domain.model import NamedEntity
from gigqueue.domain.ports import CanonicalRegistry
from gigqueue.domain.review.errors import (
    ConflictError,
    NotFoundError,
    UpstreamLookupError,
    UpstreamWriteError,
    ValidationError,
)
from gigqueue.domain.review.normalize import normalize_name

from .mappings import CLASS_BY_ENTITY_TYPE, TABLE_BY_ENTITY_TYPE
from .unit_of_work import SqlAlchemyUnitOfWork

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping
    from uuid import UUID

    from sqlalchemy.orm import Session, sessionmaker

    from gigqueue.domain.model import CatalogEntity, EntityType

log = logging.getLogger(__name__)


class SqlAlchemyRegistry:
    def __init__(self, session_factory: sessionmaker[Session] | None = None) -> None:
        self._session_factory = session_factory

    def find_by_name(
        self, entity_type: EntityType, normalized_name: str
    ) -> tuple[NamedEntity, ...]:
        entity_cls = self._named_class(entity_type)
        table = TABLE_BY_ENTITY_TYPE[entity_type]
        stmt = (
            select(entity_cls)
            .where(table.c.normalized_name == normalized_name)
            .order_by(table.c.id)
        )
        with self._lookup(f"find:{entity_type.value}") as uow:
            return tuple(uow.session.scalars(stmt).all())

    def list_entities(self, entity_type: EntityType) -> tuple[NamedEntity, ...]:
        entity_cls = self._named_class(entity_type)
        stmt = select(entity_cls).order_by(TABLE_BY_ENTITY_TYPE[entity_type].c.id)
        with self._lookup(f"list:{entity_type.value}") as uow:
            return tuple(uow.session.scalars(stmt).all())

    def get(self, entity_type: EntityType, entity_id: UUID) -> CatalogEntity | None:
        with self._lookup(f"get:{entity_type.value}") as uow:
            return uow.session.get(CLASS_BY_ENTITY_TYPE[entity_type], entity_id)

    def create(self, entity: CatalogEntity) -> UUID:
        if isinstance(entity, NamedEntity) and not entity.normalized_name:
            entity.normalized_name = normalize_name(entity.name)
        operation = f"create:{entity.entity_type.value}"
        try:
            with self._write(operation) as uow:
                uow.session.add(entity)
                uow.commit()
        except IntegrityError as exc:
            if not isinstance(entity, NamedEntity):
                raise UpstreamWriteError(
                    f"{entity.entity_type.value} {entity.id} rejected: {exc.orig}",
                    operation=operation,
                ) from exc
            existing = self.find_by_name(entity.entity_type, entity.normalized_name)
            raise ConflictError(
                entity_type=entity.entity_type,
                normalized_name=entity.normalized_name,
                existing_id=existing[0].id if existing else None,
            ) from exc
        return entity.id

    def update(
        self, entity_type: EntityType, entity_id: UUID, patch: Mapping[str, str]
    ) -> None:
        entity_cls = self._named_class(entity_type)
        with self._write(f"update:{entity_type.value}") as uow:
            entity = uow.session.get(entity_cls, entity_id)
            if entity is None:
                raise NotFoundError(
                    f"No {entity_type.value} with id {entity_id}", reference=entity_id
                )
            unknown = sorted(name for name in patch if name not in entity.ENRICHABLE_FIELDS)
            if unknown:
                raise ValidationError(
                    f"{entity_type.value} has no writable field(s) {', '.join(unknown)}"
                )
            for name, value in patch.items():
                setattr(entity, name, value)
            uow.commit()

    @staticmethod
    def _named_class(entity_type: EntityType) -> type[NamedEntity]:
        entity_cls = CLASS_BY_ENTITY_TYPE[entity_type]
        if not issubclass(entity_cls, NamedEntity):
            raise TypeError(f"{entity_type.value} records are not matchable by name")
        return cast(type[NamedEntity], entity_cls)

    @contextmanager
    def _lookup(self, operation: str) -> Iterator[SqlAlchemyUnitOfWork]:
        try:
            with SqlAlchemyUnitOfWork(self._session_factory) as uow:
                yield uow
        except (DBAPIError, PoolTimeoutError) as exc:
            log.warning("Registry lookup %s failed: %s", operation, exc)
            raise UpstreamLookupError(
                f"Registry lookup failed: {exc}",
                operation=operation,
            ) from exc

    @contextmanager
    def _write(self, operation: str) -> Iterator[SqlAlchemyUnitOfWork]:
        try:
            with SqlAlchemyUnitOfWork(self._session_factory) as uow:
                yield uow
        except IntegrityError:
            # ``create`` turns unique violations into ConflictError.
            raise
        except (DBAPIError, PoolTimeoutError) as exc:
            log.warning("Registry write %s failed: %s", operation, exc)
            raise UpstreamWriteError(
                f"Registry write failed: {exc}",
                operation=operation,
            ) from exc


if TYPE_CHECKING:
    _registry_check: CanonicalRegistry = SqlAlchemyRegistry()

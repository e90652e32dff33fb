"""SQLAlchemy adapter package for gigqueue."""

from __future__ import annotations

from .mappings import (
    CLASS_BY_ENTITY_TYPE,
    TABLE_BY_ENTITY_TYPE,
    create_all_tables,
    mapper_registry,
    start_mappers,
)
from .queue_store import SqlAlchemyQueueStore
from .registry import SqlAlchemyRegistry
from .unit_of_work import (
    SqlAlchemyUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    session_factory,
    shutdown,
    startup,
)

__all__ = [
    "CLASS_BY_ENTITY_TYPE",
    "TABLE_BY_ENTITY_TYPE",
    "SqlAlchemyQueueStore",
    "SqlAlchemyRegistry",
    "SqlAlchemyUnitOfWork",
    "StartupError",
    "configured_engine",
    "create_all_tables",
    "is_started",
    "mapper_registry",
    "session_factory",
    "shutdown",
    "start_mappers",
    "startup",
]

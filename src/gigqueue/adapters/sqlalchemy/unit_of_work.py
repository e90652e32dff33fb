"""Engine lifecycle and per-operation sessions for the SQLAlchemy adapters.

``startup`` binds one engine for the process and brings the schema to the
latest migration. Registry and queue-store calls then each open a short
``SqlAlchemyUnitOfWork``; no session outlives a single call, so adapters can
be shared between resolver and reviewer threads.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from gigqueue.config.storage import DatabaseConfig, get_database_config

from .mappings import start_mappers
from .migrations import upgrade_head

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when the adapter is used before ``startup`` or started twice."""


class _Binding:
    """The engine bound by ``startup`` and a session factory derived from it."""

    def __init__(self) -> None:
        self.engine: Engine | None = None
        self._factory: sessionmaker[Session] | None = None

    def bind(self, engine: Engine | None) -> None:
        if self.engine is not None and self.engine is not engine:
            self.engine.dispose()
        self.engine = engine
        self._factory = None

    def factory(self) -> sessionmaker[Session]:
        if self.engine is None:
            raise StartupError(
                "SQLAlchemy adapter not started; call "
                "gigqueue.adapters.sqlalchemy.startup() first"
            )
        if self._factory is None:
            self._factory = sessionmaker(bind=self.engine, expire_on_commit=False)
        return self._factory


_BINDING = _Binding()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Bind the process-wide engine and migrate its schema to head.

    Without ``engine`` one is created from ``database_uri`` or, failing that,
    from ``DATABASE_URI``/the default SQLite file.
    """

    if _BINDING.engine is not None and not force:
        raise StartupError("SQLAlchemy adapter already started; pass force=True to rebind")

    if engine is None:
        settings = (
            DatabaseConfig(uri=database_uri) if database_uri else get_database_config()
        )
        engine = create_engine(settings.uri, echo=settings.echo)
    start_mappers()
    upgrade_head(engine=engine)
    _BINDING.bind(engine)
    log.info("SQLAlchemy adapter bound to %s", engine.url.render_as_string(hide_password=True))


def configured_engine() -> Engine | None:
    return _BINDING.engine


def is_started() -> bool:
    return _BINDING.engine is not None


def session_factory() -> sessionmaker[Session]:
    return _BINDING.factory()


def shutdown() -> None:
    """Dispose the bound engine; a later ``startup`` may bind a new one."""

    _BINDING.bind(None)


class SqlAlchemyUnitOfWork:
    """One session and transaction; nothing is committed unless ``commit`` is called."""

    def __init__(self, factory: sessionmaker[Session] | None = None) -> None:
        self._factory = factory or _BINDING.factory()
        self._session: Session | None = None

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work used outside its 'with' block")
        return self._session

    def __enter__(self) -> SqlAlchemyUnitOfWork:
        if self._session is not None:
            raise StartupError("Unit of work is not re-entrant")
        self._session = self._factory()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        session, self._session = self.session, None
        try:
            if exc_type is not None:
                session.rollback()
        finally:
            session.close()
        return False

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

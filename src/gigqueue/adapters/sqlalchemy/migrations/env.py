"""Alembic entry point for the gigqueue schema.

``upgrade_head`` hands over a live connection through
``config.attributes["connection"]``; the ``alembic`` command line falls back
to ``sqlalchemy.url`` or the configured database.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from alembic import context
from sqlalchemy import create_engine, pool

from gigqueue.adapters.sqlalchemy.mappings import mapper_registry, start_mappers
from gigqueue.config.storage import get_database_uri

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection

start_mappers()


def _database_url() -> str:
    return context.config.get_main_option("sqlalchemy.url") or get_database_uri()


def _run(connection: Connection | None = None) -> None:
    options: dict[str, object] = {
        "target_metadata": mapper_registry.metadata,
        # SQLite cannot ALTER most constraints in place.
        "render_as_batch": True,
        "compare_type": True,
    }
    if connection is None:
        options.update(url=_database_url(), literal_binds=True)
    else:
        options["connection"] = connection
    context.configure(**options)
    with context.begin_transaction():
        context.run_migrations()


def _run_online() -> None:
    shared = context.config.attributes.get("connection")
    if shared is not None:
        _run(shared)
        return
    engine = create_engine(_database_url(), poolclass=pool.NullPool)
    try:
        with engine.connect() as connection:
            _run(connection)
    finally:
        engine.dispose()


if context.is_offline_mode():
    _run()
else:
    _run_online()

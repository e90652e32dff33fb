from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine, select

from gigqueue.adapters.sqlalchemy.mappings import venue_table
from gigqueue.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)
from gigqueue.domain.model import Venue

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy.engine import Engine


@pytest.fixture(autouse=True)
def reset_unit_of_work_state() -> Iterator[None]:
    shutdown()
    yield
    shutdown()


def test_sqlalchemy_unit_of_work_requires_startup() -> None:
    with pytest.raises(StartupError):
        SqlAlchemyUnitOfWork()


def test_startup_requires_force_for_reconfiguration() -> None:
    engine_a = create_engine("sqlite+pysqlite:///:memory:", future=True)
    engine_b = create_engine("sqlite+pysqlite:///:memory:", future=True)

    startup(engine=engine_a, force=True)

    with pytest.raises(StartupError):
        startup(engine=engine_b)

    startup(engine=engine_b, force=True)
    assert configured_engine() is engine_b
    assert is_started()


def test_unit_of_work_commits_on_request(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)

    with SqlAlchemyUnitOfWork() as uow:
        uow.session.add(Venue(name="The Snug, Stoke", normalized_name="the snug stoke"))
        uow.commit()

    with SqlAlchemyUnitOfWork() as uow:
        names = uow.session.execute(select(venue_table.c.name)).scalars().all()

    assert names == ["The Snug, Stoke"]


def test_unit_of_work_rolls_back_when_block_raises(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)

    with pytest.raises(RuntimeError), SqlAlchemyUnitOfWork() as uow:
        uow.session.add(Venue(name="Ghost", normalized_name="ghost"))
        uow.session.flush()
        raise RuntimeError("abort")

    with SqlAlchemyUnitOfWork() as uow:
        assert uow.session.execute(select(venue_table.c.id)).first() is None


def test_shutdown_resets_state(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)

    shutdown()

    assert configured_engine() is None
    assert not is_started()

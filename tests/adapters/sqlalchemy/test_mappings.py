from __future__ import annotations

from datetime import date, time
from typing import TYPE_CHECKING

from sqlalchemy import create_engine, inspect, select

from gigqueue.adapters.sqlalchemy import create_all_tables, start_mappers
from gigqueue.adapters.sqlalchemy.mappings import event_table
from gigqueue.domain.model import Artist, Event, Venue

if TYPE_CHECKING:
    from sqlalchemy.orm import Session, sessionmaker


def test_start_mappers_is_idempotent() -> None:
    # First invocation happens in the sqlite_engine fixture; calling again should be harmless.
    start_mappers()
    start_mappers()


def test_create_all_tables_registers_catalog_and_queue_tables() -> None:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    create_all_tables(engine)

    table_names = set(inspect(engine).get_table_names())

    assert {"venue", "artist", "event", "queue_item"} <= table_names
    engine.dispose()


def test_mappings_round_trip_catalog_records(
    sqlite_session_factory: sessionmaker[Session],
) -> None:
    venue = Venue(name="The Snug, Stoke", normalized_name="the snug stoke")
    artist = Artist(name="The Example Band", normalized_name="the example band")
    event = Event(
        venue_id=venue.id,
        artist_id=artist.id,
        date=date(2025, 3, 14),
        start_time=time(20, 30),
        source_url="https://facebook.com/thesnug",
    )

    with sqlite_session_factory() as session:
        session.add_all([venue, artist])
        session.flush()
        session.add(event)
        session.commit()

    with sqlite_session_factory() as session:
        loaded = session.get(Event, event.id)
        assert loaded is not None
        assert loaded.venue_id == venue.id
        assert loaded.start_time == time(20, 30)
        row = session.execute(
            select(event_table.c.date).where(event_table.c.id == event.id)
        ).one()
        assert row.date == date(2025, 3, 14)

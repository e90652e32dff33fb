"""Translate extractor payloads into review candidates."""

from __future__ import annotations

from datetime import date, time
from logging import getLogger
from typing import TYPE_CHECKING

from gigqueue.domain.review.candidates import Candidate

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .schema import ExtractedEvent

log = getLogger(__name__)


def _parse_date(value: str | None) -> date | None:
    if value is None:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        log.warning("Dropping unparseable event date %r", value)
        return None


def _parse_time(value: str | None) -> time | None:
    if value is None:
        return None
    try:
        return time.fromisoformat(value)
    except ValueError:
        log.debug("Dropping unparseable event time %r", value)
        return None


def parse_candidate(event: ExtractedEvent) -> Candidate:
    return Candidate(
        artist_name=" ".join(event.artist_name.split()),
        venue_name=" ".join(event.venue_name.split()),
        date=_parse_date(event.date),
        time=_parse_time(event.time),
        notes=event.notes,
        source_url=event.facebook_url,
    )


def parse_candidates(events: Iterable[ExtractedEvent]) -> list[Candidate]:
    return [parse_candidate(event) for event in events]

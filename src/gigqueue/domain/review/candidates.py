"""Raw extracted event tuples awaiting resolution."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .errors import ValidationError

if TYPE_CHECKING:
    from datetime import date, time
    from uuid import UUID


@dataclass(frozen=True, slots=True, kw_only=True)
class Candidate:
    """One listing as produced by the extractor.

    ``date`` may be missing in raw output; such candidates are queued so a
    reviewer can see them but cannot be applied.
    """

    artist_name: str
    venue_name: str
    date: date | None
    time: time | None = None
    notes: str | None = None
    source_url: str | None = None

    def require_date(self, *, queue_id: UUID | None = None) -> date:
        if self.date is None:
            raise ValidationError(
                f"Candidate {self.artist_name!r} @ {self.venue_name!r} has no date",
                queue_id=queue_id,
            )
        return self.date

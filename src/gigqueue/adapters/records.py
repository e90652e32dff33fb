"""Persisted and wire shape of queue items.

The record keeps the field names the review frontend already consumes
(``artistName``, ``venueResolution``, ``facebookUrl``...) and spells the
needs-review action ``REVIEW``.
"""

from __future__ import annotations

import datetime as dt
from typing import TYPE_CHECKING, Literal, Self
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from gigqueue.domain.review.candidates import Candidate
from gigqueue.domain.review.contracts import (
    CreateNew,
    EnrichmentPatch,
    MatchExisting,
    NeedsReview,
    QueueItem,
    ResolutionAction,
    ReviewState,
    ScoredCandidate,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

    from gigqueue.domain.review.contracts import Resolution

type WireAction = Literal["MATCH_EXISTING", "CREATE_NEW", "REVIEW"]

_WIRE_ACTION: dict[ResolutionAction, WireAction] = {
    ResolutionAction.MATCH_EXISTING: "MATCH_EXISTING",
    ResolutionAction.CREATE_NEW: "CREATE_NEW",
    ResolutionAction.NEEDS_REVIEW: "REVIEW",
}


class RecordModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ScoredCandidateRecord(RecordModel):
    id: UUID
    name: str
    score: float
    reasons: list[str] = Field(default_factory=list)


class MatchedVenueRecord(RecordModel):
    id: UUID
    name: str | None = None


class EnrichmentsRecord(RecordModel):
    address: str | None = None
    website: str | None = None
    facebook_url: str | None = Field(default=None, alias="facebookUrl")


class ResolutionRecord(RecordModel):
    """Fields shared by venue and artist resolutions; the matched id is per side."""

    action: WireAction
    confidence: float = Field(ge=0.0, le=1.0)
    reasons: list[str] = Field(default_factory=list)
    candidates: list[ScoredCandidateRecord] = Field(default_factory=list)
    suggestion: str | None = None

    @model_validator(mode="after")
    def _check_review_candidates(self) -> Self:
        if self.action == "REVIEW" and not self.candidates:
            raise ValueError("REVIEW resolution requires at least one candidate")
        return self


def _check_matched_id(action: WireAction, matched_id: UUID | None) -> None:
    if action == "MATCH_EXISTING" and matched_id is None:
        raise ValueError("MATCH_EXISTING resolution requires a matched id")


class VenueResolutionRecord(ResolutionRecord):
    venue_id: UUID | None = None
    matched_venue: MatchedVenueRecord | None = None
    enrichments: EnrichmentsRecord | None = None

    @property
    def matched_id(self) -> UUID | None:
        return self.venue_id

    @model_validator(mode="after")
    def _check_venue_id(self) -> Self:
        _check_matched_id(self.action, self.venue_id)
        return self


class ArtistResolutionRecord(ResolutionRecord):
    artist_id: UUID | None = None

    @property
    def matched_id(self) -> UUID | None:
        return self.artist_id

    @model_validator(mode="after")
    def _check_artist_id(self) -> Self:
        _check_matched_id(self.action, self.artist_id)
        return self


type SideResolutionRecord = VenueResolutionRecord | ArtistResolutionRecord


class QueueItemRecord(RecordModel):
    queue_id: UUID
    artist_name: str = Field(alias="artistName")
    venue_name: str = Field(alias="venueName")
    date: dt.date | None = None
    time: dt.time | None = None
    notes: str | None = None
    facebook_url: str | None = Field(default=None, alias="facebookUrl")
    venue_group_key: str
    artist_group_key: str
    status: Literal["pending", "approved", "rejected"] = "pending"
    created_at: dt.datetime
    venue_resolution: VenueResolutionRecord = Field(alias="venueResolution")
    artist_resolution: ArtistResolutionRecord = Field(alias="artistResolution")


# --- Domain -> record --------------------------------------------------------


def to_record(item: QueueItem) -> QueueItemRecord:
    candidate = item.candidate
    return QueueItemRecord(
        queue_id=item.queue_id,
        artist_name=candidate.artist_name,
        venue_name=candidate.venue_name,
        date=candidate.date,
        time=candidate.time,
        notes=candidate.notes,
        facebook_url=candidate.source_url,
        venue_group_key=item.venue_group_key,
        artist_group_key=item.artist_group_key,
        status=item.state.value,
        created_at=item.created_at,
        venue_resolution=VenueResolutionRecord(
            **_resolution_fields(item.venue_resolution),
            venue_id=item.venue_resolution.matched_id,
            matched_venue=_matched_venue(item.venue_resolution),
            enrichments=_enrichments_record(item.venue_resolution),
        ),
        artist_resolution=ArtistResolutionRecord(
            **_resolution_fields(item.artist_resolution),
            artist_id=item.artist_resolution.matched_id,
        ),
    )


def dump_item(item: QueueItem) -> dict[str, object]:
    """JSON-compatible mapping in the wire shape."""

    return to_record(item).model_dump(mode="json", by_alias=True, exclude_none=True)


def _resolution_fields(resolution: Resolution) -> dict[str, object]:
    return {
        "action": _WIRE_ACTION[resolution.action],
        "confidence": resolution.confidence,
        "reasons": list(resolution.reasons),
        "candidates": [
            ScoredCandidateRecord(
                id=candidate.entity_id,
                name=candidate.name,
                score=candidate.score,
                reasons=list(candidate.reasons),
            )
            for candidate in resolution.candidates
        ],
        "suggestion": resolution.suggestion if isinstance(resolution, CreateNew) else None,
    }


def _matched_venue(resolution: Resolution) -> MatchedVenueRecord | None:
    if not isinstance(resolution, MatchExisting):
        return None
    name = next(
        (
            candidate.name
            for candidate in resolution.candidates
            if candidate.entity_id == resolution.matched_id
        ),
        None,
    )
    return MatchedVenueRecord(id=resolution.matched_id, name=name)


def _enrichments_record(resolution: Resolution) -> EnrichmentsRecord | None:
    if not isinstance(resolution, MatchExisting) or not resolution.enrichments:
        return None
    patch = resolution.enrichments
    return EnrichmentsRecord(
        address=patch.address, website=patch.website, facebook_url=patch.social_url
    )


# --- Record -> domain --------------------------------------------------------


def from_record(record: QueueItemRecord) -> QueueItem:
    return QueueItem(
        queue_id=record.queue_id,
        candidate=Candidate(
            artist_name=record.artist_name,
            venue_name=record.venue_name,
            date=record.date,
            time=record.time,
            notes=record.notes,
            source_url=record.facebook_url,
        ),
        venue_resolution=_to_resolution(record.venue_resolution),
        artist_resolution=_to_resolution(record.artist_resolution),
        venue_group_key=record.venue_group_key,
        artist_group_key=record.artist_group_key,
        state=ReviewState(record.status),
        created_at=record.created_at,
    )


def load_item(payload: Mapping[str, object]) -> QueueItem:
    return from_record(QueueItemRecord.model_validate(payload))


def _to_resolution(record: SideResolutionRecord) -> Resolution:
    reasons = tuple(record.reasons)
    candidates = tuple(
        ScoredCandidate(
            entity_id=candidate.id,
            name=candidate.name,
            score=candidate.score,
            reasons=tuple(candidate.reasons),
        )
        for candidate in record.candidates
    )
    if record.action == "REVIEW":
        return NeedsReview(confidence=record.confidence, candidates=candidates, reasons=reasons)
    if record.action == "CREATE_NEW":
        return CreateNew(
            confidence=record.confidence,
            reasons=reasons,
            candidates=candidates,
            suggestion=record.suggestion,
        )

    matched_id = record.matched_id
    if matched_id is None:
        raise ValueError("MATCH_EXISTING resolution requires a matched id")
    enrichments: EnrichmentPatch | None = None
    if isinstance(record, VenueResolutionRecord) and record.enrichments is not None:
        patch = EnrichmentPatch(
            address=record.enrichments.address,
            website=record.enrichments.website,
            social_url=record.enrichments.facebook_url,
        )
        enrichments = patch if patch else None
    return MatchExisting(
        matched_id=matched_id,
        confidence=record.confidence,
        reasons=reasons,
        candidates=candidates,
        enrichments=enrichments,
    )

"""Shared review-queue contract components.

Resolutions form a tagged union on ``action``: only ``MatchExisting`` carries
a ``matched_id`` and only it may carry an enrichment patch.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Literal
from uuid import UUID, uuid4

from gigqueue.domain.model import EntityType

from .errors import AlreadyProcessedError

if TYPE_CHECKING:
    from .candidates import Candidate


class ResolutionAction(StrEnum):
    MATCH_EXISTING = "MATCH_EXISTING"
    CREATE_NEW = "CREATE_NEW"
    NEEDS_REVIEW = "NEEDS_REVIEW"


class ReviewState(StrEnum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    # Claimed by a reviewer whose registry writes are in flight.
    APPLYING = "applying"

    @property
    def is_terminal(self) -> bool:
        return self is ReviewState.APPROVED or self is ReviewState.REJECTED


type ResolutionTarget = Literal[EntityType.VENUE, EntityType.ARTIST]


@dataclass(frozen=True, slots=True, kw_only=True)
class ScoredCandidate:
    """Registry entity considered for a name, with its similarity score."""

    entity_id: UUID
    name: str
    score: float
    reasons: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True, kw_only=True)
class EnrichmentPatch:
    """Gap-filling proposal for a matched entity."""

    address: str | None = None
    website: str | None = None
    social_url: str | None = None

    def as_dict(self) -> dict[str, str]:
        values = {
            "address": self.address,
            "website": self.website,
            "social_url": self.social_url,
        }
        return {key: value for key, value in values.items() if value}

    def __bool__(self) -> bool:
        return bool(self.as_dict())


def _check_confidence(confidence: float) -> None:
    if not 0.0 <= confidence <= 1.0:
        raise ValueError(f"Confidence must be within [0, 1], got {confidence}")


@dataclass(frozen=True, slots=True, kw_only=True)
class MatchExisting:
    """Name resolved to one registry entity."""

    matched_id: UUID
    confidence: float
    reasons: tuple[str, ...] = ()
    candidates: tuple[ScoredCandidate, ...] = ()
    enrichments: EnrichmentPatch | None = None
    action: Literal[ResolutionAction.MATCH_EXISTING] = ResolutionAction.MATCH_EXISTING

    def __post_init__(self) -> None:
        _check_confidence(self.confidence)


@dataclass(frozen=True, slots=True, kw_only=True)
class CreateNew:
    """No registry entity is close enough; approval creates one."""

    confidence: float
    reasons: tuple[str, ...] = ()
    candidates: tuple[ScoredCandidate, ...] = ()
    suggestion: str | None = None
    action: Literal[ResolutionAction.CREATE_NEW] = ResolutionAction.CREATE_NEW

    def __post_init__(self) -> None:
        _check_confidence(self.confidence)

    @property
    def matched_id(self) -> None:
        return None


@dataclass(frozen=True, slots=True, kw_only=True)
class NeedsReview:
    """Plausible registry matches exist but none is certain."""

    confidence: float
    candidates: tuple[ScoredCandidate, ...]
    reasons: tuple[str, ...] = ()
    action: Literal[ResolutionAction.NEEDS_REVIEW] = ResolutionAction.NEEDS_REVIEW

    def __post_init__(self) -> None:
        _check_confidence(self.confidence)
        if not self.candidates:
            raise ValueError("Review resolution must include at least one candidate")

    @property
    def matched_id(self) -> None:
        return None


type Resolution = MatchExisting | CreateNew | NeedsReview


@dataclass(frozen=True, slots=True, kw_only=True)
class CandidateResolution:
    """Venue and artist resolutions for one candidate."""

    candidate: Candidate
    venue: Resolution
    artist: Resolution


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True, kw_only=True)
class QueueItem:
    """Unit of review: one resolved-but-undecided candidate."""

    candidate: Candidate
    venue_resolution: Resolution
    artist_resolution: Resolution
    venue_group_key: str
    artist_group_key: str
    queue_id: UUID = field(default_factory=uuid4)
    state: ReviewState = ReviewState.PENDING
    created_at: datetime = field(default_factory=_utcnow)

    def group_key_for(self, target: ResolutionTarget) -> str:
        if target is EntityType.VENUE:
            return self.venue_group_key
        return self.artist_group_key

    def resolution_for(self, target: ResolutionTarget) -> Resolution:
        if target is EntityType.VENUE:
            return self.venue_resolution
        return self.artist_resolution

    def transition(self, state: ReviewState) -> QueueItem:
        """Return this item in ``state``; only PENDING -> terminal is allowed."""

        if self.state is not ReviewState.PENDING:
            raise AlreadyProcessedError(self.queue_id, self.state)
        if not state.is_terminal:
            raise ValueError(f"Cannot transition queue item to {state.value}")
        return replace(self, state=state)


@dataclass(frozen=True, slots=True, kw_only=True)
class ApplyOutcome:
    """Canonical ids produced by approving one queue item."""

    venue_id: UUID
    artist_id: UUID
    event_id: UUID
    created: tuple[EntityType, ...] = ()


@dataclass(slots=True)
class GroupDecision:
    """Per-item outcome of a group decision."""

    group_key: str
    state: ReviewState
    succeeded: list[UUID] = field(default_factory=list["UUID"])
    outcomes: dict[UUID, ApplyOutcome] = field(default_factory=dict["UUID", "ApplyOutcome"])
    failed: dict[UUID, Exception] = field(default_factory=dict["UUID", "Exception"])

    @property
    def complete(self) -> bool:
        return not self.failed


@dataclass(frozen=True, slots=True, kw_only=True)
class EnrichmentCandidate:
    """Proposal to fill one empty field on a matched registry entity."""

    entity_id: UUID
    entity_type: EntityType
    extracted_name: str
    field: str
    current_value: str | None
    proposed_value: str | None
    needs_enrichment: bool

"""Entity resolution and review queue core.

Flow:
1) the extractor turns source content into candidates
2) the resolver classifies each venue and artist name against the registry
3) resolved candidates are queued for review, grouped by normalized name
4) approval applies an item to the registry; rejection discards it
5) high-confidence matches propose gap-filling enrichment
"""

from __future__ import annotations

from .apply import Applier
from .candidates import Candidate
from .contracts import (
    ApplyOutcome,
    CandidateResolution,
    CreateNew,
    EnrichmentCandidate,
    EnrichmentPatch,
    GroupDecision,
    MatchExisting,
    NeedsReview,
    QueueItem,
    Resolution,
    ResolutionAction,
    ResolutionTarget,
    ReviewState,
    ScoredCandidate,
)
from .enrichment import (
    EnrichmentEngine,
    EnrichmentRun,
    NewVenue,
    VenueEnrichmentResult,
    VenueMatch,
    fill_gaps,
)
from .errors import (
    AlreadyProcessedError,
    ConflictError,
    NotFoundError,
    ReviewError,
    UpstreamError,
    UpstreamExtractionError,
    UpstreamLookupError,
    UpstreamWriteError,
    ValidationError,
)
from .grouping import GroupMembership, artist_groups, group_items, venue_groups
from .jobs import ExtractionJob, IngestResult, JobStatus
from .normalize import group_key, normalize_name
from .queue import ReviewQueue
from .resolve import ResolutionFailure, Resolver
from .service import ReviewService, build_queue_item, distinct_venues

__all__ = [
    "AlreadyProcessedError",
    "Applier",
    "ApplyOutcome",
    "Candidate",
    "CandidateResolution",
    "ConflictError",
    "CreateNew",
    "EnrichmentCandidate",
    "EnrichmentEngine",
    "EnrichmentPatch",
    "EnrichmentRun",
    "ExtractionJob",
    "GroupDecision",
    "GroupMembership",
    "IngestResult",
    "JobStatus",
    "MatchExisting",
    "NeedsReview",
    "NewVenue",
    "NotFoundError",
    "QueueItem",
    "Resolution",
    "ResolutionAction",
    "ResolutionFailure",
    "ResolutionTarget",
    "Resolver",
    "ReviewError",
    "ReviewQueue",
    "ReviewService",
    "ReviewState",
    "ScoredCandidate",
    "UpstreamError",
    "UpstreamExtractionError",
    "UpstreamLookupError",
    "UpstreamWriteError",
    "ValidationError",
    "VenueEnrichmentResult",
    "VenueMatch",
    "artist_groups",
    "build_queue_item",
    "distinct_venues",
    "fill_gaps",
    "group_items",
    "group_key",
    "normalize_name",
    "venue_groups",
]

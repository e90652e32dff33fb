"""Review surface composed from the queue core.

``ReviewService`` ties extraction, resolution, the queue and enrichment
together. It holds no state of its own apart from background extraction jobs;
everything else lives in the registry and the queue store.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from gigqueue.config.review import ReviewConfig
from gigqueue.domain.model import EntityType, NamedEntity

from .apply import Applier
from .contracts import MatchExisting, QueueItem
from .enrichment import EnrichmentEngine, NewVenue, VenueEnrichmentResult, VenueMatch
from .errors import NotFoundError, ReviewError, UpstreamLookupError
from .jobs import ExtractionJob, IngestResult
from .normalize import group_key
from .queue import ReviewQueue
from .resolve import ResolutionFailure, Resolver

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence
    from types import TracebackType
    from uuid import UUID

    from gigqueue.domain.ports import CanonicalRegistry, Extractor, QueueStore

    from .candidates import Candidate
    from .contracts import (
        ApplyOutcome,
        CandidateResolution,
        EnrichmentCandidate,
        EnrichmentPatch,
        GroupDecision,
        ResolutionTarget,
    )
    from .enrichment import EnrichmentRun
    from .grouping import GroupMembership

log = logging.getLogger(__name__)

_ENRICHABLE_TARGETS: tuple[ResolutionTarget, ...] = (EntityType.VENUE, EntityType.ARTIST)


def distinct_venues(candidates: Sequence[Candidate]) -> list[Candidate]:
    """One candidate per venue group key, preferring one that carries a source URL."""

    chosen: dict[str, Candidate] = {}
    for candidate in candidates:
        key = group_key(candidate.venue_name)
        current = chosen.get(key)
        if current is None or (not current.source_url and candidate.source_url):
            chosen[key] = candidate
    return list(chosen.values())


def build_queue_item(resolution: CandidateResolution) -> QueueItem:
    candidate = resolution.candidate
    return QueueItem(
        candidate=candidate,
        venue_resolution=resolution.venue,
        artist_resolution=resolution.artist,
        venue_group_key=group_key(candidate.venue_name),
        artist_group_key=group_key(candidate.artist_name),
    )


@dataclass(slots=True, kw_only=True)
class ReviewService:
    extractor: Extractor
    registry: CanonicalRegistry
    store: QueueStore
    config: ReviewConfig = field(default_factory=ReviewConfig)
    resolver: Resolver = field(init=False)
    queue: ReviewQueue = field(init=False)
    enrichment: EnrichmentEngine = field(init=False)
    _jobs: dict[UUID, ExtractionJob] = field(default_factory=dict, init=False, repr=False)
    _futures: dict[UUID, Future[ExtractionJob]] = field(
        default_factory=dict, init=False, repr=False
    )
    _jobs_lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)
    _executor: ThreadPoolExecutor | None = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        self.resolver = Resolver(registry=self.registry, config=self.config)
        self.queue = ReviewQueue(store=self.store, applier=Applier(registry=self.registry))
        self.enrichment = EnrichmentEngine(
            registry=self.registry, threshold=self.config.auto_enrich_threshold
        )

    def __enter__(self) -> ReviewService:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    # --- Ingestion and extraction jobs ---------------------------------------

    def ingest(self, source_content: str) -> IngestResult:
        """Extract, resolve and queue the candidates found in ``source_content``.

        Extraction failures propagate and queue nothing. A candidate whose
        registry lookup fails is reported in ``failures`` while the rest of
        the batch is queued.
        """

        candidates = self.extractor(source_content)
        log.info("Extracted %s candidate(s)", len(candidates))

        items: list[QueueItem] = []
        failures: list[ResolutionFailure] = []
        for result in self.resolver.resolve_candidates(candidates):
            if isinstance(result, ResolutionFailure):
                failures.append(result)
            else:
                items.append(build_queue_item(result))

        queued = self.queue.enqueue(items)
        log.info("Queued %s item(s), %s unresolved", len(queued), len(failures))
        return IngestResult(
            extracted=len(candidates), items=tuple(queued), failures=tuple(failures)
        )

    def submit_extraction(self, source_content: str) -> ExtractionJob:
        """Run ``ingest`` in the background and return the pending job."""

        job = ExtractionJob()
        with self._jobs_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=1, thread_name_prefix="extraction"
                )
            self._jobs[job.job_id] = job
            self._futures[job.job_id] = self._executor.submit(
                self._run_job, job, source_content
            )
        log.info("Submitted extraction job %s", job.job_id)
        return job

    def job(self, job_id: UUID) -> ExtractionJob:
        with self._jobs_lock:
            job = self._jobs.get(job_id)
        if job is None:
            raise NotFoundError(f"Unknown extraction job {job_id}", reference=job_id)
        return job

    def wait_for_job(self, job_id: UUID, timeout: float | None = None) -> ExtractionJob:
        """Block until the job has finished and return its final state."""

        with self._jobs_lock:
            future = self._futures.get(job_id)
        if future is None:
            raise NotFoundError(f"Unknown extraction job {job_id}", reference=job_id)
        return future.result(timeout=timeout)

    def _run_job(self, job: ExtractionJob, source_content: str) -> ExtractionJob:
        try:
            result = self.ingest(source_content)
        except ReviewError as exc:
            log.warning("Extraction job %s failed: %s", job.job_id, exc)
            final = job.failed(exc)
        except Exception as exc:
            log.exception("Extraction job %s crashed", job.job_id)
            self._record_job(job.failed(exc))
            raise
        else:
            final = job.finished(result)
        self._record_job(final)
        return final

    def _record_job(self, job: ExtractionJob) -> None:
        with self._jobs_lock:
            self._jobs[job.job_id] = job

    # --- Queue decisions -----------------------------------------------------

    def list_queue(self) -> list[QueueItem]:
        return self.queue.list()

    def approve(self, queue_id: UUID) -> ApplyOutcome:
        return self.queue.approve(queue_id)

    def reject(self, queue_id: UUID) -> None:
        self.queue.reject(queue_id)

    def approve_group(
        self, group_key: str, *, target: ResolutionTarget | None = None
    ) -> GroupDecision:
        return self.queue.approve_group(group_key, target=target)

    def reject_group(
        self, group_key: str, *, target: ResolutionTarget | None = None
    ) -> GroupDecision:
        return self.queue.reject_group(group_key, target=target)

    def venue_groups(self) -> GroupMembership:
        return self.queue.groups(EntityType.VENUE)

    def artist_groups(self) -> GroupMembership:
        return self.queue.groups(EntityType.ARTIST)

    # --- Enrichment ----------------------------------------------------------

    def list_enrichment_candidates(self) -> list[EnrichmentCandidate]:
        """Gap-filling proposals carried by pending high-confidence matches.

        One entry per entity and field; the first pending item proposing a
        value wins.
        """

        proposals: dict[tuple[UUID, str], EnrichmentCandidate] = {}
        for item in self.queue.list():
            for target in _ENRICHABLE_TARGETS:
                resolution = item.resolution_for(target)
                if not isinstance(resolution, MatchExisting) or not resolution.enrichments:
                    continue
                entity = self.registry.get(target, resolution.matched_id)
                if not isinstance(entity, NamedEntity):
                    log.warning(
                        "Queue item %s matched missing %s %s",
                        item.queue_id,
                        target.value,
                        resolution.matched_id,
                    )
                    continue
                extracted = (
                    item.candidate.venue_name
                    if target is EntityType.VENUE
                    else item.candidate.artist_name
                )
                for field_name, value in resolution.enrichments.as_dict().items():
                    key = (entity.id, field_name)
                    if key in proposals and proposals[key].needs_enrichment:
                        continue
                    proposals[key] = self.enrichment.evaluate(
                        resolution,
                        entity,
                        extracted_name=extracted,
                        proposed_value=value,
                        field_name=field_name,
                    )
        return list(proposals.values())

    def enrich(
        self,
        entity_id: UUID,
        patch: EnrichmentPatch | Mapping[str, str | None],
        *,
        entity_type: EntityType = EntityType.VENUE,
    ) -> dict[str, str]:
        return self.enrichment.enrich(entity_type, entity_id, patch)

    def extract_venue_enrichments(self, source_content: str) -> VenueEnrichmentResult:
        """Match the venues named in ``source_content`` against the registry.

        Nothing is queued. Each distinct venue is resolved once: matched venues
        come back with a proposal for their social link, the rest as new
        venues. A venue whose lookup fails is reported in ``failures``.
        """

        candidates = self.extractor(source_content)
        venues = distinct_venues(candidates)
        matches: list[VenueMatch] = []
        new_venues: list[NewVenue] = []
        failures: list[ResolutionFailure] = []
        for candidate, result in zip(venues, self.resolver.resolve_venues(venues), strict=True):
            if isinstance(result, ResolutionFailure):
                failures.append(result)
            elif isinstance(result, MatchExisting):
                try:
                    match = self._venue_match(candidate, result)
                except UpstreamLookupError as exc:
                    failures.append(ResolutionFailure(candidate=candidate, error=exc))
                    continue
                if match is not None:
                    matches.append(match)
            else:
                new_venues.append(
                    NewVenue(
                        extracted_name=candidate.venue_name,
                        source_url=candidate.source_url,
                        resolution=result,
                    )
                )

        log.info(
            "Extracted %s candidate(s): %s matched venue(s), %s new, %s unresolved",
            len(candidates),
            len(matches),
            len(new_venues),
            len(failures),
        )
        return VenueEnrichmentResult(
            perfect_matches=tuple(matches),
            new_venues=tuple(new_venues),
            total_extracted=len(candidates),
            failures=tuple(failures),
        )

    def enrich_all(self, extraction: VenueEnrichmentResult | None = None) -> EnrichmentRun:
        """Apply the proposals of ``extraction``, or of the pending queue when omitted."""

        if extraction is not None:
            proposals = extraction.enrichment_candidates()
        else:
            proposals = [
                candidate
                for candidate in self.list_enrichment_candidates()
                if candidate.needs_enrichment
            ]
        return self.enrichment.enrich_all(proposals)

    def _venue_match(self, candidate: Candidate, resolution: MatchExisting) -> VenueMatch | None:
        entity = self.registry.get(EntityType.VENUE, resolution.matched_id)
        if not isinstance(entity, NamedEntity):
            log.warning(
                "Venue %s matched for %r no longer exists",
                resolution.matched_id,
                candidate.venue_name,
            )
            return None
        return VenueMatch(
            resolution=resolution,
            enrichment=self.enrichment.evaluate(
                resolution,
                entity,
                extracted_name=candidate.venue_name,
                proposed_value=candidate.source_url,
            ),
        )

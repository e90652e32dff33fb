"""Canonical identity resolution for candidate venue and artist names.

Responsibilities of this stage:
- look up an exact normalized-name match in the registry
- otherwise score every registry entity of the target type by string similarity
- classify the name as MATCH_EXISTING / NEEDS_REVIEW / CREATE_NEW

Out of scope for this stage:
- creating or modifying registry records
- queue bookkeeping
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from functools import partial
from typing import TYPE_CHECKING

from rapidfuzz import fuzz

from gigqueue.config.review import ReviewConfig
from gigqueue.domain.model import EntityType

from .contracts import (
    CandidateResolution,
    CreateNew,
    EnrichmentPatch,
    MatchExisting,
    NeedsReview,
    ScoredCandidate,
)
from .errors import UpstreamLookupError
from .normalize import normalize_name

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from gigqueue.config.review import MatchThresholds
    from gigqueue.domain.model import NamedEntity
    from gigqueue.domain.ports import CanonicalRegistry

    from .candidates import Candidate
    from .contracts import Resolution, ResolutionTarget

log = logging.getLogger(__name__)

_CREATE_NEW_BASE_CONFIDENCE = 0.6
_SOURCE_URL_SIGNAL = 0.2
_TIME_SIGNAL = 0.1
_NOTES_SIGNAL = 0.05


@dataclass(slots=True, kw_only=True)
class ResolutionFailure:
    """Candidate whose resolution failed; siblings are unaffected."""

    candidate: Candidate
    error: UpstreamLookupError


@dataclass(slots=True, kw_only=True)
class Resolver:
    """Resolve names against a registry snapshot without side effects."""

    registry: CanonicalRegistry
    config: ReviewConfig = field(default_factory=ReviewConfig)

    def resolve(
        self,
        name: str,
        target: ResolutionTarget,
        *,
        candidate: Candidate | None = None,
    ) -> Resolution:
        """Resolve ``name`` for ``target`` (venue or artist)."""

        key = normalize_name(name)
        if not key:
            return CreateNew(confidence=0.0, reasons=("blank_name",))

        thresholds = self._thresholds(target)
        try:
            exact = self.registry.find_by_name(target, key)
            if exact:
                return self._exact_match(exact, candidate=candidate)
            entities = self.registry.list_entities(target)
        except TimeoutError as exc:
            raise UpstreamLookupError(
                f"Registry lookup for {target.value} {name!r} timed out",
                operation=f"resolve:{target.value}",
            ) from exc

        scored = _score_entities(key, entities, noise_floor=thresholds.noise_floor)
        top = tuple(scored[: self.config.candidate_limit])
        if not scored:
            return self._create_new(name, candidate, (), reason="no_candidates_above_noise_floor")

        best = scored[0]
        if best.score >= thresholds.match:
            entity = next(entity for entity in entities if entity.id == best.entity_id)
            return MatchExisting(
                matched_id=best.entity_id,
                confidence=best.score,
                reasons=("fuzzy_match_above_match_threshold",),
                candidates=top,
                enrichments=_propose_enrichments(entity, candidate),
            )
        if best.score >= thresholds.review:
            return NeedsReview(
                confidence=best.score,
                candidates=top,
                reasons=("fuzzy_match_below_match_threshold",),
            )
        return self._create_new(name, candidate, top, reason="no_match_above_review_threshold")

    def resolve_candidate(self, candidate: Candidate) -> CandidateResolution:
        """Resolve both the venue and the artist reference of ``candidate``."""

        return CandidateResolution(
            candidate=candidate,
            venue=self.resolve_venue(candidate),
            artist=self.resolve(candidate.artist_name, EntityType.ARTIST, candidate=candidate),
        )

    def resolve_venue(self, candidate: Candidate) -> Resolution:
        return self.resolve(candidate.venue_name, EntityType.VENUE, candidate=candidate)

    def resolve_candidates(
        self,
        candidates: Sequence[Candidate],
    ) -> list[CandidateResolution | ResolutionFailure]:
        """Resolve a batch in parallel; results keep the input order."""

        return self._fan_out(self.resolve_candidate, candidates)

    def resolve_venues(
        self,
        candidates: Sequence[Candidate],
    ) -> list[Resolution | ResolutionFailure]:
        """Resolve only the venue reference of each candidate, in parallel."""

        return self._fan_out(self.resolve_venue, candidates)

    def _fan_out[R](
        self,
        resolve: Callable[[Candidate], R],
        candidates: Sequence[Candidate],
    ) -> list[R | ResolutionFailure]:
        if not candidates:
            return []
        workers = min(self.config.resolver_workers, len(candidates))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="resolver") as pool:
            return list(pool.map(partial(_isolated, resolve), candidates))

    def _thresholds(self, target: ResolutionTarget) -> MatchThresholds:
        if target is EntityType.VENUE:
            return self.config.venue
        return self.config.artist

    def _exact_match(
        self,
        exact: tuple[NamedEntity, ...],
        *,
        candidate: Candidate | None,
    ) -> MatchExisting:
        ordered = sorted(exact, key=lambda entity: str(entity.id))
        reasons = ["exact_normalized_match"]
        if len(ordered) > 1:
            reasons.append("multiple_exact_matches")
        return MatchExisting(
            matched_id=ordered[0].id,
            confidence=1.0,
            reasons=tuple(reasons),
            candidates=tuple(
                ScoredCandidate(
                    entity_id=entity.id,
                    name=entity.name,
                    score=1.0,
                    reasons=("exact_normalized_match",),
                )
                for entity in ordered[: self.config.candidate_limit]
            ),
            enrichments=_propose_enrichments(ordered[0], candidate),
        )

    def _create_new(
        self,
        name: str,
        candidate: Candidate | None,
        nearest: tuple[ScoredCandidate, ...],
        *,
        reason: str,
    ) -> CreateNew:
        return CreateNew(
            confidence=_signal_confidence(candidate),
            reasons=(reason,),
            candidates=nearest,
            suggestion=" ".join(name.split()),
        )


def _isolated[R](
    resolve: Callable[[Candidate], R],
    candidate: Candidate,
) -> R | ResolutionFailure:
    try:
        return resolve(candidate)
    except UpstreamLookupError as exc:
        log.warning(
            "Resolution failed for artist=%r venue=%r: %s",
            candidate.artist_name,
            candidate.venue_name,
            exc,
        )
        return ResolutionFailure(candidate=candidate, error=exc)


def _score_entities(
    key: str,
    entities: tuple[NamedEntity, ...],
    *,
    noise_floor: float,
) -> list[ScoredCandidate]:
    scored: list[ScoredCandidate] = []
    for entity in entities:
        other = entity.normalized_name or normalize_name(entity.name)
        score = round(fuzz.token_sort_ratio(key, other) / 100.0, 4)
        if score <= noise_floor:
            continue
        reasons = ("same_tokens",) if score >= 1.0 else ("similar_name",)
        scored.append(
            ScoredCandidate(entity_id=entity.id, name=entity.name, score=score, reasons=reasons)
        )
    scored.sort(key=lambda item: (-item.score, str(item.entity_id)))
    return scored


def _signal_confidence(candidate: Candidate | None) -> float:
    """Confidence that a brand-new record is warranted, from extraction signals."""

    if candidate is None:
        return _CREATE_NEW_BASE_CONFIDENCE
    confidence = _CREATE_NEW_BASE_CONFIDENCE
    if candidate.source_url:
        confidence += _SOURCE_URL_SIGNAL
    if candidate.time is not None:
        confidence += _TIME_SIGNAL
    if candidate.notes:
        confidence += _NOTES_SIGNAL
    return min(round(confidence, 4), 1.0)


def _propose_enrichments(
    entity: NamedEntity,
    candidate: Candidate | None,
) -> EnrichmentPatch | None:
    if candidate is None or entity.entity_type is not EntityType.VENUE:
        return None
    if not candidate.source_url or entity.field_value("social_url") is not None:
        return None
    return EnrichmentPatch(social_url=candidate.source_url)

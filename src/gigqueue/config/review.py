"""Thresholds and worker settings for the review queue."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from .env import env_float, env_int
from .errors import ConfigurationError

DEFAULT_VENUE_MATCH_THRESHOLD: Final[float] = 0.99
DEFAULT_ARTIST_MATCH_THRESHOLD: Final[float] = 0.95
DEFAULT_REVIEW_THRESHOLD: Final[float] = 0.75
DEFAULT_NOISE_FLOOR: Final[float] = 0.5
DEFAULT_AUTO_ENRICH_THRESHOLD: Final[float] = 0.99
DEFAULT_CANDIDATE_LIMIT: Final[int] = 3
DEFAULT_RESOLVER_WORKERS: Final[int] = 4


@dataclass(frozen=True, slots=True)
class MatchThresholds:
    """Score cut-offs for one target type.

    ``match`` is the lowest score resolved automatically, ``review`` the lowest
    score that still needs a human, ``noise_floor`` the lowest score reported
    as a candidate at all.
    """

    match: float
    review: float = DEFAULT_REVIEW_THRESHOLD
    noise_floor: float = DEFAULT_NOISE_FLOOR

    def __post_init__(self) -> None:
        if not 0.0 <= self.noise_floor <= self.review <= self.match <= 1.0:
            raise ConfigurationError(
                "Thresholds must satisfy 0 <= noise_floor <= review <= match <= 1: "
                f"noise_floor={self.noise_floor}, review={self.review}, match={self.match}"
            )


@dataclass(frozen=True, slots=True)
class ReviewConfig:
    venue: MatchThresholds = MatchThresholds(match=DEFAULT_VENUE_MATCH_THRESHOLD)
    artist: MatchThresholds = MatchThresholds(match=DEFAULT_ARTIST_MATCH_THRESHOLD)
    # Empirical cut-off carried over from the venue import tooling.
    auto_enrich_threshold: float = DEFAULT_AUTO_ENRICH_THRESHOLD
    candidate_limit: int = DEFAULT_CANDIDATE_LIMIT
    resolver_workers: int = DEFAULT_RESOLVER_WORKERS

    def __post_init__(self) -> None:
        if not 0.0 <= self.auto_enrich_threshold <= 1.0:
            raise ConfigurationError(
                f"auto_enrich_threshold must be within [0, 1]: {self.auto_enrich_threshold}"
            )
        if self.candidate_limit < 1:
            raise ConfigurationError("candidate_limit must be positive")
        if self.resolver_workers < 1:
            raise ConfigurationError("resolver_workers must be positive")


def get_review_config() -> ReviewConfig:
    review = env_float("GIGQUEUE_REVIEW_THRESHOLD", DEFAULT_REVIEW_THRESHOLD)
    noise_floor = env_float("GIGQUEUE_NOISE_FLOOR", DEFAULT_NOISE_FLOOR)
    return ReviewConfig(
        venue=MatchThresholds(
            match=env_float("GIGQUEUE_VENUE_MATCH_THRESHOLD", DEFAULT_VENUE_MATCH_THRESHOLD),
            review=review,
            noise_floor=noise_floor,
        ),
        artist=MatchThresholds(
            match=env_float("GIGQUEUE_ARTIST_MATCH_THRESHOLD", DEFAULT_ARTIST_MATCH_THRESHOLD),
            review=review,
            noise_floor=noise_floor,
        ),
        auto_enrich_threshold=env_float(
            "GIGQUEUE_AUTO_ENRICH_THRESHOLD", DEFAULT_AUTO_ENRICH_THRESHOLD
        ),
        candidate_limit=env_int("GIGQUEUE_CANDIDATE_LIMIT", DEFAULT_CANDIDATE_LIMIT),
        resolver_workers=env_int("GIGQUEUE_RESOLVER_WORKERS", DEFAULT_RESOLVER_WORKERS),
    )

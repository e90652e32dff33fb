from __future__ import annotations

import pytest

from gigqueue.config import (
    ConfigurationError,
    MatchThresholds,
    MissingConfigurationError,
    ReviewConfig,
    get_extractor_config,
    get_review_config,
)
from gigqueue.config.review import DEFAULT_ARTIST_MATCH_THRESHOLD, DEFAULT_VENUE_MATCH_THRESHOLD

_REVIEW_VARS = (
    "GIGQUEUE_REVIEW_THRESHOLD",
    "GIGQUEUE_NOISE_FLOOR",
    "GIGQUEUE_VENUE_MATCH_THRESHOLD",
    "GIGQUEUE_ARTIST_MATCH_THRESHOLD",
    "GIGQUEUE_AUTO_ENRICH_THRESHOLD",
    "GIGQUEUE_CANDIDATE_LIMIT",
    "GIGQUEUE_RESOLVER_WORKERS",
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (*_REVIEW_VARS, "EXTRACTOR_BASE_URL", "EXTRACTOR_API_KEY"):
        monkeypatch.delenv(name, raising=False)


def test_defaults_without_environment() -> None:
    config = get_review_config()

    assert config.venue.match == DEFAULT_VENUE_MATCH_THRESHOLD
    assert config.artist.match == DEFAULT_ARTIST_MATCH_THRESHOLD
    assert config == ReviewConfig()


def test_environment_overrides_thresholds(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GIGQUEUE_VENUE_MATCH_THRESHOLD", "0.9")
    monkeypatch.setenv("GIGQUEUE_REVIEW_THRESHOLD", "0.6")
    monkeypatch.setenv("GIGQUEUE_CANDIDATE_LIMIT", "5")

    config = get_review_config()

    assert config.venue == MatchThresholds(match=0.9, review=0.6)
    assert config.artist.review == 0.6
    assert config.candidate_limit == 5


def test_thresholds_must_be_ordered() -> None:
    with pytest.raises(ConfigurationError):
        MatchThresholds(match=0.7, review=0.8)


def test_unparseable_threshold_is_a_configuration_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GIGQUEUE_NOISE_FLOOR", "low")

    with pytest.raises(ConfigurationError, match="GIGQUEUE_NOISE_FLOOR"):
        get_review_config()


def test_extractor_requires_base_url() -> None:
    with pytest.raises(MissingConfigurationError, match="EXTRACTOR_BASE_URL"):
        get_extractor_config()


def test_extractor_api_key_becomes_bearer_header(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXTRACTOR_BASE_URL", "https://extractor.test")
    monkeypatch.setenv("EXTRACTOR_API_KEY", "secret")

    config = get_extractor_config()

    assert config.resilience.base_url == "https://extractor.test"
    assert config.resilience.default_headers == {"Authorization": "Bearer secret"}
    assert "POST" not in config.resilience.retry.methods

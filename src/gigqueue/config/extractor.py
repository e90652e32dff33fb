"""Extractor service configuration values."""

from __future__ import annotations

import os
from dataclasses import dataclass

from .env import env_float, env_int, require_env_var
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy

EXTRACTOR_TIMEOUT_SECONDS = 30.0
EXTRACTOR_POLL_INTERVAL_SECONDS = 5.0
EXTRACTOR_MAX_POLLS = 60
EXTRACTOR_RETRY_ATTEMPTS = 4


@dataclass(frozen=True, slots=True)
class ExtractorConfig:
    """Holds the extraction service endpoint and job polling budget."""

    base_url: str
    api_key: str | None
    resilience: ResilienceConfig
    poll_interval_seconds: float = EXTRACTOR_POLL_INTERVAL_SECONDS
    max_polls: int = EXTRACTOR_MAX_POLLS


def get_extractor_config(*, resilience: ResilienceConfig | None = None) -> ExtractorConfig:
    base_url = require_env_var("EXTRACTOR_BASE_URL")
    api_key = os.getenv("EXTRACTOR_API_KEY") or None
    headers = {"Authorization": f"Bearer {api_key}"} if api_key else None
    return ExtractorConfig(
        base_url=base_url,
        api_key=api_key,
        resilience=resilience
        or ResilienceConfig(
            name="extractor",
            base_url=base_url,
            timeout_seconds=env_float("EXTRACTOR_TIMEOUT_SECONDS", EXTRACTOR_TIMEOUT_SECONDS),
            retry=RetryPolicy(
                attempts=env_int("EXTRACTOR_RETRY_ATTEMPTS", EXTRACTOR_RETRY_ATTEMPTS)
            ),
            ratelimit=RateLimit(max_calls=2, per_seconds=1.0),
            default_headers=headers,
        ),
        poll_interval_seconds=env_float(
            "EXTRACTOR_POLL_INTERVAL_SECONDS", EXTRACTOR_POLL_INTERVAL_SECONDS
        ),
        max_polls=env_int("EXTRACTOR_MAX_POLLS", EXTRACTOR_MAX_POLLS),
    )

"""Public interface for the extraction service adapter."""

from __future__ import annotations

from .client import HttpExtractor
from .schema import ExtractedEvent, JobStatusResponse
from .translator import parse_candidate, parse_candidates

__all__ = [
    "ExtractedEvent",
    "HttpExtractor",
    "JobStatusResponse",
    "parse_candidate",
    "parse_candidates",
]

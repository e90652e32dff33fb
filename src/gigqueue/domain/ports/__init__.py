"""Ports consumed by the review queue core."""

from __future__ import annotations

from .extraction import Extractor
from .queue_store import QueueStore
from .registry import CanonicalRegistry

__all__ = ["CanonicalRegistry", "Extractor", "QueueStore"]

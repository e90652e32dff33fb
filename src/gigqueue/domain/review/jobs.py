"""Extraction job bookkeeping.

A job wraps one ``ingest`` call run in the background. It only ever moves
``pending -> done`` or ``pending -> failed``; a failed job queued nothing.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import StrEnum
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

if TYPE_CHECKING:
    from .contracts import QueueItem
    from .resolve import ResolutionFailure


class JobStatus(StrEnum):
    PENDING = "pending"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True, slots=True, kw_only=True)
class IngestResult:
    """Items queued by one ingest plus candidates whose resolution failed."""

    extracted: int = 0
    items: tuple[QueueItem, ...] = ()
    failures: tuple[ResolutionFailure, ...] = ()

    @property
    def queued(self) -> int:
        return len(self.items)


@dataclass(frozen=True, slots=True, kw_only=True)
class ExtractionJob:
    job_id: UUID = field(default_factory=uuid4)
    status: JobStatus = JobStatus.PENDING
    submitted_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    finished_at: datetime | None = None
    extracted: int = 0
    queued: int = 0
    failures: int = 0
    error: str | None = None

    def finished(self, result: IngestResult) -> ExtractionJob:
        return replace(
            self,
            status=JobStatus.DONE,
            finished_at=datetime.now(UTC),
            extracted=result.extracted,
            queued=result.queued,
            failures=len(result.failures),
        )

    def failed(self, error: BaseException) -> ExtractionJob:
        return replace(
            self,
            status=JobStatus.FAILED,
            finished_at=datetime.now(UTC),
            error=str(error) or type(error).__name__,
        )

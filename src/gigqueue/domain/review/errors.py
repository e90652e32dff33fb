"""Error taxonomy for the review queue.

``UpstreamError`` subclasses are retryable: the operation that raised them can
be repeated unchanged once the collaborator recovers. ``NotFoundError`` and
``AlreadyProcessedError`` usually mean the caller acted on a stale view.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from uuid import UUID

    from gigqueue.domain.model import EntityType

    from .contracts import ReviewState


class ReviewError(RuntimeError):
    """Base class for review queue failures."""

    retryable: bool = False


class ValidationError(ReviewError):
    """Raised when a candidate is incomplete or malformed."""

    def __init__(self, message: str, *, queue_id: UUID | None = None) -> None:
        super().__init__(message)
        self.queue_id = queue_id


class NotFoundError(ReviewError):
    """Raised when an operation references an unknown item, group or entity."""

    def __init__(self, message: str, *, reference: object | None = None) -> None:
        super().__init__(message)
        self.reference = reference


class AlreadyProcessedError(ReviewError):
    """Raised when a decision targets an item that is no longer pending.

    ``state`` is the terminal state, or ``APPLYING`` while another reviewer's
    approval of the item is still being written.
    """

    def __init__(self, queue_id: UUID, state: ReviewState) -> None:
        status = f"already {state.value}" if state.is_terminal else f"is {state.value}"
        super().__init__(f"Queue item {queue_id} {status}")
        self.queue_id = queue_id
        self.state = state


class ConflictError(ReviewError):
    """Raised when a concurrent creator won the race for a normalized name."""

    def __init__(
        self,
        *,
        entity_type: EntityType,
        normalized_name: str,
        existing_id: UUID | None = None,
    ) -> None:
        super().__init__(
            f"{entity_type.value} {normalized_name!r} already exists"
            + (f" as {existing_id}" if existing_id is not None else "")
        )
        self.entity_type = entity_type
        self.normalized_name = normalized_name
        self.existing_id = existing_id


class UpstreamError(ReviewError):
    """External collaborator failure; safe to retry."""

    retryable = True

    def __init__(self, message: str, *, operation: str) -> None:
        super().__init__(message)
        self.operation = operation


class UpstreamExtractionError(UpstreamError):
    """Raised when the extractor cannot produce candidates for a source."""

    def __init__(self, message: str, *, operation: str = "extract") -> None:
        super().__init__(message, operation=operation)


class UpstreamLookupError(UpstreamError):
    """Raised when the canonical registry cannot be queried."""

    def __init__(self, message: str, *, operation: str = "lookup") -> None:
        super().__init__(message, operation=operation)


class UpstreamWriteError(UpstreamError):
    """Raised when the canonical registry rejects or fails a write."""

    def __init__(self, message: str, *, operation: str = "write") -> None:
        super().__init__(message, operation=operation)

"""Port for the external candidate extractor."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from gigqueue.domain.review.candidates import Candidate


@runtime_checkable
class Extractor(Protocol):
    """Turn unstructured source content into candidates.

    Implementations raise ``UpstreamExtractionError`` for the whole batch; they
    never return a partial list on failure.
    """

    def __call__(self, source_content: str) -> list[Candidate]: ...

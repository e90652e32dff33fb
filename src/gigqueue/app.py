"""Application wiring for the review service."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from gigqueue.adapters.extractor import HttpExtractor
from gigqueue.adapters.sqlalchemy import (
    SqlAlchemyQueueStore,
    SqlAlchemyRegistry,
    is_started,
    startup,
)
from gigqueue.config import get_review_config
from gigqueue.domain.review import ReviewService

if TYPE_CHECKING:
    from gigqueue.config import ReviewConfig
    from gigqueue.domain.ports import CanonicalRegistry, Extractor, QueueStore
    from gigqueue.domain.review import Candidate

log = getLogger(__name__)


def _deferred_http_extractor(source_content: str) -> list[Candidate]:
    # Extractor settings are only required by commands that extract.
    return HttpExtractor()(source_content)


def build_review_service(
    *,
    extractor: Extractor | None = None,
    registry: CanonicalRegistry | None = None,
    store: QueueStore | None = None,
    config: ReviewConfig | None = None,
) -> ReviewService:
    """Assemble a ``ReviewService`` from the configured adapters.

    Omitted collaborators fall back to the SQLAlchemy registry and queue store
    (starting the adapter on first use) and the HTTP extractor.
    """

    if (registry is None or store is None) and not is_started():
        startup()
    effective_config = config or get_review_config()
    log.info(
        "Building review service: venue_match=%s, artist_match=%s, review=%s",
        effective_config.venue.match,
        effective_config.artist.match,
        effective_config.venue.review,
    )
    return ReviewService(
        extractor=extractor or _deferred_http_extractor,
        registry=registry or SqlAlchemyRegistry(),
        store=store or SqlAlchemyQueueStore(),
        config=effective_config,
    )

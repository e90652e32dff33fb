from __future__ import annotations

from uuid import uuid4

import pytest

from gigqueue.domain.review import (
    AlreadyProcessedError,
    CreateNew,
    EnrichmentPatch,
    MatchExisting,
    NeedsReview,
    ReviewState,
    ScoredCandidate,
    ValidationError,
)
from tests.helpers.review import make_candidate, make_item


def test_confidence_must_be_within_unit_interval() -> None:
    with pytest.raises(ValueError, match="Confidence"):
        CreateNew(confidence=1.2)
    with pytest.raises(ValueError, match="Confidence"):
        MatchExisting(matched_id=uuid4(), confidence=-0.1)


def test_needs_review_requires_candidates() -> None:
    with pytest.raises(ValueError, match="candidate"):
        NeedsReview(confidence=0.8, candidates=())


def test_only_match_existing_carries_a_matched_id() -> None:
    matched_id = uuid4()
    candidate = ScoredCandidate(entity_id=matched_id, name="The Snug", score=0.8)

    assert MatchExisting(matched_id=matched_id, confidence=1.0).matched_id == matched_id
    assert CreateNew(confidence=0.6).matched_id is None
    assert NeedsReview(confidence=0.8, candidates=(candidate,)).matched_id is None


def test_enrichment_patch_drops_blank_values() -> None:
    patch = EnrichmentPatch(website="", social_url="https://facebook.com/thesnug")

    assert patch.as_dict() == {"social_url": "https://facebook.com/thesnug"}
    assert bool(patch)
    assert not EnrichmentPatch()


def test_pending_item_transitions_to_terminal_state() -> None:
    item = make_item()

    approved = item.transition(ReviewState.APPROVED)

    assert approved.state is ReviewState.APPROVED
    assert item.state is ReviewState.PENDING
    assert approved.queue_id == item.queue_id


def test_terminal_item_cannot_transition_again() -> None:
    rejected = make_item().transition(ReviewState.REJECTED)

    with pytest.raises(AlreadyProcessedError) as excinfo:
        rejected.transition(ReviewState.APPROVED)

    assert excinfo.value.state is ReviewState.REJECTED


@pytest.mark.parametrize("state", [ReviewState.PENDING, ReviewState.APPLYING])
def test_item_only_transitions_to_a_terminal_state(state: ReviewState) -> None:
    with pytest.raises(ValueError, match=state.value):
        make_item().transition(state)


def test_in_flight_state_is_not_terminal() -> None:
    error = AlreadyProcessedError(uuid4(), ReviewState.APPLYING)

    assert not ReviewState.APPLYING.is_terminal
    assert str(error).endswith("is applying")


def test_candidate_without_date_fails_validation() -> None:
    queue_id = uuid4()
    candidate = make_candidate(on=None)

    with pytest.raises(ValidationError) as excinfo:
        candidate.require_date(queue_id=queue_id)

    assert excinfo.value.queue_id == queue_id

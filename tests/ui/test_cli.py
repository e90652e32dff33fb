from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from gigqueue.adapters.memory import InMemoryQueueStore, InMemoryRegistry
from gigqueue.domain.model import EntityType, Venue
from gigqueue.domain.review import ReviewService
from gigqueue.ui import cli as cli_module
from tests.helpers.review import FailingExtractor, make_candidate, make_service

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def service(monkeypatch: pytest.MonkeyPatch) -> ReviewService:
    active = make_service(
        candidates=[
            make_candidate("Band A", "The Snug, Stoke"),
            make_candidate("Band B", "The Snug Stoke"),
        ],
        registry=InMemoryRegistry([Venue(name="Other Venue")]),
    )
    monkeypatch.setattr(cli_module, "build_review_service", lambda: active)
    return active


def test_ingest_reads_file_and_reports_counts(
    service: ReviewService, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    source = tmp_path / "listings.html"
    source.write_text("<html>listings</html>", encoding="utf-8")

    cli_module.main(["ingest", str(source)])

    assert "queued 2, unresolved 0" in capsys.readouterr().out
    assert len(service.list_queue()) == 2


def test_queue_list_prints_each_pending_item(
    service: ReviewService, capsys: pytest.CaptureFixture[str]
) -> None:
    service.ingest("<html/>")

    cli_module.main(["queue", "list"])

    lines = capsys.readouterr().out.strip().splitlines()
    assert len(lines) == 2
    assert all("venue=CREATE_NEW" in line for line in lines)


def test_approve_group_by_venue_key(
    service: ReviewService, capsys: pytest.CaptureFixture[str]
) -> None:
    service.ingest("<html/>")

    cli_module.main(["queue", "approve-group", "the snug stoke", "--venue"])

    assert "2 succeeded, 0 failed" in capsys.readouterr().out
    assert service.list_queue() == []
    assert service.registry.find_by_name(EntityType.VENUE, "the snug stoke")


def test_second_decision_is_not_an_error(service: ReviewService) -> None:
    result = service.ingest("<html/>")
    queue_id = str(result.items[0].queue_id)
    cli_module.main(["queue", "reject", queue_id])

    cli_module.main(["queue", "approve", queue_id])

    assert len(service.list_queue()) == 1


def test_invalid_queue_id_exits_with_usage_error(service: ReviewService) -> None:
    _ = service
    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["queue", "approve", "not-a-uuid"])

    assert excinfo.value.code == 2


def test_extraction_failure_exits_with_retryable_error(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    failing = ReviewService(
        extractor=FailingExtractor(),
        registry=InMemoryRegistry(),
        store=InMemoryQueueStore(),
    )
    monkeypatch.setattr(cli_module, "build_review_service", lambda: failing)
    source = tmp_path / "listings.html"
    source.write_text("<html/>", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["ingest", str(source)])

    assert excinfo.value.code == 1
    assert failing.list_queue() == []


def test_conflicting_target_flags_are_rejected(service: ReviewService) -> None:
    _ = service
    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["queue", "groups", "--venue", "--artist"])

    assert excinfo.value.code == 2


def test_enrichment_extract_reports_and_applies_venue_proposals(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    snug = Venue(name="The Snug, Stoke")
    registry = InMemoryRegistry([snug])
    active = make_service(
        candidates=[
            make_candidate("Band A", "The Snug, Stoke", source_url="https://facebook.com/snug"),
            make_candidate("Band B", "Brand New Place"),
        ],
        registry=registry,
    )
    monkeypatch.setattr(cli_module, "build_review_service", lambda: active)
    source = tmp_path / "venues.html"
    source.write_text("<html>venues</html>", encoding="utf-8")

    cli_module.main(["enrichment", "extract", str(source), "--apply"])

    out = capsys.readouterr().out
    assert "extracted 2: 1 matched, 1 new, 0 unresolved" in out
    assert f"* {snug.id} 'The Snug, Stoke'" in out
    assert "+ 'Brand New Place' CREATE_NEW" in out
    assert "enriched 1, skipped 0, failed 0" in out
    stored = registry.get(EntityType.VENUE, snug.id)
    assert isinstance(stored, Venue)
    assert stored.social_url == "https://facebook.com/snug"
    assert active.list_queue() == []

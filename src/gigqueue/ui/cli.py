from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING
from uuid import UUID

from dotenv import load_dotenv

from gigqueue.app import build_review_service
from gigqueue.config import ConfigurationError, configure_logging
from gigqueue.domain.model import EntityType
from gigqueue.domain.review import (
    AlreadyProcessedError,
    NotFoundError,
    ReviewError,
    UpstreamError,
)

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from gigqueue.domain.review import (
        EnrichmentRun,
        GroupDecision,
        QueueItem,
        Resolution,
        ResolutionTarget,
        ReviewService,
        VenueEnrichmentResult,
    )

log = logging.getLogger(__name__)


def _add_target_flags(parser: argparse.ArgumentParser) -> None:
    target = parser.add_mutually_exclusive_group()
    target.add_argument(
        "--venue",
        dest="target",
        action="store_const",
        const=EntityType.VENUE,
        help="Only match venue group keys",
    )
    target.add_argument(
        "--artist",
        dest="target",
        action="store_const",
        const=EntityType.ARTIST,
        help="Only match artist group keys",
    )


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Review extracted gig listings")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    ingest = subparsers.add_parser("ingest", help="Extract listings from a file and queue them")
    ingest.add_argument("path", type=Path, help="HTML or text file with gig listings")

    queue = subparsers.add_parser("queue", help="Inspect and decide queued items")
    queue_sub = queue.add_subparsers(dest="queue_command", required=True)
    queue_sub.add_parser("list", help="List pending items")
    groups = queue_sub.add_parser("groups", help="List pending items grouped by name")
    _add_target_flags(groups)
    for name, help_text in (("approve", "Approve one item"), ("reject", "Reject one item")):
        decide = queue_sub.add_parser(name, help=help_text)
        decide.add_argument("queue_id", type=str, help="Queue item id")
    for name, help_text in (
        ("approve-group", "Approve every pending item in a group"),
        ("reject-group", "Reject every pending item in a group"),
    ):
        decide_group = queue_sub.add_parser(name, help=help_text)
        decide_group.add_argument("group_key", type=str, help="Normalized venue or artist name")
        _add_target_flags(decide_group)

    enrichment = subparsers.add_parser("enrichment", help="Fill gaps on matched records")
    enrichment_sub = enrichment.add_subparsers(dest="enrichment_command", required=True)
    enrichment_sub.add_parser("list", help="List enrichment proposals")
    enrichment_sub.add_parser("apply-all", help="Apply every proposal that needs enrichment")
    extract = enrichment_sub.add_parser(
        "extract", help="Match the venues in a file against the registry without queueing"
    )
    extract.add_argument("path", type=Path, help="HTML or text file with gig listings")
    extract.add_argument(
        "--apply", action="store_true", help="Fill the gaps proposed for matched venues"
    )

    return parser.parse_args(list(argv))


def _parse_uuid(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError as exc:
        raise ValueError(f"Invalid queue id: {value}") from exc


def _describe(resolution: Resolution) -> str:
    text = f"{resolution.action.value}({resolution.confidence:.2f})"
    if resolution.matched_id is not None:
        text += f"->{resolution.matched_id}"
    return text


def _print_item(item: QueueItem) -> None:
    candidate = item.candidate
    date_text = candidate.date.isoformat() if candidate.date else "????-??-??"
    print(
        f"{item.queue_id}  {date_text}  {candidate.artist_name} @ {candidate.venue_name}  "
        f"venue={_describe(item.venue_resolution)} "
        f"artist={_describe(item.artist_resolution)}"
    )


def _print_decision(decision: GroupDecision) -> None:
    print(
        f"{decision.state.value} group {decision.group_key!r}: "
        f"{len(decision.succeeded)} succeeded, {len(decision.failed)} failed"
    )
    for queue_id, error in decision.failed.items():
        print(f"  {queue_id}: {error}")


def _run_queue(service: ReviewService, args: argparse.Namespace) -> None:
    command = args.queue_command
    target: ResolutionTarget | None = getattr(args, "target", None)
    if command == "list":
        for item in service.list_queue():
            _print_item(item)
    elif command == "groups":
        targets = (target,) if target is not None else (EntityType.VENUE, EntityType.ARTIST)
        for each in targets:
            membership = (
                service.venue_groups() if each is EntityType.VENUE else service.artist_groups()
            )
            for key, members in membership.items():
                print(f"{each.value}\t{key}\t{len(members)}")
    elif command == "approve":
        outcome = service.approve(_parse_uuid(args.queue_id))
        print(
            f"approved: venue={outcome.venue_id} artist={outcome.artist_id} "
            f"event={outcome.event_id}"
        )
    elif command == "reject":
        service.reject(_parse_uuid(args.queue_id))
        print(f"rejected {args.queue_id}")
    elif command == "approve-group":
        _print_decision(service.approve_group(args.group_key, target=target))
    elif command == "reject-group":
        _print_decision(service.reject_group(args.group_key, target=target))
    else:
        raise ValueError(f"Unsupported queue command: {command}")


def _print_run(run: EnrichmentRun) -> None:
    print(
        f"enriched {len(run.enriched)}, skipped {len(run.skipped)}, "
        f"failed {len(run.failed)}"
    )
    for entity_id, error in run.failed.items():
        print(f"  {entity_id}: {error}")


def _print_venue_extraction(result: VenueEnrichmentResult) -> None:
    print(
        f"extracted {result.total_extracted}: {len(result.perfect_matches)} matched, "
        f"{len(result.new_venues)} new, {len(result.failures)} unresolved"
    )
    for match in result.perfect_matches:
        marker = "*" if match.needs_enrichment else " "
        proposal = match.enrichment
        print(
            f"{marker} {match.venue_id} {proposal.extracted_name!r}: "
            f"{proposal.current_value or '-'} -> {proposal.proposed_value or '-'}"
        )
    for venue in result.new_venues:
        print(f"+ {venue.extracted_name!r} {_describe(venue.resolution)}")
    for failure in result.failures:
        print(f"! {failure.candidate.venue_name!r}: {failure.error}")


def _run_enrichment(service: ReviewService, args: argparse.Namespace) -> None:
    if args.enrichment_command == "list":
        for candidate in service.list_enrichment_candidates():
            marker = "*" if candidate.needs_enrichment else " "
            print(
                f"{marker} {candidate.entity_type.value} {candidate.entity_id} "
                f"{candidate.extracted_name!r} {candidate.field}: "
                f"{candidate.current_value or '-'} -> {candidate.proposed_value or '-'}"
            )
    elif args.enrichment_command == "apply-all":
        _print_run(service.enrich_all())
    elif args.enrichment_command == "extract":
        result = service.extract_venue_enrichments(args.path.read_text(encoding="utf-8"))
        _print_venue_extraction(result)
        if args.apply:
            _print_run(service.enrich_all(result))
    else:
        raise ValueError(f"Unsupported enrichment command: {args.enrichment_command}")


def _dispatch(service: ReviewService, args: argparse.Namespace) -> None:
    if args.command == "ingest":
        result = service.ingest(args.path.read_text(encoding="utf-8"))
        print(f"queued {result.queued}, unresolved {len(result.failures)}")
        for failure in result.failures:
            print(
                f"  {failure.candidate.artist_name} @ {failure.candidate.venue_name}: "
                f"{failure.error}"
            )
    elif args.command == "queue":
        _run_queue(service, args)
    elif args.command == "enrichment":
        _run_enrichment(service, args)
    else:
        raise ValueError(f"Unsupported command: {args.command}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else None)

    try:
        with build_review_service() as service:
            _dispatch(service, parsed_args)
    except (AlreadyProcessedError, NotFoundError) as exc:
        log.info("Nothing to do: %s", exc)
    except UpstreamError as exc:
        log.error("Retryable failure during %s: %s", exc.operation, exc)  # noqa: TRY400
        sys.exit(1)
    except ReviewError as exc:
        log.error("Review failed: %s", exc)  # noqa: TRY400
        sys.exit(1)
    except (ConfigurationError, ValueError, OSError) as exc:
        log.error("Error: %s", exc)  # noqa: TRY400
        sys.exit(2)
    except Exception:
        log.exception("Fatal error")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()

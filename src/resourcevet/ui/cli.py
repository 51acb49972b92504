# ruff: noqa: T201

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING
from uuid import UUID

from dotenv import load_dotenv

from resourcevet.adapters.record_source import filter_by_state, load_records
from resourcevet.adapters.sqlalchemy import Database
from resourcevet.app import (
    PublisherKind,
    failed_records,
    get_job,
    import_records,
    list_jobs,
    plan_import,
    request_cancel,
    request_pause,
    resume_import,
)
from resourcevet.config import configure_logging, get_import_defaults
from resourcevet.domain.errors import UnknownSourceError
from resourcevet.domain.field_mapping import get_source_mapping, list_sources
from resourcevet.domain.importing import ImportConfig

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from resourcevet.app import ImportOutcome
    from resourcevet.domain.model import ImportJob

log = logging.getLogger(__name__)

SAMPLE_CHARS = 500


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Import and verify social-service resources")
    subparsers = parser.add_subparsers(dest="command", required=True)

    imp = subparsers.add_parser("import", help="Import records from a CSV or JSON file")
    imp.add_argument("--source", required=True, help="Source mapping name (see `sources`)")
    imp.add_argument("--file", required=True, help="Path to a .csv or .json record file")
    imp.add_argument("--state", help="Only import records whose State/state matches")
    imp.add_argument(
        "--batch-size",
        type=int,
        default=None,
        help="Records per batch (defaults to config)",
    )
    imp.add_argument("--skip-geocoding", action="store_true", help="Never geocode records")
    imp.add_argument(
        "--dry-run",
        action="store_true",
        help="Print what would be imported without creating a job",
    )
    imp.add_argument("--source-url", help="Where the record file was downloaded from")
    imp.add_argument("--description", help="Free-text description of the source")
    imp.add_argument("--created-by", help="Operator name stored on the job")
    _add_publisher_argument(imp)

    resume = subparsers.add_parser(
        "resume",
        help="Resume a paused or failed job over the same record file",
    )
    resume.add_argument("--job-id", required=True)
    resume.add_argument("--file", required=True, help="The record file the job started with")
    _add_publisher_argument(resume)

    retry = subparsers.add_parser(
        "retry",
        help="Start a new job over the records a previous job left in error",
    )
    retry.add_argument("--job-id", required=True)
    _add_publisher_argument(retry)

    pause = subparsers.add_parser(
        "pause",
        help="Pause a running job at its next batch boundary (also marks an "
        "interrupted job resumable)",
    )
    pause.add_argument("--job-id", required=True)

    cancel = subparsers.add_parser("cancel", help="Cancel a job at its next batch boundary")
    cancel.add_argument("--job-id", required=True)

    status = subparsers.add_parser("status", help="Show a job's progress")
    status.add_argument("--job-id", help="Job to show (defaults to the most recent jobs)")

    subparsers.add_parser("sources", help="List configured source mappings")

    return parser.parse_args(list(argv))


def _add_publisher_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--publisher",
        type=PublisherKind,
        choices=list(PublisherKind),
        default=PublisherKind.LOCAL,
        help="Verify locally or post batches to the publication endpoint (default: %(default)s)",
    )


def _parse_uuid(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError as exc:
        raise ValueError(f"Invalid UUID: {value}") from exc


def _build_import_config(args: argparse.Namespace) -> ImportConfig:
    get_source_mapping(args.source)
    batch_size = args.batch_size or get_import_defaults().batch_size
    return ImportConfig(
        source_name=args.source,
        source_url=args.source_url,
        source_description=args.description,
        filters={"state": args.state, "nationwide": not args.state},
        batch_size=batch_size,
        skip_geocoding=args.skip_geocoding,
        created_by=args.created_by,
    )


def _print_plan(config: ImportConfig, record_count: int) -> None:
    plan = plan_import(record_count, config.batch_size)
    mapping = get_source_mapping(config.source_name)
    print("DRY RUN - no import will occur")
    print("Would import:")
    print(f"  - Source: {mapping.display_name}")
    print(f"  - Records: {plan.records}")
    print(f"  - Batch size: {plan.batch_size}")
    print(f"  - Total batches: {plan.batches}")
    print(f"  - Estimated time: {plan.estimated_minutes} minutes")


def _print_job(job: ImportJob) -> None:
    print(f"Job {job.id} [{job.status}] {job.source_name}")
    print(
        f"  processed {job.processed_records}/{job.total_records}: "
        f"{job.successful_records} approved, {job.flagged_records} flagged, "
        f"{job.rejected_records} rejected, {job.skipped_records} skipped, "
        f"{job.failed_records} failed"
    )
    if job.checkpoint is not None:
        print(f"  checkpoint at record {job.checkpoint.last_processed_index}")
    for error in job.error_log[-5:]:
        batch = f" (batch {error.batch_index})" if error.batch_index is not None else ""
        print(f"  error {error.timestamp.isoformat()}{batch}: {error.error}")


def _report(outcome: ImportOutcome) -> None:
    log.info("Job %s ended %s", outcome.job_id, outcome.status)
    print(f"Job {outcome.job_id}: {outcome.status}")


def _run_import(args: argparse.Namespace, config: ImportConfig) -> None:
    records = filter_by_state(load_records(args.file), args.state)
    if args.state:
        log.info("Filtered to %d records for state %s", len(records), args.state)
    if not records:
        raise ValueError("No records found to import")
    log.debug("Sample record: %s", str(records[0])[:SAMPLE_CHARS])

    if args.dry_run:
        _print_plan(config, len(records))
        return

    database = Database.startup()
    try:
        outcome = asyncio.run(
            import_records(database, config, records, publisher=args.publisher)
        )
    finally:
        database.dispose()
    _report(outcome)


def _run_resume(args: argparse.Namespace) -> None:
    job_id = _parse_uuid(args.job_id)
    records = load_records(args.file)
    database = Database.startup()
    try:
        job = get_job(database, job_id)
        state = job.settings.filters.get("state") if job is not None else None
        if isinstance(state, str):
            records = filter_by_state(records, state)
        outcome = asyncio.run(resume_import(database, job_id, records, publisher=args.publisher))
    finally:
        database.dispose()
    _report(outcome)


def _run_retry(args: argparse.Namespace) -> None:
    job_id = _parse_uuid(args.job_id)
    database = Database.startup()
    try:
        job = get_job(database, job_id)
        if job is None:
            raise ValueError(f"Import job {job_id} not found")
        records = failed_records(database, job_id)
        if not records:
            print(f"Job {job_id} has no records in error")
            return
        config = ImportConfig.from_job(job)
        outcome = asyncio.run(import_records(database, config, records, publisher=args.publisher))
    finally:
        database.dispose()
    _report(outcome)


def _run_control(args: argparse.Namespace) -> None:
    job_id = _parse_uuid(args.job_id)
    database = Database.startup()
    try:
        if args.command == "pause":
            request_pause(database, job_id)
        else:
            request_cancel(database, job_id)
    finally:
        database.dispose()
    print(f"Job {job_id}: {args.command} requested")


def _run_status(args: argparse.Namespace) -> None:
    database = Database.startup()
    try:
        if args.job_id:
            job = get_job(database, _parse_uuid(args.job_id))
            if job is None:
                raise ValueError(f"Import job {args.job_id} not found")
            jobs = [job]
        else:
            jobs = list_jobs(database)
    finally:
        database.dispose()
    if not jobs:
        print("No import jobs yet")
    for job in jobs:
        _print_job(job)


def _run_sources() -> None:
    for name, display_name in list_sources():
        mapping = get_source_mapping(name)
        geocode = ", geocoded" if mapping.requires_geocoding else ""
        print(f"{name:<28} {display_name} [{mapping.verification_level}{geocode}]")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)

    try:
        config = _build_import_config(parsed_args) if parsed_args.command == "import" else None
    except (ValueError, UnknownSourceError):
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        if config is not None:
            _run_import(parsed_args, config)
        elif parsed_args.command == "resume":
            _run_resume(parsed_args)
        elif parsed_args.command == "retry":
            _run_retry(parsed_args)
        elif parsed_args.command in {"pause", "cancel"}:
            _run_control(parsed_args)
        elif parsed_args.command == "status":
            _run_status(parsed_args)
        elif parsed_args.command == "sources":
            _run_sources()
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except Exception:
        log.exception("Fatal error during %s", parsed_args.command)
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C); `resourcevet resume` continues from the last checkpoint")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()

"""Application orchestration entry points."""

from __future__ import annotations

import math
from contextlib import AsyncExitStack, asynccontextmanager
from dataclasses import dataclass
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING, Any

from resourcevet.adapters.google_maps import build_google_maps
from resourcevet.adapters.openai import OpenAIJudgmentService
from resourcevet.adapters.publication import HttpPublicationEndpoint
from resourcevet.adapters.referral211 import Referral211CrossReference
from resourcevet.adapters.sqlalchemy import Database
from resourcevet.adapters.website import HttpWebsiteInspector
from resourcevet.config import (
    get_import_defaults,
    get_llm_config,
    get_publication_config,
    get_referral211_config,
    get_website_config,
    optional_env_var,
)
from resourcevet.domain.errors import JobFatalError
from resourcevet.domain.field_mapping import FieldMapper
from resourcevet.domain.importing import ImportConfig, ImportOrchestrator, cancel_job, pause_job
from resourcevet.domain.importing.publisher import VerifyingPublisher
from resourcevet.domain.model import RecordStatus
from resourcevet.domain.verification import CostTracker, VerificationAgent
from resourcevet.services import UsageLogWriter, VerificationWorkerPool

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Sequence
    from uuid import UUID

    from resourcevet.domain.model import ImportJob, JobStatus
    from resourcevet.domain.ports import (
        CrossReferenceService,
        GeocodingService,
        JudgmentService,
        PublicationEndpoint,
    )

log = getLogger(__name__)

# rough wall-clock cost of verifying one record, used for dry-run estimates
SECONDS_PER_RECORD = 2


class PublisherKind(StrEnum):
    LOCAL = "local"
    HTTP = "http"


@dataclass(frozen=True, slots=True)
class ImportPlan:
    records: int
    batch_size: int
    batches: int
    estimated_minutes: int


@dataclass(frozen=True, slots=True)
class ImportOutcome:
    job_id: UUID
    status: JobStatus


@dataclass(slots=True)
class Pipeline:
    publisher: PublicationEndpoint
    geocoder: GeocodingService | None


def plan_import(record_count: int, batch_size: int) -> ImportPlan:
    return ImportPlan(
        records=record_count,
        batch_size=batch_size,
        batches=math.ceil(record_count / batch_size) if record_count else 0,
        estimated_minutes=math.ceil(record_count * SECONDS_PER_RECORD / 60),
    )


@asynccontextmanager
async def open_pipeline(
    database: Database,
    *,
    publisher: PublisherKind = PublisherKind.LOCAL,
    geocoding: bool = True,
) -> AsyncIterator[Pipeline]:
    """Build the adapters a job needs and close them when the block exits.

    The local publisher verifies candidates in-process and needs every
    verification collaborator; the HTTP publisher only needs a geocoder, and
    only when the job geocodes.
    """

    async with AsyncExitStack() as stack:
        geocoder: GeocodingService | None = None
        if publisher is PublisherKind.HTTP:
            if geocoding:
                maps_client, geocoder, _ = build_google_maps()
                stack.push_async_callback(maps_client.aclose)
            endpoint = HttpPublicationEndpoint(get_publication_config())
            yield Pipeline(publisher=endpoint, geocoder=geocoder)
            return

        maps_client, google_geocoder, places = build_google_maps()
        stack.push_async_callback(maps_client.aclose)
        cross_references: list[CrossReferenceService] = [places]
        if optional_env_var("REFERRAL211_API_KEY"):
            referral = Referral211CrossReference(get_referral211_config())
            stack.push_async_callback(referral.aclose)
            cross_references.append(referral)

        judgment: JudgmentService | None = None
        if optional_env_var("OPENAI_API_KEY"):
            openai_service = OpenAIJudgmentService(get_llm_config())
            stack.push_async_callback(openai_service.aclose)
            judgment = openai_service
        else:
            log.warning("OPENAI_API_KEY not set; content checks and URL repair are disabled")

        inspector = HttpWebsiteInspector(get_website_config())
        stack.push_async_callback(inspector.aclose)

        defaults = get_import_defaults()
        usage_writer = await stack.enter_async_context(
            UsageLogWriter(
                database.usage_uow,
                max_queue_size=defaults.usage_log_queue_size,
                flush_size=defaults.usage_log_flush_size,
            )
        )
        agent = VerificationAgent(
            probe=inspector,
            content_fetcher=inspector,
            geocoder=google_geocoder,
            judgment=judgment,
            cross_references=cross_references,
            cost_tracker=CostTracker(sink=usage_writer),
        )
        pool = await stack.enter_async_context(
            VerificationWorkerPool(
                agent,
                workers=defaults.verification_workers,
                max_queue_size=defaults.verification_queue_size,
            )
        )
        yield Pipeline(
            publisher=VerifyingPublisher(pool, database.publication_uow),
            geocoder=google_geocoder if geocoding else None,
        )


async def import_records(
    database: Database,
    config: ImportConfig,
    records: Sequence[dict[str, Any]],
    *,
    publisher: PublisherKind = PublisherKind.LOCAL,
) -> ImportOutcome:
    """Create a job for ``records`` and run it to completion, pause or failure."""

    mapper = FieldMapper(config.source_name)
    geocoding = mapper.requires_geocoding and not config.skip_geocoding
    log.info(
        "Starting import: source=%s, records=%d, batch_size=%d, publisher=%s",
        config.source_name,
        len(records),
        config.batch_size,
        publisher,
    )
    async with open_pipeline(database, publisher=publisher, geocoding=geocoding) as pipeline:
        orchestrator = ImportOrchestrator(
            config,
            uow_factory=database.import_uow,
            publisher=pipeline.publisher,
            mapper=mapper,
            geocoder=pipeline.geocoder,
        )
        job_id = await orchestrator.create_job(len(records))
        status = await orchestrator.run(records)
    log.info("Import job %s finished with status %s", job_id, status)
    return ImportOutcome(job_id=job_id, status=status)


async def resume_import(
    database: Database,
    job_id: UUID,
    records: Sequence[dict[str, Any]],
    *,
    publisher: PublisherKind = PublisherKind.LOCAL,
) -> ImportOutcome:
    job = get_job(database, job_id)
    if job is None:
        raise JobFatalError(f"Import job {job_id} not found")

    config = ImportConfig.from_job(job)
    mapper = FieldMapper(config.source_name)
    geocoding = mapper.requires_geocoding and not config.skip_geocoding
    async with open_pipeline(database, publisher=publisher, geocoding=geocoding) as pipeline:
        orchestrator = ImportOrchestrator(
            config,
            uow_factory=database.import_uow,
            publisher=pipeline.publisher,
            mapper=mapper,
            geocoder=pipeline.geocoder,
            job_id=job_id,
        )
        status = await orchestrator.resume(records)
    log.info("Import job %s finished with status %s", job_id, status)
    return ImportOutcome(job_id=job_id, status=status)


def failed_records(database: Database, job_id: UUID) -> list[dict[str, Any]]:
    """Raw payloads of the records a job left in ``error``, for a retry job."""

    with database.import_uow() as uow:
        records = uow.repositories.records.list_for_job(job_id, status=RecordStatus.ERROR)
        return [dict(record.raw_data) for record in records]


def get_job(database: Database, job_id: UUID) -> ImportJob | None:
    with database.import_uow() as uow:
        return uow.repositories.jobs.get(job_id)


def list_jobs(database: Database, *, limit: int = 20) -> list[ImportJob]:
    with database.import_uow() as uow:
        return list(uow.repositories.jobs.list_recent(limit=limit))


def request_pause(database: Database, job_id: UUID) -> None:
    pause_job(database.import_uow, job_id)


def request_cancel(database: Database, job_id: UUID) -> None:
    cancel_job(database.import_uow, job_id)

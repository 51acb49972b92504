"""Batched, checkpointed import of raw records for one source."""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

from aiolimiter import AsyncLimiter

from resourcevet.config.imports import DEFAULT_IMPORT_BATCH_SIZE
from resourcevet.domain.errors import (
    BatchSubmissionError,
    CheckpointError,
    EnrichmentError,
    JobFatalError,
    NormalizationError,
    ResourceVetError,
)
from resourcevet.domain.field_mapping import FieldMapper
from resourcevet.domain.model import (
    Checkpoint,
    ImportJob,
    ImportJobSettings,
    ImportRecord,
    JobStatus,
    RecordStatus,
)
from resourcevet.domain.ports import BatchSubmission, GeocodeRequest

from .fingerprint import fingerprint_records

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Mapping, Sequence

    from resourcevet.domain.model import NormalizedResource, VerificationLevel
    from resourcevet.domain.ports import (
        BatchResponse,
        GeocodedAddress,
        GeocodingService,
        PublicationEndpoint,
    )
    from resourcevet.domain.ports.unit_of_work import ImportUnitOfWorkFactory

log = logging.getLogger(__name__)

type RawRecord = Mapping[str, Any]

_RESUMABLE = frozenset({JobStatus.PAUSED, JobStatus.FAILED})


@dataclass(frozen=True, slots=True)
class ImportConfig:
    source_name: str
    source_url: str | None = None
    source_description: str | None = None
    filters: Mapping[str, object] = field(default_factory=dict)
    verification_level: VerificationLevel | None = None
    batch_size: int = DEFAULT_IMPORT_BATCH_SIZE
    skip_geocoding: bool = False
    created_by: str | None = None

    def __post_init__(self) -> None:
        if self.batch_size < 1:
            raise ValueError("batch_size must be at least 1")

    @classmethod
    def from_job(cls, job: ImportJob) -> ImportConfig:
        return cls(
            source_name=job.source_name,
            source_url=job.source_url,
            source_description=job.source_description,
            filters=job.settings.filters,
            verification_level=job.settings.verification_level,
            batch_size=job.settings.batch_size,
            skip_geocoding=job.settings.skip_geocoding,
            created_by=job.created_by,
        )


@dataclass(frozen=True, slots=True)
class JobProgress:
    total: int
    processed: int
    successful: int
    failed: int
    flagged: int
    rejected: int
    skipped: int

    @classmethod
    def of(cls, job: ImportJob) -> JobProgress:
        return cls(
            total=job.total_records,
            processed=job.processed_records,
            successful=job.successful_records,
            failed=job.failed_records,
            flagged=job.flagged_records,
            rejected=job.rejected_records,
            skipped=job.skipped_records,
        )


class ImportOrchestrator:
    """Owns the lifecycle of one import job.

    Batches run strictly one after another. Pause and cancellation are honoured
    only between batches; a checkpoint is committed after every batch and before
    ``run`` returns on a pause.
    """

    def __init__(
        self,
        config: ImportConfig,
        *,
        uow_factory: ImportUnitOfWorkFactory,
        publisher: PublicationEndpoint,
        mapper: FieldMapper | None = None,
        geocoder: GeocodingService | None = None,
        limiter: AsyncLimiter | None = None,
        job_id: UUID | None = None,
    ) -> None:
        self.config = config
        self.mapper = mapper or FieldMapper(config.source_name)
        self._uow_factory = uow_factory
        self._publisher = publisher
        self._geocoder = geocoder
        rpm = self.mapper.requests_per_minute
        self._limiter = limiter or (AsyncLimiter(rpm, 60) if rpm else None)
        self.job_id = job_id
        self._fingerprint: str | None = None
        self._total = 0

    @property
    def verification_level(self) -> VerificationLevel:
        return self.config.verification_level or self.mapper.verification_level

    # Job bookkeeping ------------------------------------------------------

    async def create_job(self, total_records: int) -> UUID:
        job = ImportJob(
            source_name=self.config.source_name,
            source_url=self.config.source_url,
            source_description=self.config.source_description,
            total_records=total_records,
            created_by=self.config.created_by,
            settings=ImportJobSettings(
                batch_size=self.config.batch_size,
                verification_level=self.verification_level,
                skip_geocoding=self.config.skip_geocoding,
                filters=dict(self.config.filters),
            ),
        )
        with self._uow_factory() as uow:
            uow.repositories.jobs.add(job)
            uow.commit()
        self.job_id = job.id
        log.info(
            "Created import job %s for %s (%d records)", job.id, job.source_name, total_records
        )
        return job.id

    async def job_details(self) -> ImportJob | None:
        if self.job_id is None:
            return None
        with self._uow_factory() as uow:
            return uow.repositories.jobs.get(self.job_id)

    async def should_pause(self) -> bool:
        return await self._current_status() is JobStatus.PAUSED

    async def update_progress(self) -> JobProgress:
        """Recompute the job's counters from its records' statuses."""

        with self._uow_factory() as uow:
            job = self._load_job(uow)
            job.apply_counts(uow.repositories.records.statuses_for_job(job.id))
            progress = JobProgress.of(job)
            uow.commit()
        return progress

    async def save_checkpoint(self, last_processed_index: int) -> Checkpoint:
        checkpoint = Checkpoint(
            last_processed_index=last_processed_index,
            source_fingerprint=self._fingerprint,
            pending_batch_queue=self._pending_batches(last_processed_index),
        )
        with self._uow_factory() as uow:
            job = self._load_job(uow)
            job.save_checkpoint(checkpoint)
            uow.commit()
        return checkpoint

    async def pause(self) -> None:
        pause_job(self._uow_factory, self._require_job_id())

    async def cancel(self) -> None:
        cancel_job(self._uow_factory, self._require_job_id())

    # Running --------------------------------------------------------------

    async def run(self, records: Sequence[RawRecord]) -> JobStatus:
        """Import ``records`` from the start. Returns the job's final status."""

        records = list(records)
        if self.job_id is None:
            await self.create_job(len(records))
        self._fingerprint = fingerprint_records(records)
        return await self._guarded(records, start=0)

    async def resume(self, records: Sequence[RawRecord]) -> JobStatus:
        """Continue a paused or failed job over the same ``records`` it started with."""

        records = list(records)
        job = await self.job_details()
        if job is None:
            raise CheckpointError(f"Import job {self.job_id} not found")
        if job.checkpoint is None:
            raise CheckpointError(f"No checkpoint data found for job {job.id}")
        if job.status not in _RESUMABLE:
            raise CheckpointError(f"Job {job.id} is {job.status} and cannot be resumed")

        fingerprint = fingerprint_records(records)
        expected = job.checkpoint.source_fingerprint
        if expected is not None and expected != fingerprint:
            raise CheckpointError(
                f"Records supplied for job {job.id} differ from the ones it was started with"
            )
        start = job.checkpoint.last_processed_index
        if start > len(records):
            raise CheckpointError(
                f"Checkpoint index {start} is beyond the {len(records)} supplied records"
            )

        # the interrupted batch is replayed in full, so drop whatever it already wrote
        with self._uow_factory() as uow:
            discarded = uow.repositories.records.delete_from_index(job.id, start)
            uow.commit()
        if discarded:
            log.info("Discarded %d records from an interrupted batch", discarded)

        self._fingerprint = fingerprint
        log.info(
            "Resuming job %s from index %d (%d batches pending)",
            job.id,
            start,
            len(job.checkpoint.pending_batch_queue),
        )
        return await self._guarded(records, start=start)

    async def _guarded(self, records: list[RawRecord], *, start: int) -> JobStatus:
        self._total = len(records)
        await self._set_status(JobStatus.RUNNING)
        try:
            return await self._process_from(records, start)
        except Exception as exc:
            log.exception("Import job %s failed", self.job_id)
            batch_index = exc.batch_index if isinstance(exc, BatchSubmissionError) else None
            await self._mark_failed(str(exc) or type(exc).__name__, batch_index=batch_index)
            if isinstance(exc, ResourceVetError):
                raise
            raise JobFatalError(str(exc)) from exc
        except BaseException as exc:
            # Ctrl+C or task cancellation: leave the job resumable, not running
            log.warning("Import job %s interrupted (%s)", self.job_id, type(exc).__name__)
            await self._mark_failed(f"Interrupted: {type(exc).__name__}", batch_index=None)
            raise

    async def _process_from(self, records: list[RawRecord], start: int) -> JobStatus:
        total = len(records)
        batch_size = self.config.batch_size
        total_batches = math.ceil(total / batch_size) if total else 0

        for index in range(start, total, batch_size):
            if await self.should_pause():
                await self.save_checkpoint(index)
                await self._ensure_status(JobStatus.PAUSED)
                log.info("Import job %s paused at record %d", self.job_id, index)
                return JobStatus.PAUSED
            if await self._current_status() is JobStatus.CANCELLED:
                await self.save_checkpoint(index)
                log.info("Import job %s cancelled at record %d", self.job_id, index)
                return JobStatus.CANCELLED

            batch = records[index : index + batch_size]
            batch_number = index // batch_size + 1
            log.info(
                "Processing batch %d/%d (records %d-%d)",
                batch_number,
                total_batches,
                index + 1,
                index + len(batch),
            )
            try:
                await self.process_batch(batch, batch_index=batch_number - 1, start_index=index)
            except BatchSubmissionError:
                # the failed batch is terminal (every record is ``error``)
                await self.update_progress()
                await self.save_checkpoint(index + len(batch))
                raise
            progress = await self.update_progress()
            await self.save_checkpoint(index + len(batch))
            log.info(
                "Progress: %d/%d records (%.1f%%)",
                progress.processed,
                total,
                progress.processed / total * 100,
            )

        # a pause or cancel requested during the last batch still wins
        status = await self._current_status()
        if status in {JobStatus.PAUSED, JobStatus.CANCELLED}:
            return status
        await self._set_status(JobStatus.COMPLETED)
        log.info("Import job %s completed", self.job_id)
        return JobStatus.COMPLETED

    async def process_batch(
        self,
        batch: Sequence[RawRecord],
        *,
        batch_index: int | None = None,
        start_index: int = 0,
    ) -> BatchResponse | None:
        """Normalize, enrich and publish one batch; record every outcome.

        ``start_index`` is the position of the batch's first record in the job's input.
        """

        job_id = self._require_job_id()
        started: dict[UUID, float] = {}
        pending: list[ImportRecord] = []
        failed: list[ImportRecord] = []

        for offset, raw in enumerate(batch):
            record_started = time.perf_counter()
            record = await self._prepare_record(job_id, raw, start_index + offset)
            started[record.id] = record_started
            (failed if record.status is RecordStatus.ERROR else pending).append(record)

        self._store([*failed, *pending])

        if not pending:
            log.warning("No records were successfully normalized in this batch")
            return None

        resources = [record.normalized_data for record in pending if record.normalized_data]
        submission = BatchSubmission(
            resources=resources,
            submitter=f"Bulk Import: {self.mapper.display_name}",
            verification_level=self.verification_level,
            notes=f"Imported from {self.config.source_url or self.config.source_name}",
        )
        log.debug("Submitting %d normalized records for publication", len(resources))
        try:
            response = await self._call(lambda: self._publisher.submit(submission))
            if not response.success:
                raise BatchSubmissionError(
                    "Publication endpoint rejected the batch", batch_index=batch_index
                )
        except Exception as exc:
            message = str(exc) or "Failed to submit batch for publication"
            for record in pending:
                record.fail(message, details={"publication_error": message})
                record.processing_time_ms = _elapsed_ms(started[record.id])
            self._store(pending)
            if isinstance(exc, BatchSubmissionError):
                raise
            raise BatchSubmissionError(message, batch_index=batch_index) from exc

        log.info(
            "Batch published: %d approved, %d flagged, %d rejected, %d duplicates",
            response.stats.auto_approved,
            response.stats.flagged,
            response.stats.rejected,
            response.stats.skipped_duplicates,
        )
        for position, record in enumerate(pending):
            if position >= len(response.results):
                record.fail("Publication returned no result for this record")
            else:
                result = response.results[position]
                record.complete(
                    RecordStatus(result.status),
                    resource_id=result.resource_id,
                    suggestion_id=result.suggestion_id,
                    verification_score=result.verification_score,
                    verification_decision=result.status,
                    verification_reason=result.decision_reason,
                    error_message=result.error,
                )
            record.processing_time_ms = _elapsed_ms(started[record.id])
        self._store(pending)
        return response

    async def _prepare_record(self, job_id: UUID, raw: RawRecord, index: int) -> ImportRecord:
        try:
            normalized = self.mapper.normalize(raw)
        except NormalizationError as exc:
            log.warning("Skipping record: %s", exc)
            return self._error_record(job_id, raw, str(exc), index)
        except Exception as exc:
            log.exception("Unexpected error normalizing record")
            return self._error_record(job_id, raw, str(exc) or type(exc).__name__, index)

        record = ImportRecord(
            job_id=job_id,
            record_index=index,
            source_id=normalized.source.source_id,
            source_url=normalized.source.url,
            raw_data=dict(raw),
            normalized_data=normalized,
            verification_level=self.verification_level,
        )
        record.transition(RecordStatus.PROCESSING)
        if self._geocoder is not None and self._needs_geocoding(normalized):
            await self._geocode(self._geocoder, record, normalized)
        record.transition(RecordStatus.VERIFYING)
        return record

    def _needs_geocoding(self, resource: NormalizedResource) -> bool:
        return (
            self.mapper.requires_geocoding
            and not self.config.skip_geocoding
            and not resource.has_coordinates
        )

    async def _geocode(
        self,
        geocoder: GeocodingService,
        record: ImportRecord,
        resource: NormalizedResource,
    ) -> None:
        record.transition(RecordStatus.GEOCODING)
        record.geocoding_attempted = True
        record.original_address = ", ".join(
            part for part in (resource.address, resource.city, resource.state, resource.zip) if part
        )
        request = GeocodeRequest(
            address=resource.address, city=resource.city, state=resource.state, zip=resource.zip
        )
        started = time.perf_counter()
        try:
            data = await self._enrich(geocoder, request)
        except EnrichmentError as exc:
            log.warning("Geocoding failed for %s: %s", record.original_address, exc)
            record.geocoding_success = False
            record.error_details = {**(record.error_details or {}), "geocoding_error": str(exc)}
            return
        finally:
            record.geocoding_time_ms = _elapsed_ms(started)

        record.normalized_data = resource.with_updates(
            latitude=data.latitude,
            longitude=data.longitude,
            formatted_address=data.formatted_address,
            place_id=data.place_id,
            county=data.county,
            neighborhood=data.neighborhood,
        )
        record.geocoding_success = True
        record.geocoded_address = data.formatted_address
        record.geocoding_confidence = str(data.confidence)

    async def _enrich(
        self, geocoder: GeocodingService, request: GeocodeRequest
    ) -> GeocodedAddress:
        try:
            result = await self._call(lambda: geocoder.geocode(request))
        except Exception as exc:
            raise EnrichmentError(str(exc) or type(exc).__name__) from exc
        if not result.success or result.data is None:
            raise EnrichmentError(result.error or "Geocoding returned no result")
        return result.data

    def _error_record(
        self, job_id: UUID, raw: RawRecord, message: str, index: int | None = None
    ) -> ImportRecord:
        record = ImportRecord(
            job_id=job_id,
            record_index=index,
            source_id=f"error-{uuid4().hex}",
            raw_data=dict(raw),
        )
        record.fail(message, details={"normalization_error": message})
        return record

    # Helpers --------------------------------------------------------------

    async def _call[T](self, func: Callable[[], Awaitable[T]]) -> T:
        if self._limiter is None:
            return await func()
        async with self._limiter:
            return await func()

    def _pending_batches(self, start: int) -> tuple[dict[str, object], ...]:
        size = self.config.batch_size
        return tuple(
            {"batch_index": index // size, "start": index, "end": min(index + size, self._total)}
            for index in range(start, self._total, size)
        )

    def _store(self, records: Sequence[ImportRecord]) -> None:
        if not records:
            return
        with self._uow_factory() as uow:
            for record in records:
                uow.repositories.records.add(record)
            uow.commit()

    async def _current_status(self) -> JobStatus:
        with self._uow_factory() as uow:
            return self._load_job(uow).status

    async def _set_status(self, status: JobStatus) -> None:
        with self._uow_factory() as uow:
            job = self._load_job(uow)
            job.transition(status)
            uow.commit()

    async def _ensure_status(self, status: JobStatus) -> None:
        with self._uow_factory() as uow:
            job = self._load_job(uow)
            if job.status is not status:
                job.transition(status)
                uow.commit()

    async def _mark_failed(self, message: str, *, batch_index: int | None) -> None:
        with self._uow_factory() as uow:
            job = self._load_job(uow)
            job.record_error(message, batch_index=batch_index)
            if job.status in {JobStatus.PENDING, JobStatus.RUNNING}:
                job.transition(JobStatus.FAILED)
            uow.commit()

    def _load_job(self, uow: Any) -> ImportJob:
        job = uow.repositories.jobs.get(self._require_job_id())
        if job is None:
            raise JobFatalError(f"Import job {self.job_id} not found")
        return job

    def _require_job_id(self) -> UUID:
        if self.job_id is None:
            raise JobFatalError("Import job has not been created")
        return self.job_id


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


def _request_status(uow_factory: ImportUnitOfWorkFactory, job_id: UUID, status: JobStatus) -> None:
    with uow_factory() as uow:
        job = uow.repositories.jobs.get(job_id)
        if job is None:
            raise JobFatalError(f"Import job {job_id} not found")
        job.transition(status)
        uow.commit()
    log.info("Import job %s marked %s", job_id, status)


def pause_job(uow_factory: ImportUnitOfWorkFactory, job_id: UUID) -> None:
    """Ask a running job to stop at its next batch boundary."""

    _request_status(uow_factory, job_id, JobStatus.PAUSED)


def cancel_job(uow_factory: ImportUnitOfWorkFactory, job_id: UUID) -> None:
    _request_status(uow_factory, job_id, JobStatus.CANCELLED)

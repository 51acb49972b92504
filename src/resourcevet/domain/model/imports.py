"""Import job and import record entities with their status machines."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from resourcevet.domain.errors import InvalidStatusTransitionError

from .enums import JobStatus, RecordStatus, VerificationLevel

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from .resource import NormalizedResource


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


_JOB_TRANSITIONS: dict[JobStatus, frozenset[JobStatus]] = {
    JobStatus.PENDING: frozenset({JobStatus.RUNNING, JobStatus.CANCELLED, JobStatus.FAILED}),
    JobStatus.RUNNING: frozenset(
        {JobStatus.PAUSED, JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.CANCELLED}
    ),
    JobStatus.PAUSED: frozenset({JobStatus.RUNNING}),
    # a failed job may be resumed from its checkpoint
    JobStatus.FAILED: frozenset({JobStatus.RUNNING}),
    JobStatus.COMPLETED: frozenset(),
    JobStatus.CANCELLED: frozenset(),
}

_RECORD_TRANSITIONS: dict[RecordStatus, frozenset[RecordStatus]] = {
    RecordStatus.PENDING: frozenset({RecordStatus.PROCESSING, RecordStatus.SKIPPED}),
    RecordStatus.PROCESSING: frozenset({RecordStatus.GEOCODING, RecordStatus.VERIFYING}),
    RecordStatus.GEOCODING: frozenset({RecordStatus.VERIFYING}),
    RecordStatus.VERIFYING: frozenset(
        {
            RecordStatus.APPROVED,
            RecordStatus.FLAGGED,
            RecordStatus.REJECTED,
            RecordStatus.SKIPPED,
        }
    ),
}


@dataclass(frozen=True, slots=True)
class Checkpoint:
    """Durable resume state of an import job.

    Only indexes are stored: the caller re-supplies the record list on resume, and
    ``source_fingerprint`` guards against resuming over different input.
    ``pending_batch_queue`` lists the batches still to run as
    ``{"batch_index", "start", "end"}`` slices of that list.
    """

    last_processed_index: int
    source_fingerprint: str | None = None
    pending_batch_queue: tuple[dict[str, object], ...] = ()
    timestamp: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> dict[str, object]:
        return {
            "last_processed_index": self.last_processed_index,
            "source_fingerprint": self.source_fingerprint,
            "pending_batch_queue": list(self.pending_batch_queue),
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, object]) -> Checkpoint:
        index = payload.get("last_processed_index")
        if not isinstance(index, int):
            raise ValueError("checkpoint is missing last_processed_index")
        fingerprint = payload.get("source_fingerprint")
        queue = payload.get("pending_batch_queue") or ()
        timestamp = payload.get("timestamp")
        return cls(
            last_processed_index=index,
            source_fingerprint=fingerprint if isinstance(fingerprint, str) else None,
            pending_batch_queue=tuple(queue) if isinstance(queue, list | tuple) else (),
            timestamp=(
                datetime.fromisoformat(timestamp) if isinstance(timestamp, str) else _utcnow()
            ),
        )


@dataclass(frozen=True, slots=True)
class JobError:
    error: str
    timestamp: datetime = field(default_factory=_utcnow)
    batch_index: int | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "error": self.error,
            "timestamp": self.timestamp.isoformat(),
            "batch_index": self.batch_index,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, object]) -> JobError:
        timestamp = payload.get("timestamp")
        batch_index = payload.get("batch_index")
        return cls(
            error=str(payload.get("error", "")),
            timestamp=(
                datetime.fromisoformat(timestamp) if isinstance(timestamp, str) else _utcnow()
            ),
            batch_index=batch_index if isinstance(batch_index, int) else None,
        )


@dataclass(frozen=True, slots=True)
class ImportJobSettings:
    batch_size: int = 50
    verification_level: VerificationLevel | None = None
    skip_geocoding: bool = False
    filters: Mapping[str, object] = field(default_factory=dict)

    def to_dict(self) -> dict[str, object]:
        return {
            "batch_size": self.batch_size,
            "verification_level": (
                str(self.verification_level) if self.verification_level else None
            ),
            "skip_geocoding": self.skip_geocoding,
            "filters": dict(self.filters),
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, object]) -> ImportJobSettings:
        level = payload.get("verification_level")
        filters = payload.get("filters")
        batch_size = payload.get("batch_size")
        return cls(
            batch_size=batch_size if isinstance(batch_size, int) else 50,
            verification_level=VerificationLevel(level) if isinstance(level, str) else None,
            skip_geocoding=bool(payload.get("skip_geocoding", False)),
            filters=dict(filters) if isinstance(filters, dict) else {},
        )


@dataclass(eq=False, kw_only=True)
class ImportJob:
    """One ingestion run over a list of raw records."""

    source_name: str
    id: UUID = field(default_factory=uuid4)
    source_url: str | None = None
    source_description: str | None = None
    status: JobStatus = JobStatus.PENDING
    total_records: int = 0
    processed_records: int = 0
    successful_records: int = 0
    failed_records: int = 0
    flagged_records: int = 0
    rejected_records: int = 0
    skipped_records: int = 0
    checkpoint: Checkpoint | None = None
    error_log: list[JobError] = field(default_factory=list)
    settings: ImportJobSettings = field(default_factory=ImportJobSettings)
    created_by: str | None = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)
    started_at: datetime | None = None
    completed_at: datetime | None = None

    def transition(self, target: JobStatus) -> None:
        if target not in _JOB_TRANSITIONS[self.status]:
            raise InvalidStatusTransitionError("import job", self.status, target)
        now = _utcnow()
        self.status = target
        self.updated_at = now
        if target is JobStatus.RUNNING:
            self.started_at = now
            self.completed_at = None
        elif target in {JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.CANCELLED}:
            self.completed_at = now

    def record_error(self, message: str, *, batch_index: int | None = None) -> None:
        # reassign so the JSON column sees a new value
        self.error_log = [*self.error_log, JobError(error=message, batch_index=batch_index)]
        self.updated_at = _utcnow()

    def save_checkpoint(self, checkpoint: Checkpoint) -> None:
        self.checkpoint = checkpoint
        self.updated_at = _utcnow()

    def apply_counts(self, statuses: Iterable[RecordStatus]) -> None:
        """Recompute progress counters from the statuses of the job's records."""

        counts = dict.fromkeys(RecordStatus, 0)
        for status in statuses:
            counts[status] += 1
        self.successful_records = counts[RecordStatus.APPROVED]
        self.failed_records = counts[RecordStatus.ERROR]
        self.flagged_records = counts[RecordStatus.FLAGGED]
        self.rejected_records = counts[RecordStatus.REJECTED]
        self.skipped_records = counts[RecordStatus.SKIPPED]
        self.processed_records = (
            self.successful_records
            + self.failed_records
            + self.flagged_records
            + self.rejected_records
            + self.skipped_records
        )
        self.updated_at = _utcnow()

    @property
    def progress_percentage(self) -> float:
        if not self.total_records:
            return 0.0
        return round(self.processed_records / self.total_records * 100, 1)

    @property
    def success_rate(self) -> float:
        if not self.processed_records:
            return 0.0
        return round(self.successful_records / self.processed_records * 100, 1)


@dataclass(eq=False, kw_only=True)
class ImportRecord:
    """One raw record's journey through the pipeline."""

    job_id: UUID
    source_id: str
    raw_data: dict[str, object]
    id: UUID = field(default_factory=uuid4)
    # position in the job's input list; resume discards rows at or past the checkpoint
    record_index: int | None = None
    source_url: str | None = None
    normalized_data: NormalizedResource | None = None
    status: RecordStatus = RecordStatus.PENDING
    resource_id: str | None = None
    suggestion_id: str | None = None
    error_message: str | None = None
    error_details: dict[str, object] | None = None
    verification_score: float | None = None
    verification_level: VerificationLevel | None = None
    verification_decision: str | None = None
    verification_reason: str | None = None
    processing_time_ms: int | None = None
    geocoding_time_ms: int | None = None
    geocoding_attempted: bool = False
    geocoding_success: bool | None = None
    original_address: str | None = None
    geocoded_address: str | None = None
    geocoding_confidence: str | None = None
    created_at: datetime = field(default_factory=_utcnow)
    processed_at: datetime | None = None
    updated_at: datetime = field(default_factory=_utcnow)

    def transition(self, target: RecordStatus) -> None:
        allowed = _RECORD_TRANSITIONS.get(self.status, frozenset())
        if target not in allowed:
            raise InvalidStatusTransitionError("import record", self.status, target)
        self.status = target
        self.updated_at = _utcnow()

    def fail(self, message: str, *, details: Mapping[str, object] | None = None) -> None:
        """Move to ``error`` from any non-terminal state."""

        if self.status.is_terminal:
            raise InvalidStatusTransitionError("import record", self.status, RecordStatus.ERROR)
        now = _utcnow()
        self.status = RecordStatus.ERROR
        self.error_message = message
        if details is not None:
            self.error_details = {**(self.error_details or {}), **details}
        self.resource_id = None
        self.suggestion_id = None
        self.processed_at = now
        self.updated_at = now

    def complete(
        self,
        status: RecordStatus,
        *,
        resource_id: str | None = None,
        suggestion_id: str | None = None,
        verification_score: float | None = None,
        verification_decision: str | None = None,
        verification_reason: str | None = None,
        error_message: str | None = None,
    ) -> None:
        """Record the publication outcome for this record.

        Identifiers are kept only for outcomes that create something: a resource for
        ``approved`` and a suggestion for ``flagged``.
        """

        if status is RecordStatus.ERROR:
            self.fail(error_message or "Publication reported an error")
            return
        self.transition(status)
        now = _utcnow()
        if status is RecordStatus.APPROVED:
            self.resource_id = resource_id
            self.suggestion_id = None
        elif status is RecordStatus.FLAGGED:
            self.resource_id = None
            self.suggestion_id = suggestion_id
        else:
            self.resource_id = None
            self.suggestion_id = None
        self.verification_score = verification_score
        self.verification_decision = verification_decision
        self.verification_reason = verification_reason
        if error_message:
            self.error_message = error_message
        self.processed_at = now
        self.updated_at = now

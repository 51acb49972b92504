"""SQLAlchemy mapping metadata for the resourcevet domain model."""

from __future__ import annotations

import json
import logging
import uuid
from datetime import UTC, datetime
from functools import cache
from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Dialect,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    TypeDecorator,
    UniqueConstraint,
    Uuid,
    orm,
)
from sqlalchemy.orm import configure_mappers

from resourcevet.domain.model import (
    Checkpoint,
    Decision,
    ImportJob,
    ImportJobSettings,
    ImportRecord,
    JobError,
    JobStatus,
    NormalizedResource,
    PublishedResource,
    RecordStatus,
    ResourceSuggestion,
    SuggestionStatus,
    UsageLog,
    VerificationLevel,
    VerificationLog,
    VerificationType,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


class JSONDict(TypeDecorator[dict[str, Any]]):
    """Free-form JSON object stored as text."""

    impl = Text
    cache_ok = True

    def process_bind_param(self, value: dict[str, Any] | None, dialect: Dialect) -> str | None:
        _ = dialect
        if value is None:
            return None
        return json.dumps(value, default=str)

    def process_result_value(self, value: str | None, dialect: Dialect) -> dict[str, Any] | None:
        _ = dialect
        if value is None:
            return None
        loaded = json.loads(value)
        return cast(dict[str, Any], loaded) if isinstance(loaded, dict) else None


class NormalizedResourceType(TypeDecorator[NormalizedResource]):
    impl = Text
    cache_ok = True

    def process_bind_param(self, value: NormalizedResource | None, dialect: Dialect) -> str | None:
        _ = dialect
        if value is None:
            return None
        return value.model_dump_json()

    def process_result_value(
        self, value: str | None, dialect: Dialect
    ) -> NormalizedResource | None:
        _ = dialect
        if value is None:
            return None
        return NormalizedResource.model_validate_json(value)


class CheckpointType(TypeDecorator[Checkpoint]):
    impl = Text
    cache_ok = True

    def process_bind_param(self, value: Checkpoint | None, dialect: Dialect) -> str | None:
        _ = dialect
        if value is None:
            return None
        return json.dumps(value.to_dict())

    def process_result_value(self, value: str | None, dialect: Dialect) -> Checkpoint | None:
        _ = dialect
        if value is None:
            return None
        loaded = json.loads(value)
        if not isinstance(loaded, dict):
            return None
        return Checkpoint.from_dict(cast(dict[str, object], loaded))


class JobErrorListType(TypeDecorator[list[JobError]]):
    impl = Text
    cache_ok = True

    def process_bind_param(self, value: list[JobError] | None, dialect: Dialect) -> str:
        _ = dialect
        return json.dumps([error.to_dict() for error in value or ()])

    def process_result_value(self, value: str | None, dialect: Dialect) -> list[JobError]:
        _ = dialect
        if value is None:
            return []
        loaded = json.loads(value)
        if not isinstance(loaded, list):
            return []
        items = cast(list[Any], loaded)
        return [JobError.from_dict(item) for item in items if isinstance(item, dict)]


class JobSettingsType(TypeDecorator[ImportJobSettings]):
    impl = Text
    cache_ok = True

    def process_bind_param(self, value: ImportJobSettings | None, dialect: Dialect) -> str:
        _ = dialect
        return json.dumps((value or ImportJobSettings()).to_dict())

    def process_result_value(self, value: str | None, dialect: Dialect) -> ImportJobSettings:
        _ = dialect
        if value is None:
            return ImportJobSettings()
        loaded = json.loads(value)
        if not isinstance(loaded, dict):
            return ImportJobSettings()
        return ImportJobSettings.from_dict(cast(dict[str, object], loaded))


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# Import tracking -------------------------------------------------------------

import_job_table = Table(
    "import_job",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("source_name", String, nullable=False),
    Column("source_url", String, nullable=True),
    Column("source_description", Text, nullable=True),
    Column("status", Enum(JobStatus, native_enum=False), nullable=False),
    Column("total_records", Integer, nullable=False, default=0),
    Column("processed_records", Integer, nullable=False, default=0),
    Column("successful_records", Integer, nullable=False, default=0),
    Column("failed_records", Integer, nullable=False, default=0),
    Column("flagged_records", Integer, nullable=False, default=0),
    Column("rejected_records", Integer, nullable=False, default=0),
    Column("skipped_records", Integer, nullable=False, default=0),
    Column("checkpoint", CheckpointType, nullable=True),
    Column("error_log", JobErrorListType, nullable=False),
    Column("settings", JobSettingsType, nullable=False),
    Column("created_by", String, nullable=True),
    Column("created_at", UTCDateTime, nullable=False),
    Column("updated_at", UTCDateTime, nullable=False),
    Column("started_at", UTCDateTime, nullable=True),
    Column("completed_at", UTCDateTime, nullable=True),
    Index("ix_import_job_status", "status"),
)

import_record_table = Table(
    "import_record",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("job_id", UUIDColumnType, ForeignKey("import_job.id"), nullable=False),
    Column("record_index", Integer, nullable=True),
    Column("source_id", String, nullable=False),
    Column("source_url", String, nullable=True),
    Column("raw_data", JSONDict, nullable=False),
    Column("normalized_data", NormalizedResourceType, nullable=True),
    Column("status", Enum(RecordStatus, native_enum=False), nullable=False),
    Column("resource_id", String, nullable=True),
    Column("suggestion_id", String, nullable=True),
    Column("error_message", Text, nullable=True),
    Column("error_details", JSONDict, nullable=True),
    Column("verification_score", Float, nullable=True),
    Column("verification_level", Enum(VerificationLevel, native_enum=False), nullable=True),
    Column("verification_decision", String, nullable=True),
    Column("verification_reason", Text, nullable=True),
    Column("processing_time_ms", Integer, nullable=True),
    Column("geocoding_time_ms", Integer, nullable=True),
    Column("geocoding_attempted", Boolean, nullable=False, default=False),
    Column("geocoding_success", Boolean, nullable=True),
    Column("original_address", Text, nullable=True),
    Column("geocoded_address", Text, nullable=True),
    Column("geocoding_confidence", String, nullable=True),
    Column("created_at", UTCDateTime, nullable=False),
    Column("processed_at", UTCDateTime, nullable=True),
    Column("updated_at", UTCDateTime, nullable=False),
    Index("ix_import_record_job_id", "job_id"),
    Index("ix_import_record_job_status", "job_id", "status"),
)

# Verification outcomes ---------------------------------------------------------

published_resource_table = Table(
    "published_resource",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("source_name", String, nullable=False),
    Column("source_id", String, nullable=False),
    Column("resource", NormalizedResourceType, nullable=False),
    Column("verification_score", Float, nullable=False),
    Column("submitter", String, nullable=True),
    Column("created_at", UTCDateTime, nullable=False),
    UniqueConstraint("source_name", "source_id", name="uq_published_resource_source_key"),
)

resource_suggestion_table = Table(
    "resource_suggestion",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("source_name", String, nullable=False),
    Column("source_id", String, nullable=False),
    Column("resource", NormalizedResourceType, nullable=False),
    Column("status", Enum(SuggestionStatus, native_enum=False), nullable=False),
    Column("verification_score", Float, nullable=False),
    Column("admin_notes", Text, nullable=False),
    Column("submitter", String, nullable=True),
    Column("notes", Text, nullable=True),
    Column("created_at", UTCDateTime, nullable=False),
    UniqueConstraint("source_name", "source_id", name="uq_resource_suggestion_source_key"),
)

verification_log_table = Table(
    "verification_log",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("candidate_key", String, nullable=False),
    Column("verification_type", Enum(VerificationType, native_enum=False), nullable=False),
    Column("result", JSONDict, nullable=False),
    Column("decision", Enum(Decision, native_enum=False), nullable=False),
    Column("overall_score", Float, nullable=False),
    Column("cost_usd", Float, nullable=False),
    Column("resource_id", UUIDColumnType, nullable=True),
    Column("suggestion_id", UUIDColumnType, nullable=True),
    Column("created_at", UTCDateTime, nullable=False),
    Index("ix_verification_log_candidate_key", "candidate_key"),
)

usage_log_table = Table(
    "usage_log",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("operation_type", String, nullable=False),
    Column("provider", String, nullable=False),
    Column("model", String, nullable=False),
    Column("input_tokens", Integer, nullable=False),
    Column("output_tokens", Integer, nullable=False),
    Column("input_cost_usd", Float, nullable=False),
    Column("output_cost_usd", Float, nullable=False),
    Column("duration_ms", Integer, nullable=False),
    Column("candidate_key", String, nullable=True),
    Column("context", JSONDict, nullable=True),
    Column("created_at", UTCDateTime, nullable=False),
    Index("ix_usage_log_created_at", "created_at"),
)


@cache
def start_mappers() -> orm.registry:
    """Map domain dataclasses onto their tables (idempotent)."""

    mapper_registry.map_imperatively(ImportJob, import_job_table)
    mapper_registry.map_imperatively(ImportRecord, import_record_table)
    mapper_registry.map_imperatively(PublishedResource, published_resource_table)
    mapper_registry.map_imperatively(ResourceSuggestion, resource_suggestion_table)
    mapper_registry.map_imperatively(VerificationLog, verification_log_table)
    mapper_registry.map_imperatively(UsageLog, usage_log_table)

    configure_mappers()
    return mapper_registry


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the mapped metadata."""

    log.info("Creating all tables")
    mapper_registry.metadata.create_all(engine)

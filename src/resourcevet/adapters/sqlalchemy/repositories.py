"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import delete, or_, select

from resourcevet.adapters.sqlalchemy.mappings import (
    import_job_table,
    import_record_table,
    published_resource_table,
    resource_suggestion_table,
    verification_log_table,
)
from resourcevet.domain.model import (
    ImportJob,
    ImportRecord,
    PublishedResource,
    RecordStatus,
    ResourceSuggestion,
    UsageLog,
    VerificationLog,
)

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID

    from sqlalchemy.orm import Session

_UNFINISHED = tuple(status for status in RecordStatus if not status.is_terminal)


class SqlAlchemyImportJobRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: ImportJob) -> None:
        self.session.add(entity)

    def get(self, job_id: UUID) -> ImportJob | None:
        return self.session.get(ImportJob, job_id)

    def list_recent(self, *, limit: int = 20) -> Sequence[ImportJob]:
        stmt = select(ImportJob).order_by(import_job_table.c.created_at.desc()).limit(limit)
        return self.session.execute(stmt).scalars().all()


class SqlAlchemyImportRecordRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: ImportRecord) -> None:
        self.session.add(entity)

    def list_for_job(
        self,
        job_id: UUID,
        *,
        status: RecordStatus | None = None,
    ) -> Sequence[ImportRecord]:
        stmt = (
            select(ImportRecord)
            .where(import_record_table.c.job_id == job_id)
            .order_by(import_record_table.c.created_at)
        )
        if status is not None:
            stmt = stmt.where(import_record_table.c.status == status)
        return self.session.execute(stmt).scalars().all()

    def statuses_for_job(self, job_id: UUID) -> Sequence[RecordStatus]:
        stmt = select(import_record_table.c.status).where(import_record_table.c.job_id == job_id)
        return self.session.execute(stmt).scalars().all()

    def delete_from_index(self, job_id: UUID, start: int) -> int:
        stmt = (
            delete(import_record_table)
            .where(import_record_table.c.job_id == job_id)
            .where(
                or_(
                    import_record_table.c.record_index >= start,
                    import_record_table.c.status.in_(_UNFINISHED),
                )
            )
        )
        result = self.session.execute(stmt)
        return result.rowcount or 0


class SqlAlchemyVerificationLogRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: VerificationLog) -> None:
        self.session.add(entity)

    def list_for_candidate(self, candidate_key: str) -> Sequence[VerificationLog]:
        stmt = (
            select(VerificationLog)
            .where(verification_log_table.c.candidate_key == candidate_key)
            .order_by(verification_log_table.c.created_at)
        )
        return self.session.execute(stmt).scalars().all()


class SqlAlchemyUsageLogRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: UsageLog) -> None:
        self.session.add(entity)

    def add_many(self, entries: Sequence[UsageLog]) -> None:
        self.session.add_all(entries)


class SqlAlchemyPublishedResourceRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: PublishedResource) -> None:
        self.session.add(entity)

    def get_by_source_key(self, source_name: str, source_id: str) -> PublishedResource | None:
        stmt = (
            select(PublishedResource)
            .where(published_resource_table.c.source_name == source_name)
            .where(published_resource_table.c.source_id == source_id)
        )
        return self.session.execute(stmt).scalar_one_or_none()


class SqlAlchemyResourceSuggestionRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: ResourceSuggestion) -> None:
        self.session.add(entity)

    def get_by_source_key(self, source_name: str, source_id: str) -> ResourceSuggestion | None:
        stmt = (
            select(ResourceSuggestion)
            .where(resource_suggestion_table.c.source_name == source_name)
            .where(resource_suggestion_table.c.source_id == source_id)
        )
        return self.session.execute(stmt).scalar_one_or_none()

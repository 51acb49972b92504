"""Ports for persisting import and verification state."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID

    from resourcevet.domain.model import (
        ImportJob,
        ImportRecord,
        PublishedResource,
        RecordStatus,
        ResourceSuggestion,
        UsageLog,
        VerificationLog,
    )


@runtime_checkable
class Repository[TEntity](Protocol):
    """Minimal repository contract for a persistent aggregate store."""

    def add(self, entity: TEntity) -> None: ...


@runtime_checkable
class ImportJobRepository(Repository["ImportJob"], Protocol):
    def get(self, job_id: UUID) -> ImportJob | None: ...

    def list_recent(self, *, limit: int = 20) -> Sequence[ImportJob]: ...


@runtime_checkable
class ImportRecordRepository(Repository["ImportRecord"], Protocol):
    def list_for_job(
        self,
        job_id: UUID,
        *,
        status: RecordStatus | None = None,
    ) -> Sequence[ImportRecord]: ...

    def statuses_for_job(self, job_id: UUID) -> Sequence[RecordStatus]: ...

    def delete_from_index(self, job_id: UUID, start: int) -> int:
        """Drop records at input position ``start`` or later, and any left mid-flight."""
        ...


@runtime_checkable
class VerificationLogRepository(Repository["VerificationLog"], Protocol):
    def list_for_candidate(self, candidate_key: str) -> Sequence[VerificationLog]: ...


@runtime_checkable
class UsageLogRepository(Repository["UsageLog"], Protocol):
    def add_many(self, entries: Sequence[UsageLog]) -> None: ...


@runtime_checkable
class PublishedResourceRepository(Repository["PublishedResource"], Protocol):
    def get_by_source_key(self, source_name: str, source_id: str) -> PublishedResource | None: ...


@runtime_checkable
class ResourceSuggestionRepository(Repository["ResourceSuggestion"], Protocol):
    def get_by_source_key(
        self, source_name: str, source_id: str
    ) -> ResourceSuggestion | None: ...

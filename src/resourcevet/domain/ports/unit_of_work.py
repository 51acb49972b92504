"""Unit-of-work abstractions for coordinating repositories."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from types import TracebackType

    from resourcevet.domain.ports.persistence import (
        ImportJobRepository,
        ImportRecordRepository,
        PublishedResourceRepository,
        ResourceSuggestionRepository,
        UsageLogRepository,
        VerificationLogRepository,
    )


@runtime_checkable
class RepositoryCollection(Protocol):
    """Marker protocol for groups of repositories managed together."""


@runtime_checkable
class UnitOfWork[TRepositories: RepositoryCollection](Protocol):
    """Generic unit-of-work boundary around a repository collection."""

    @property
    def repositories(self) -> TRepositories: ...

    def __enter__(self) -> UnitOfWork[TRepositories]: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


@dataclass(slots=True)
class ImportRepositories(RepositoryCollection):
    """Repositories the import orchestrator writes to."""

    jobs: ImportJobRepository
    records: ImportRecordRepository


@dataclass(slots=True)
class PublicationRepositories(RepositoryCollection):
    """Repositories the local publisher writes to."""

    published: PublishedResourceRepository
    suggestions: ResourceSuggestionRepository
    verification_logs: VerificationLogRepository


@dataclass(slots=True)
class UsageRepositories(RepositoryCollection):
    usage_logs: UsageLogRepository


type ImportUnitOfWork = UnitOfWork[ImportRepositories]
type PublicationUnitOfWork = UnitOfWork[PublicationRepositories]
type UsageUnitOfWork = UnitOfWork[UsageRepositories]

type ImportUnitOfWorkFactory = Callable[[], ImportUnitOfWork]
type PublicationUnitOfWorkFactory = Callable[[], PublicationUnitOfWork]
type UsageUnitOfWorkFactory = Callable[[], UsageUnitOfWork]

"""SQLAlchemy-backed units of work for imports, publication and usage accounting."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from resourcevet.adapters.sqlalchemy.mappings import start_mappers
from resourcevet.adapters.sqlalchemy.migrations import current_revision, upgrade_head
from resourcevet.adapters.sqlalchemy.repositories import (
    SqlAlchemyImportJobRepository,
    SqlAlchemyImportRecordRepository,
    SqlAlchemyPublishedResourceRepository,
    SqlAlchemyResourceSuggestionRepository,
    SqlAlchemyUsageLogRepository,
    SqlAlchemyVerificationLogRepository,
)
from resourcevet.config.storage import get_database_config
from resourcevet.domain.ports.unit_of_work import (
    ImportRepositories,
    PublicationRepositories,
    RepositoryCollection,
    UsageRepositories,
)

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when a unit of work is used outside its ``with`` block."""


class Database:
    """Owns the engine and session factory every unit of work draws sessions from."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self.session_factory: sessionmaker[Session] = sessionmaker(
            bind=engine, expire_on_commit=False
        )

    @classmethod
    def startup(
        cls,
        *,
        engine: Engine | None = None,
        database_uri: str | None = None,
        migrate: bool = True,
    ) -> Database:
        """Create the engine, map the domain model and upgrade the schema."""

        resolved_engine = engine or create_engine(
            database_uri or get_database_config().uri, future=True
        )
        start_mappers()
        if migrate:
            upgrade_head(engine=resolved_engine)
        log.debug(
            "Database ready at %s (revision %s)",
            resolved_engine.url,
            current_revision(resolved_engine),
        )
        return cls(resolved_engine)

    def dispose(self) -> None:
        self.engine.dispose()

    def import_uow(self) -> SqlAlchemyImportUnitOfWork:
        return SqlAlchemyImportUnitOfWork(self.session_factory)

    def publication_uow(self) -> SqlAlchemyPublicationUnitOfWork:
        return SqlAlchemyPublicationUnitOfWork(self.session_factory)

    def usage_uow(self) -> SqlAlchemyUsageUnitOfWork:
        return SqlAlchemyUsageUnitOfWork(self.session_factory)


class BaseSqlAlchemyUnitOfWork[TRepositories: RepositoryCollection](ABC):
    """Generic SQLAlchemy unit of work with pluggable repository collections."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self.session_factory = session_factory
        self._session: Session | None = None

    @abstractmethod
    def _build_repositories(self, session: Session) -> TRepositories: ...

    def __enter__(self) -> BaseSqlAlchemyUnitOfWork[TRepositories]:
        self.session = self.session_factory()
        self._repositories = self._build_repositories(self.session)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        if exc_type is not None:
            self.rollback()
        self.session.close()
        self.session = None
        return False

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

    @property
    def repositories(self) -> TRepositories:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._repositories

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._session

    @session.setter
    def session(self, session: Session | None) -> None:
        if self._session is not None and session is not None:
            raise StartupError("Unit of work session already initialised")
        self._session = session


class SqlAlchemyImportUnitOfWork(BaseSqlAlchemyUnitOfWork[ImportRepositories]):
    def _build_repositories(self, session: Session) -> ImportRepositories:
        return ImportRepositories(
            jobs=SqlAlchemyImportJobRepository(session),
            records=SqlAlchemyImportRecordRepository(session),
        )


class SqlAlchemyPublicationUnitOfWork(BaseSqlAlchemyUnitOfWork[PublicationRepositories]):
    def _build_repositories(self, session: Session) -> PublicationRepositories:
        return PublicationRepositories(
            published=SqlAlchemyPublishedResourceRepository(session),
            suggestions=SqlAlchemyResourceSuggestionRepository(session),
            verification_logs=SqlAlchemyVerificationLogRepository(session),
        )


class SqlAlchemyUsageUnitOfWork(BaseSqlAlchemyUnitOfWork[UsageRepositories]):
    def _build_repositories(self, session: Session) -> UsageRepositories:
        return UsageRepositories(usage_logs=SqlAlchemyUsageLogRepository(session))


if TYPE_CHECKING:
    from resourcevet.domain.ports.unit_of_work import (
        ImportUnitOfWork,
        PublicationUnitOfWork,
        UsageUnitOfWork,
    )

    _factory = sessionmaker[Session]()
    _uow_import_check: ImportUnitOfWork = SqlAlchemyImportUnitOfWork(_factory)
    _uow_publication_check: PublicationUnitOfWork = SqlAlchemyPublicationUnitOfWork(_factory)
    _uow_usage_check: UsageUnitOfWork = SqlAlchemyUsageUnitOfWork(_factory)

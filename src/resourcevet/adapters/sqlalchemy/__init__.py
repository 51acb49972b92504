"""SQLAlchemy adapter package for resourcevet."""

from __future__ import annotations

from .mappings import create_all_tables, mapper_registry, start_mappers
from .repositories import (
    SqlAlchemyImportJobRepository,
    SqlAlchemyImportRecordRepository,
    SqlAlchemyPublishedResourceRepository,
    SqlAlchemyResourceSuggestionRepository,
    SqlAlchemyUsageLogRepository,
    SqlAlchemyVerificationLogRepository,
)
from .unit_of_work import (
    Database,
    SqlAlchemyImportUnitOfWork,
    SqlAlchemyPublicationUnitOfWork,
    SqlAlchemyUsageUnitOfWork,
    StartupError,
)

__all__ = [
    "Database",
    "SqlAlchemyImportJobRepository",
    "SqlAlchemyImportRecordRepository",
    "SqlAlchemyImportUnitOfWork",
    "SqlAlchemyPublicationUnitOfWork",
    "SqlAlchemyPublishedResourceRepository",
    "SqlAlchemyResourceSuggestionRepository",
    "SqlAlchemyUsageLogRepository",
    "SqlAlchemyUsageUnitOfWork",
    "SqlAlchemyVerificationLogRepository",
    "StartupError",
    "create_all_tables",
    "mapper_registry",
    "start_mappers",
]

"""Alembic migrations for the resourcevet schema, run programmatically at startup."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Final

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from sqlalchemy import create_engine

from resourcevet.config.storage import get_database_config

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

MIGRATIONS_PATH: Final[Path] = Path(__file__).resolve().parent


def upgrade_head(*, engine: Engine | None = None, database_uri: str | None = None) -> None:
    """Upgrade the database schema to the latest revision.

    The upgrade runs on a connection of ``engine`` so in-memory SQLite databases
    keep the tables; without an engine one is created for ``database_uri``.
    """

    owned = engine is None
    resolved = engine or create_engine(database_uri or get_database_config().uri, future=True)
    config = Config()
    config.set_main_option("script_location", str(MIGRATIONS_PATH))
    try:
        with resolved.begin() as connection:
            config.attributes["connection"] = connection
            command.upgrade(config, "head")
    finally:
        if owned:
            resolved.dispose()


def current_revision(engine: Engine) -> str | None:
    with engine.connect() as connection:
        return MigrationContext.configure(connection).get_current_revision()

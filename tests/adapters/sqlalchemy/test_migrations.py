from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import inspect

from resourcevet.adapters.sqlalchemy import Database
from resourcevet.adapters.sqlalchemy.migrations import current_revision

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine


def test_startup_upgrades_schema(sqlite_engine: Engine) -> None:
    Database.startup(engine=sqlite_engine)

    tables = set(inspect(sqlite_engine).get_table_names())

    assert {
        "import_job",
        "import_record",
        "published_resource",
        "resource_suggestion",
        "verification_log",
        "usage_log",
        "alembic_version",
    } <= tables


def test_startup_is_idempotent(sqlite_engine: Engine) -> None:
    Database.startup(engine=sqlite_engine)
    Database.startup(engine=sqlite_engine)

    columns = {column["name"] for column in inspect(sqlite_engine).get_columns("import_record")}
    assert {"geocoding_attempted", "original_address", "verification_reason"} <= columns


def test_schema_is_stamped_with_latest_revision(sqlite_engine: Engine) -> None:
    assert current_revision(sqlite_engine) is None

    Database.startup(engine=sqlite_engine)

    assert current_revision(sqlite_engine) == "0001_initial"

"""Load raw source records from CSV or JSON exports on disk."""

from __future__ import annotations

import csv
import json
from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING, Any, cast

if TYPE_CHECKING:
    from collections.abc import Iterable

log = getLogger(__name__)

STATE_KEYS = ("State", "state")


class RecordFileError(ValueError):
    """The record file is missing, unreadable or not a supported format."""


def load_records(path: str | Path) -> list[dict[str, Any]]:
    """Read every record from ``path``.

    CSV files need a header row; cells are trimmed and blank lines skipped.
    JSON files hold either a list of objects or an object with a ``records`` list.
    """

    file_path = Path(path)
    if not file_path.is_file():
        raise RecordFileError(f"Record file not found: {file_path}")

    suffix = file_path.suffix.lower()
    if suffix == ".csv":
        records = _load_csv(file_path)
    elif suffix == ".json":
        records = _load_json(file_path)
    else:
        raise RecordFileError(f"Unsupported record file type: {file_path.suffix or '(none)'}")
    log.info("Parsed %d records from %s", len(records), file_path)
    return records


def filter_by_state(records: Iterable[dict[str, Any]], state: str | None) -> list[dict[str, Any]]:
    if not state:
        return list(records)
    return [
        record for record in records if any(record.get(key) == state for key in STATE_KEYS)
    ]


def _load_csv(path: Path) -> list[dict[str, Any]]:
    with path.open(newline="", encoding="utf-8-sig") as handle:
        reader = csv.DictReader(handle)
        if reader.fieldnames is None:
            return []
        records: list[dict[str, Any]] = []
        for row in reader:
            cleaned = {
                key.strip(): value.strip() if isinstance(value, str) else value
                for key, value in row.items()
                if key is not None
            }
            if any(value for value in cleaned.values()):
                records.append(cleaned)
        return records


def _load_json(path: Path) -> list[dict[str, Any]]:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise RecordFileError(f"Invalid JSON in {path}: {exc}") from exc

    if isinstance(payload, dict) and "records" in payload:
        payload = cast(dict[str, Any], payload)["records"]
    if not isinstance(payload, list):
        raise RecordFileError(f"{path} must contain a list of records")
    items = cast(list[Any], payload)
    if not all(isinstance(item, dict) for item in items):
        raise RecordFileError(f"{path} must contain only JSON objects")
    return [cast(dict[str, Any], item) for item in items]

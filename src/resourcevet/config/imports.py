"""Defaults for import jobs and background services."""

from __future__ import annotations

from dataclasses import dataclass

from .env import env_int

DEFAULT_IMPORT_BATCH_SIZE = 50
DEFAULT_USAGE_LOG_QUEUE_SIZE = 1000
DEFAULT_USAGE_LOG_FLUSH_SIZE = 50
DEFAULT_VERIFICATION_WORKERS = 4
DEFAULT_VERIFICATION_QUEUE_SIZE = 200


@dataclass(frozen=True, slots=True)
class ImportDefaults:
    batch_size: int = DEFAULT_IMPORT_BATCH_SIZE
    usage_log_queue_size: int = DEFAULT_USAGE_LOG_QUEUE_SIZE
    usage_log_flush_size: int = DEFAULT_USAGE_LOG_FLUSH_SIZE
    verification_workers: int = DEFAULT_VERIFICATION_WORKERS
    verification_queue_size: int = DEFAULT_VERIFICATION_QUEUE_SIZE


def get_import_defaults() -> ImportDefaults:
    return ImportDefaults(
        batch_size=env_int("RESOURCEVET_BATCH_SIZE", DEFAULT_IMPORT_BATCH_SIZE),
        verification_workers=env_int("RESOURCEVET_VERIFICATION_WORKERS", DEFAULT_VERIFICATION_WORKERS),
    )

"""Stable fingerprints of raw record lists."""

from __future__ import annotations

import hashlib
import json
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence


def fingerprint_records(records: Sequence[Mapping[str, object]]) -> str:
    """Return ``"<count>:<sha256>"`` over the canonical JSON of ``records``.

    Key order inside a record does not matter; record order does.
    """

    digest = hashlib.sha256()
    for record in records:
        digest.update(json.dumps(record, sort_keys=True, default=str).encode("utf-8"))
        digest.update(b"\n")
    return f"{len(records)}:{digest.hexdigest()}"

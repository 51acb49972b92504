"""Verification event sinks."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from resourcevet.domain.model import VerificationResult

log = logging.getLogger(__name__)


class LoggingEventSink:
    """Writes verification lifecycle events to the module logger."""

    def started(self, candidate_key: str) -> None:
        log.debug("Verification started for %s", candidate_key)

    def progress(self, candidate_key: str, message: str) -> None:
        log.debug("[%s] %s", candidate_key, message)

    def completed(self, candidate_key: str, result: VerificationResult) -> None:
        log.info(
            "Verification of %s finished: %s (score %.2f, $%.4f, %d calls)",
            candidate_key,
            result.decision,
            result.overall_score,
            result.cost_usd,
            result.api_calls_made,
        )

"""Exception hierarchy for the ingestion and verification pipeline."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence


class ResourceVetError(Exception):
    """Base class for every error raised by resourcevet."""


class NormalizationError(ResourceVetError):
    """A raw record could not be translated into the canonical schema.

    Carries the source name and an excerpt of the raw payload so a failing row can be
    traced back to its origin.
    """

    def __init__(self, message: str, *, source_name: str, raw_excerpt: str = "") -> None:
        super().__init__(message)
        self.source_name = source_name
        self.raw_excerpt = raw_excerpt


class MissingRequiredFieldsError(NormalizationError):
    def __init__(self, missing: Sequence[str], *, source_name: str, raw_excerpt: str = "") -> None:
        self.missing = list(missing)
        message = (
            f"Missing required fields for {source_name}: {', '.join(self.missing)}, "
            f"Raw data: {raw_excerpt}"
        )
        super().__init__(message, source_name=source_name, raw_excerpt=raw_excerpt)


class UnknownCategoryError(NormalizationError):
    def __init__(
        self,
        candidates: Sequence[str],
        *,
        source_name: str,
        raw_excerpt: str = "",
    ) -> None:
        self.candidates = list(candidates)
        tried = ", ".join(self.candidates) if self.candidates else "none"
        message = (
            f"No category mapping for {source_name} (tried: {tried}), Raw data: {raw_excerpt}"
        )
        super().__init__(message, source_name=source_name, raw_excerpt=raw_excerpt)


class UnknownSourceError(NormalizationError):
    def __init__(self, source_name: str) -> None:
        super().__init__(f"Unknown source: {source_name}", source_name=source_name)


class EnrichmentError(ResourceVetError):
    """Geocoding or other enrichment failed; the record proceeds without it."""


class ExternalServiceError(ResourceVetError):
    """An external collaborator (probe, cross-reference, LLM) failed or misbehaved."""

    def __init__(self, message: str, *, service: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.service = service
        self.status_code = status_code


class BatchSubmissionError(ResourceVetError):
    """The publication endpoint was unreachable or rejected a batch."""

    def __init__(self, message: str, *, batch_index: int | None = None) -> None:
        super().__init__(message)
        self.batch_index = batch_index


class JobFatalError(ResourceVetError):
    """An unexpected failure aborted an import job."""


class InvalidStatusTransitionError(ResourceVetError):
    def __init__(self, entity: str, current: str, target: str) -> None:
        super().__init__(f"Cannot move {entity} from {current} to {target}")
        self.entity = entity
        self.current = current
        self.target = target


class CheckpointError(ResourceVetError):
    """A job cannot be resumed from its stored checkpoint."""


class QueueFullError(ResourceVetError):
    """A bounded work queue rejected a submission."""

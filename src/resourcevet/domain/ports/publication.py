"""Wire shapes and port for batch publication."""

from __future__ import annotations

from typing import Literal, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field

from resourcevet.domain.model import NormalizedResource, VerificationLevel

type PublicationStatus = Literal["approved", "flagged", "rejected", "error", "skipped"]


class BatchSubmission(BaseModel):
    resources: list[NormalizedResource]
    submitter: str | None = None
    verification_level: VerificationLevel | None = None
    notes: str | None = None


class BatchStats(BaseModel):
    model_config = ConfigDict(extra="ignore")

    total: int = 0
    submitted: int = 0
    auto_approved: int = 0
    flagged: int = 0
    rejected: int = 0
    skipped_duplicates: int = 0
    errors: int = 0


class PublicationResult(BaseModel):
    model_config = ConfigDict(extra="ignore")

    source_id: str
    status: PublicationStatus
    resource_id: str | None = None
    suggestion_id: str | None = None
    verification_score: float | None = None
    decision_reason: str | None = None
    error: str | None = None


class BatchResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    success: bool
    stats: BatchStats = Field(default_factory=BatchStats)
    results: list[PublicationResult] = Field(default_factory=list)


@runtime_checkable
class PublicationEndpoint(Protocol):
    """Accepts a batch and performs create/flag/reject side effects.

    Raises on transport failure; ``results[i]`` corresponds to ``resources[i]``.
    """

    async def submit(self, batch: BatchSubmission) -> BatchResponse: ...


__all__ = [
    "BatchResponse",
    "BatchStats",
    "BatchSubmission",
    "PublicationEndpoint",
    "PublicationResult",
    "PublicationStatus",
]

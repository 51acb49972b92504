"""Verification results and the records written when decisions are applied."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

from .enums import Decision, SuggestionStatus, VerificationType

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .resource import NormalizedResource


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(frozen=True, slots=True)
class CheckResult:
    passed: bool
    confidence: float | None = None
    evidence: str | None = None
    details: Mapping[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, object]:
        return {
            "pass": self.passed,
            "confidence": self.confidence,
            "evidence": self.evidence,
            "details": dict(self.details),
        }


@dataclass(frozen=True, slots=True)
class FieldConflict:
    """Disagreement between a claimed value and one observed in an external source."""

    field: str
    submitted: object
    found: object
    confidence: float
    source: str

    def to_dict(self) -> dict[str, object]:
        return {
            "field": self.field,
            "submitted": self.submitted,
            "found": self.found,
            "confidence": self.confidence,
            "source": self.source,
        }


@dataclass(frozen=True, slots=True)
class VerificationResult:
    overall_score: float
    checks: Mapping[str, CheckResult]
    conflicts: tuple[FieldConflict, ...]
    decision: Decision
    decision_reason: str
    cost_usd: float
    duration_ms: int
    api_calls_made: int
    changes_detected: tuple[str, ...] = ()

    @property
    def high_confidence_conflicts(self) -> tuple[FieldConflict, ...]:
        return tuple(c for c in self.conflicts if c.confidence > 0.7)

    def to_dict(self) -> dict[str, object]:
        return {
            "overall_score": self.overall_score,
            "checks": {name: check.to_dict() for name, check in self.checks.items()},
            "conflicts": [conflict.to_dict() for conflict in self.conflicts],
            "decision": str(self.decision),
            "decision_reason": self.decision_reason,
            "cost_usd": self.cost_usd,
            "duration_ms": self.duration_ms,
            "api_calls_made": self.api_calls_made,
            "changes_detected": list(self.changes_detected),
        }


@dataclass(eq=False, kw_only=True)
class VerificationLog:
    """Persisted copy of one verification run."""

    candidate_key: str
    verification_type: VerificationType
    result: dict[str, object]
    decision: Decision
    overall_score: float
    cost_usd: float
    id: UUID = field(default_factory=uuid4)
    resource_id: UUID | None = None
    suggestion_id: UUID | None = None
    created_at: datetime = field(default_factory=_utcnow)

    @classmethod
    def from_result(
        cls,
        candidate_key: str,
        verification_type: VerificationType,
        result: VerificationResult,
        *,
        resource_id: UUID | None = None,
        suggestion_id: UUID | None = None,
    ) -> VerificationLog:
        return cls(
            candidate_key=candidate_key,
            verification_type=verification_type,
            result=result.to_dict(),
            decision=result.decision,
            overall_score=result.overall_score,
            cost_usd=result.cost_usd,
            resource_id=resource_id,
            suggestion_id=suggestion_id,
        )


@dataclass(eq=False, kw_only=True)
class UsageLog:
    """Cost and token accounting for one LLM call."""

    operation_type: str
    provider: str
    model: str
    input_tokens: int
    output_tokens: int
    input_cost_usd: float
    output_cost_usd: float
    duration_ms: int
    id: UUID = field(default_factory=uuid4)
    candidate_key: str | None = None
    context: dict[str, object] | None = None
    created_at: datetime = field(default_factory=_utcnow)

    @property
    def total_cost_usd(self) -> float:
        return self.input_cost_usd + self.output_cost_usd


@dataclass(eq=False, kw_only=True)
class PublishedResource:
    source_name: str
    source_id: str
    resource: NormalizedResource
    verification_score: float
    id: UUID = field(default_factory=uuid4)
    submitter: str | None = None
    created_at: datetime = field(default_factory=_utcnow)


@dataclass(eq=False, kw_only=True)
class ResourceSuggestion:
    source_name: str
    source_id: str
    resource: NormalizedResource
    status: SuggestionStatus
    verification_score: float
    admin_notes: str
    id: UUID = field(default_factory=uuid4)
    submitter: str | None = None
    notes: str | None = None
    created_at: datetime = field(default_factory=_utcnow)

"""In-process publication endpoint that verifies each candidate before publishing."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from resourcevet.domain.model import (
    CheckName,
    Decision,
    PublishedResource,
    ResourceSuggestion,
    SuggestionStatus,
    VerificationLog,
    VerificationType,
)
from resourcevet.domain.ports import (
    BatchResponse,
    BatchStats,
    BatchSubmission,
    PublicationResult,
)
from resourcevet.domain.verification import candidate_key_for

if TYPE_CHECKING:
    from resourcevet.domain.model import NormalizedResource, VerificationResult
    from resourcevet.domain.ports.unit_of_work import (
        PublicationUnitOfWork,
        PublicationUnitOfWorkFactory,
    )

log = logging.getLogger(__name__)


class CandidateVerifier(Protocol):
    """The agent itself, or a worker pool running it."""

    async def verify(
        self,
        candidate: NormalizedResource,
        verification_type: VerificationType = ...,
    ) -> VerificationResult: ...


@dataclass(frozen=True, slots=True)
class AppliedDecision:
    status: str
    resource_id: str | None = None
    suggestion_id: str | None = None


class DecisionApplier:
    """Writes the side effects of a verification decision inside a unit of work."""

    def __init__(self, verification_type: VerificationType = VerificationType.INITIAL) -> None:
        self.verification_type = verification_type

    def apply(
        self,
        uow: PublicationUnitOfWork,
        candidate: NormalizedResource,
        result: VerificationResult,
        *,
        submitter: str | None = None,
        notes: str | None = None,
    ) -> AppliedDecision:
        repos = uow.repositories
        key = candidate_key_for(candidate)
        source = candidate.source

        if result.decision is Decision.AUTO_APPROVE:
            published = PublishedResource(
                source_name=source.source_name,
                source_id=source.source_id,
                resource=enrich_from_checks(candidate, result),
                verification_score=result.overall_score,
                submitter=submitter,
            )
            repos.published.add(published)
            repos.verification_logs.add(
                VerificationLog.from_result(
                    key, self.verification_type, result, resource_id=published.id
                )
            )
            return AppliedDecision(status="approved", resource_id=str(published.id))

        flagged = result.decision is Decision.FLAG_FOR_HUMAN
        suggestion = ResourceSuggestion(
            source_name=source.source_name,
            source_id=source.source_id,
            resource=candidate,
            status=SuggestionStatus.PENDING if flagged else SuggestionStatus.REJECTED,
            verification_score=result.overall_score,
            admin_notes=(
                result.decision_reason if flagged else f"Auto-rejected: {result.decision_reason}"
            ),
            submitter=submitter,
            notes=notes,
        )
        repos.suggestions.add(suggestion)
        repos.verification_logs.add(
            VerificationLog.from_result(
                key, self.verification_type, result, suggestion_id=suggestion.id
            )
        )
        if flagged:
            return AppliedDecision(status="flagged", suggestion_id=str(suggestion.id))
        return AppliedDecision(status="rejected")


def enrich_from_checks(
    candidate: NormalizedResource,
    result: VerificationResult,
) -> NormalizedResource:
    """Carry a repaired website and geocoded coordinates into the published copy."""

    changes: dict[str, object] = {}
    url_check = result.checks.get(CheckName.URL_REACHABLE)
    if url_check is not None and url_check.passed:
        repaired = url_check.details.get("repaired_url")
        if repaired:
            changes["website"] = repaired
    geo_check = result.checks.get(CheckName.ADDRESS_GEOCODED)
    if geo_check is not None and geo_check.passed and not candidate.has_coordinates:
        details = geo_check.details
        if details.get("latitude") is not None and details.get("longitude") is not None:
            changes["latitude"] = details["latitude"]
            changes["longitude"] = details["longitude"]
            if details.get("formatted_address"):
                changes["formatted_address"] = details["formatted_address"]
    return candidate.with_updates(**changes) if changes else candidate


class VerifyingPublisher:
    """Local :class:`PublicationEndpoint` backed by the verification agent.

    Candidates already published or suggested under the same
    ``(source_name, source_id)`` are skipped as duplicates, as are repeats within
    one batch. Everything else is verified concurrently and the decisions are
    applied in a single unit of work.
    """

    def __init__(
        self,
        verifier: CandidateVerifier,
        uow_factory: PublicationUnitOfWorkFactory,
        *,
        verification_type: VerificationType = VerificationType.INITIAL,
    ) -> None:
        self._verifier = verifier
        self._uow_factory = uow_factory
        self._applier = DecisionApplier(verification_type)
        self._verification_type = verification_type

    async def submit(self, batch: BatchSubmission) -> BatchResponse:
        stats = BatchStats(total=len(batch.resources))
        results: list[PublicationResult | None] = [None] * len(batch.resources)

        to_verify: list[tuple[int, NormalizedResource]] = []
        seen: set[tuple[str, str]] = set()
        with self._uow_factory() as uow:
            for position, candidate in enumerate(batch.resources):
                key = (candidate.source.source_name, candidate.source.source_id)
                if key in seen or self._exists(uow, *key):
                    stats.skipped_duplicates += 1
                    results[position] = PublicationResult(
                        source_id=candidate.source.source_id,
                        status="skipped",
                        decision_reason="Duplicate of an existing resource or suggestion",
                    )
                    continue
                seen.add(key)
                to_verify.append((position, candidate))

        outcomes = await asyncio.gather(
            *(
                self._verifier.verify(candidate, self._verification_type)
                for _, candidate in to_verify
            ),
            return_exceptions=True,
        )

        with self._uow_factory() as uow:
            for (position, candidate), outcome in zip(to_verify, outcomes, strict=True):
                results[position] = self._apply(uow, candidate, outcome, batch, stats)
            uow.commit()

        stats.submitted = len(to_verify)
        return BatchResponse(
            success=True,
            stats=stats,
            results=[result for result in results if result is not None],
        )

    def _apply(
        self,
        uow: PublicationUnitOfWork,
        candidate: NormalizedResource,
        outcome: VerificationResult | BaseException,
        batch: BatchSubmission,
        stats: BatchStats,
    ) -> PublicationResult:
        source_id = candidate.source.source_id
        if isinstance(outcome, BaseException) and not isinstance(outcome, Exception):
            raise outcome
        if isinstance(outcome, BaseException):
            log.error("Verification of %s failed: %s", candidate_key_for(candidate), outcome)
            stats.errors += 1
            return PublicationResult(source_id=source_id, status="error", error=str(outcome))

        applied = self._applier.apply(
            uow, candidate, outcome, submitter=batch.submitter, notes=batch.notes
        )
        if applied.status == "approved":
            stats.auto_approved += 1
        elif applied.status == "flagged":
            stats.flagged += 1
        else:
            stats.rejected += 1
        return PublicationResult(
            source_id=source_id,
            status=applied.status,  # type: ignore[arg-type]
            resource_id=applied.resource_id,
            suggestion_id=applied.suggestion_id,
            verification_score=outcome.overall_score,
            decision_reason=outcome.decision_reason,
        )

    @staticmethod
    def _exists(uow: PublicationUnitOfWork, source_name: str, source_id: str) -> bool:
        repos = uow.repositories
        return (
            repos.published.get_by_source_key(source_name, source_id) is not None
            or repos.suggestions.get_by_source_key(source_name, source_id) is not None
        )

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from resourcevet.domain.importing import VerifyingPublisher, enrich_from_checks
from resourcevet.domain.model import (
    CheckName,
    CheckResult,
    Decision,
    SuggestionStatus,
    VerificationType,
)
from resourcevet.domain.ports import BatchSubmission
from tests.helpers.resources import make_resource, make_result

if TYPE_CHECKING:
    from resourcevet.adapters.sqlalchemy import Database
    from resourcevet.domain.model import NormalizedResource, VerificationResult


@dataclass
class ScriptedVerifier:
    """Returns a canned result per candidate name."""

    results: dict[str, VerificationResult | Exception]
    calls: list[tuple[str, VerificationType]] = field(default_factory=list)

    async def verify(
        self,
        candidate: NormalizedResource,
        verification_type: VerificationType = VerificationType.INITIAL,
    ) -> VerificationResult:
        self.calls.append((candidate.name, verification_type))
        outcome = self.results[candidate.name]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def _publisher(database: Database, verifier: ScriptedVerifier) -> VerifyingPublisher:
    return VerifyingPublisher(verifier, database.publication_uow)  # type: ignore[arg-type]


def _batch(*resources: NormalizedResource) -> BatchSubmission:
    return BatchSubmission(
        resources=list(resources),
        submitter="Bulk Import: DOL CareerOneStop - American Job Centers",
        notes="Imported from careeronestop",
    )


def test_decisions_are_applied_per_candidate(database: Database) -> None:
    verifier = ScriptedVerifier(
        {
            "Approved Center": make_result(Decision.AUTO_APPROVE, score=0.92),
            "Flagged Center": make_result(
                Decision.FLAG_FOR_HUMAN, score=0.72, reason="Does not meet auto-approve criteria"
            ),
            "Rejected Center": make_result(
                Decision.AUTO_REJECT, score=0.3, reason="Website URL is not reachable"
            ),
        }
    )
    batch = _batch(
        make_resource("Approved Center", source_id="a"),
        make_resource("Flagged Center", source_id="f"),
        make_resource("Rejected Center", source_id="r"),
    )

    response = asyncio.run(_publisher(database, verifier).submit(batch))

    assert response.success
    assert [result.status for result in response.results] == ["approved", "flagged", "rejected"]
    assert response.stats.total == 3
    assert response.stats.submitted == 3
    assert response.stats.auto_approved == 1
    assert response.stats.flagged == 1
    assert response.stats.rejected == 1

    approved, flagged, rejected = response.results
    assert approved.resource_id is not None
    assert approved.suggestion_id is None
    assert approved.verification_score == 0.92
    assert flagged.suggestion_id is not None
    assert flagged.decision_reason == "Does not meet auto-approve criteria"
    assert rejected.resource_id is None
    assert rejected.suggestion_id is None

    with database.publication_uow() as uow:
        repos = uow.repositories
        published = repos.published.get_by_source_key("careeronestop", "a")
        pending = repos.suggestions.get_by_source_key("careeronestop", "f")
        declined = repos.suggestions.get_by_source_key("careeronestop", "r")
        logs = repos.verification_logs.list_for_candidate("careeronestop:a")

    assert published is not None
    assert str(published.id) == approved.resource_id
    assert published.submitter == "Bulk Import: DOL CareerOneStop - American Job Centers"
    assert pending is not None
    assert pending.status is SuggestionStatus.PENDING
    assert pending.admin_notes == "Does not meet auto-approve criteria"
    assert pending.notes == "Imported from careeronestop"
    assert declined is not None
    assert declined.status is SuggestionStatus.REJECTED
    assert declined.admin_notes == "Auto-rejected: Website URL is not reachable"
    assert len(logs) == 1
    assert logs[0].resource_id == published.id
    assert logs[0].decision is Decision.AUTO_APPROVE
    assert logs[0].verification_type is VerificationType.INITIAL


def test_duplicates_are_skipped_without_verification(database: Database) -> None:
    verifier = ScriptedVerifier({"Downtown Job Center": make_result()})
    publisher = _publisher(database, verifier)
    resource = make_resource()

    first = asyncio.run(publisher.submit(_batch(resource, resource)))
    second = asyncio.run(publisher.submit(_batch(resource)))

    assert [result.status for result in first.results] == ["approved", "skipped"]
    assert first.stats.skipped_duplicates == 1
    assert first.stats.submitted == 1
    assert [result.status for result in second.results] == ["skipped"]
    assert second.results[0].source_id == "ajc-1"
    assert len(verifier.calls) == 1


def test_verification_errors_become_error_results(database: Database) -> None:
    verifier = ScriptedVerifier(
        {
            "Good Center": make_result(),
            "Broken Center": RuntimeError("geocoder exploded"),
        }
    )
    batch = _batch(
        make_resource("Good Center", source_id="g"),
        make_resource("Broken Center", source_id="b"),
    )

    response = asyncio.run(_publisher(database, verifier).submit(batch))

    assert [result.status for result in response.results] == ["approved", "error"]
    assert response.results[1].error == "geocoder exploded"
    assert response.stats.errors == 1
    with database.publication_uow() as uow:
        assert uow.repositories.published.get_by_source_key("careeronestop", "g") is not None
        assert uow.repositories.suggestions.get_by_source_key("careeronestop", "b") is None


def test_periodic_verification_type_is_passed_through(database: Database) -> None:
    verifier = ScriptedVerifier({"Downtown Job Center": make_result()})
    publisher = VerifyingPublisher(
        verifier,  # type: ignore[arg-type]
        database.publication_uow,
        verification_type=VerificationType.PERIODIC,
    )

    asyncio.run(publisher.submit(_batch(make_resource())))

    assert verifier.calls == [("Downtown Job Center", VerificationType.PERIODIC)]
    with database.publication_uow() as uow:
        (entry,) = uow.repositories.verification_logs.list_for_candidate("careeronestop:ajc-1")
    assert entry.verification_type is VerificationType.PERIODIC


def test_enrich_from_checks_carries_repairs_and_coordinates() -> None:
    result = make_result(
        checks={
            CheckName.URL_REACHABLE: CheckResult(
                passed=True, details={"repaired_url": "https://new.example.org"}
            ),
            CheckName.ADDRESS_GEOCODED: CheckResult(
                passed=True,
                details={
                    "latitude": 39.78,
                    "longitude": -89.65,
                    "formatted_address": "123 Main St, Springfield, IL 62701, USA",
                },
            ),
        }
    )

    enriched = enrich_from_checks(make_resource(), result)

    assert enriched.website == "https://new.example.org"
    assert enriched.latitude == 39.78
    assert enriched.formatted_address == "123 Main St, Springfield, IL 62701, USA"


def test_enrich_from_checks_keeps_existing_coordinates() -> None:
    resource = make_resource(latitude=40.0, longitude=-88.0)
    result = make_result(
        checks={
            CheckName.ADDRESS_GEOCODED: CheckResult(
                passed=True, details={"latitude": 39.78, "longitude": -89.65}
            ),
        }
    )

    assert enrich_from_checks(resource, result) is resource

from __future__ import annotations

from typing import TYPE_CHECKING

from resourcevet.domain.model import (
    Checkpoint,
    Decision,
    ImportJob,
    ImportJobSettings,
    ImportRecord,
    JobStatus,
    PublishedResource,
    RecordStatus,
    ResourceSuggestion,
    SuggestionStatus,
    UsageLog,
    VerificationLevel,
    VerificationLog,
    VerificationType,
)
from tests.helpers.resources import make_resource, make_result

if TYPE_CHECKING:
    from resourcevet.adapters.sqlalchemy import Database


def _usage_log(operation: str = "verification") -> UsageLog:
    return UsageLog(
        operation_type=operation,
        provider="openai",
        model="gpt-4o-mini",
        input_tokens=1000,
        output_tokens=200,
        input_cost_usd=0.00015,
        output_cost_usd=0.00012,
        duration_ms=250,
        candidate_key="careeronestop:ajc-1",
        context={"city": "Springfield"},
    )


def test_import_job_round_trip(database: Database) -> None:
    job = ImportJob(
        source_name="careeronestop",
        source_url="https://example.gov/ajc.csv",
        total_records=10,
        settings=ImportJobSettings(
            batch_size=5,
            verification_level=VerificationLevel.L1,
            filters={"state": "IL", "nationwide": False},
        ),
    )
    job.transition(JobStatus.RUNNING)
    job.save_checkpoint(Checkpoint(last_processed_index=5, source_fingerprint="abc"))
    job.record_error("Publication endpoint rejected the batch", batch_index=0)

    with database.import_uow() as uow:
        uow.repositories.jobs.add(job)
        uow.commit()

    with database.import_uow() as uow:
        loaded = uow.repositories.jobs.get(job.id)

    assert loaded is not None
    assert loaded.status is JobStatus.RUNNING
    assert loaded.checkpoint is not None
    assert loaded.checkpoint.last_processed_index == 5
    assert loaded.checkpoint.source_fingerprint == "abc"
    assert loaded.settings.batch_size == 5
    assert loaded.settings.verification_level is VerificationLevel.L1
    assert loaded.settings.filters == {"state": "IL", "nationwide": False}
    assert [error.batch_index for error in loaded.error_log] == [0]
    assert loaded.started_at is not None
    assert loaded.started_at.tzinfo is not None


def test_list_recent_orders_newest_first(database: Database) -> None:
    first = ImportJob(source_name="careeronestop")
    second = ImportJob(source_name="community_csv")
    second.created_at = first.created_at.replace(year=first.created_at.year + 1)

    with database.import_uow() as uow:
        uow.repositories.jobs.add(first)
        uow.repositories.jobs.add(second)
        uow.commit()

    with database.import_uow() as uow:
        jobs = uow.repositories.jobs.list_recent(limit=1)

    assert [job.id for job in jobs] == [second.id]


def test_record_queries_and_cleanup_from_index(database: Database) -> None:
    job = ImportJob(source_name="careeronestop")
    approved = ImportRecord(
        job_id=job.id,
        source_id="ajc-1",
        raw_data={"ID": "ajc-1"},
        record_index=0,
        normalized_data=make_resource(),
    )
    approved.transition(RecordStatus.PROCESSING)
    approved.transition(RecordStatus.VERIFYING)
    approved.complete(RecordStatus.APPROVED, resource_id="res-1", verification_score=0.9)
    stray = ImportRecord(job_id=job.id, source_id="ajc-2", raw_data={"ID": "ajc-2"})
    stray.transition(RecordStatus.PROCESSING)
    failed = ImportRecord(
        job_id=job.id, source_id="ajc-3", raw_data={"ID": "ajc-3"}, record_index=1
    )
    failed.fail("Publication returned no result for this record")
    replayed = ImportRecord(
        job_id=job.id, source_id="ajc-4", raw_data={"ID": "ajc-4"}, record_index=2
    )
    replayed.fail("Missing required fields")

    with database.import_uow() as uow:
        uow.repositories.jobs.add(job)
        for record in (approved, stray, failed, replayed):
            uow.repositories.records.add(record)
        uow.commit()

    with database.import_uow() as uow:
        records = uow.repositories.records
        assert sorted(records.statuses_for_job(job.id)) == sorted(
            [
                RecordStatus.APPROVED,
                RecordStatus.PROCESSING,
                RecordStatus.ERROR,
                RecordStatus.ERROR,
            ]
        )
        errors = records.list_for_job(job.id, status=RecordStatus.ERROR)
        assert sorted(record.source_id for record in errors) == ["ajc-3", "ajc-4"]
        assert records.delete_from_index(job.id, 2) == 2
        uow.commit()

    with database.import_uow() as uow:
        remaining = uow.repositories.records.list_for_job(job.id)
        loaded = {record.source_id: record for record in remaining}

    assert set(loaded) == {"ajc-1", "ajc-3"}
    assert loaded["ajc-1"].resource_id == "res-1"
    normalized = loaded["ajc-1"].normalized_data
    assert normalized is not None
    assert normalized.name == "Downtown Job Center"
    assert normalized.source.source_id == "ajc-1"


def test_publication_repositories_find_by_source_key(database: Database) -> None:
    resource = make_resource()
    published = PublishedResource(
        source_name="careeronestop",
        source_id="ajc-1",
        resource=resource,
        verification_score=0.9,
        submitter="Bulk Import: DOL CareerOneStop - American Job Centers",
    )
    suggestion = ResourceSuggestion(
        source_name="careeronestop",
        source_id="ajc-2",
        resource=make_resource(source_id="ajc-2"),
        status=SuggestionStatus.PENDING,
        verification_score=0.6,
        admin_notes="Verification score below auto-approve threshold: 60%",
    )
    result = make_result(Decision.FLAG_FOR_HUMAN, score=0.6)
    log_entry = VerificationLog.from_result(
        "careeronestop:ajc-2",
        VerificationType.INITIAL,
        result,
        suggestion_id=suggestion.id,
    )

    with database.publication_uow() as uow:
        uow.repositories.published.add(published)
        uow.repositories.suggestions.add(suggestion)
        uow.repositories.verification_logs.add(log_entry)
        uow.commit()

    with database.publication_uow() as uow:
        repos = uow.repositories
        found = repos.published.get_by_source_key("careeronestop", "ajc-1")
        assert found is not None
        assert found.resource.website == "https://jobs.example.org"
        assert repos.published.get_by_source_key("careeronestop", "ajc-2") is None
        pending = repos.suggestions.get_by_source_key("careeronestop", "ajc-2")
        assert pending is not None
        assert pending.status is SuggestionStatus.PENDING
        (stored_log,) = repos.verification_logs.list_for_candidate("careeronestop:ajc-2")
        assert stored_log.decision is Decision.FLAG_FOR_HUMAN
        assert stored_log.suggestion_id == suggestion.id
        assert stored_log.result["decision"] == "flag_for_human"


def test_usage_logs_are_added_in_bulk(database: Database) -> None:
    with database.usage_uow() as uow:
        uow.repositories.usage_logs.add_many([_usage_log(), _usage_log("url_autofix")])
        uow.commit()

    with database.usage_uow() as uow:
        count = uow.session.query(UsageLog).count()

    assert count == 2

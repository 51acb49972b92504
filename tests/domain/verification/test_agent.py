from __future__ import annotations

import asyncio

import pytest

from resourcevet.domain.model import CheckName, Decision, GeocodeConfidence
from resourcevet.domain.ports import CrossReferenceMatch
from resourcevet.domain.verification import CostTracker, VerificationAgent
from tests.helpers.resources import make_resource
from tests.support.fakes import (
    FakeContentFetcher,
    FakeCrossReference,
    FakeGeocoder,
    FakeJudgment,
    FakeProbe,
    RecordingEventSink,
    RecordingUsageSink,
)

WEBSITE = "https://jobs.example.org"


def _agent(
    *,
    probe: FakeProbe | None = None,
    fetcher: FakeContentFetcher | None = None,
    geocoder: FakeGeocoder | None = None,
    judgment: FakeJudgment | None = None,
    cross_references: list[FakeCrossReference] | None = None,
    sink: RecordingUsageSink | None = None,
    events: object | None = None,
) -> VerificationAgent:
    return VerificationAgent(
        probe=probe or FakeProbe(reachable={WEBSITE}),
        content_fetcher=fetcher or FakeContentFetcher(),
        geocoder=geocoder or FakeGeocoder(),
        judgment=judgment,
        cross_references=(
            cross_references
            if cross_references is not None
            else [FakeCrossReference("Google Places"), FakeCrossReference("211")]
        ),
        cost_tracker=CostTracker(sink=sink),
        events=events,  # type: ignore[arg-type]
        clock=iter([10.0, 10.25]).__next__,
    )


def test_fully_corroborated_candidate_is_approved() -> None:
    sink = RecordingUsageSink()
    agent = _agent(judgment=FakeJudgment(), sink=sink)

    result = asyncio.run(agent.verify(make_resource()))

    assert result.decision is Decision.AUTO_APPROVE
    assert result.overall_score == pytest.approx(0.96)
    assert set(result.checks) == {
        CheckName.URL_REACHABLE,
        CheckName.PHONE_VALID,
        CheckName.ADDRESS_GEOCODED,
        CheckName.WEBSITE_CONTENT_MATCHES,
        CheckName.CROSS_REFERENCED,
        CheckName.CONFLICT_DETECTION,
    }
    assert result.api_calls_made == 6
    assert result.duration_ms == 250
    assert result.cost_usd == pytest.approx(0.00027)
    assert [entry.operation_type for entry in sink.entries] == ["verification"]
    assert sink.entries[0].candidate_key == "careeronestop:ajc-1"


def test_geocoder_receives_enriched_address() -> None:
    geocoder = FakeGeocoder(confidence=GeocodeConfidence.LOW)
    agent = _agent(geocoder=geocoder)

    result = asyncio.run(agent.verify(make_resource()))

    assert geocoder.requests[0].address == "123 Main St, Springfield, IL, 62701"
    address = result.checks[CheckName.ADDRESS_GEOCODED]
    assert address.passed
    assert address.confidence == 0.75
    assert address.details["added_fields"] == ["city", "state", "zip"]


def test_unreachable_url_is_repaired_once() -> None:
    repaired = "https://new.example.org"
    probe = FakeProbe(reachable={repaired})
    fetcher = FakeContentFetcher()
    judgment = FakeJudgment(proposed_url=repaired)
    sink = RecordingUsageSink()
    agent = _agent(probe=probe, fetcher=fetcher, judgment=judgment, sink=sink)

    result = asyncio.run(agent.verify(make_resource()))

    url_check = result.checks[CheckName.URL_REACHABLE]
    assert url_check.passed
    assert url_check.details["repaired_url"] == repaired
    assert probe.calls == [WEBSITE, repaired]
    assert fetcher.calls == [repaired]
    assert judgment.url_calls == 1
    assert [entry.operation_type for entry in sink.entries] == ["url_autofix", "verification"]
    assert sink.entries[0].context == {
        "current_url": WEBSITE,
        "city": "Springfield",
        "state": "IL",
    }


def test_unrepairable_url_rejects_candidate() -> None:
    probe = FakeProbe()
    judgment = FakeJudgment(proposed_url=WEBSITE)
    agent = _agent(probe=probe, judgment=judgment)

    result = asyncio.run(agent.verify(make_resource()))

    assert result.decision is Decision.AUTO_REJECT
    assert result.decision_reason == "Website URL is not reachable"
    assert not result.checks[CheckName.URL_REACHABLE].passed
    # proposing the same url does not trigger another probe
    assert probe.calls == [WEBSITE]
    assert CheckName.WEBSITE_CONTENT_MATCHES not in result.checks


def test_probe_errors_count_as_unreachable() -> None:
    agent = _agent(probe=FakeProbe(error=TimeoutError("timed out")))

    result = asyncio.run(agent.verify(make_resource()))

    check = result.checks[CheckName.URL_REACHABLE]
    assert not check.passed
    assert check.evidence == "timed out"
    assert not check.details["repair_attempted"]


def test_candidate_without_website_or_phone_skips_those_checks() -> None:
    agent = _agent(judgment=FakeJudgment())

    result = asyncio.run(agent.verify(make_resource(website=None, phone=None)))

    assert CheckName.URL_REACHABLE not in result.checks
    assert CheckName.PHONE_VALID not in result.checks
    assert CheckName.WEBSITE_CONTENT_MATCHES not in result.checks
    assert result.decision is Decision.FLAG_FOR_HUMAN
    assert result.decision_reason == "Critical fields missing or invalid (phone or address)"


def test_geocoding_failure_fails_address_check() -> None:
    agent = _agent(geocoder=FakeGeocoder(raises=RuntimeError("quota exceeded")))

    result = asyncio.run(agent.verify(make_resource()))

    check = result.checks[CheckName.ADDRESS_GEOCODED]
    assert not check.passed
    assert check.evidence == "quota exceeded"
    assert result.decision is Decision.FLAG_FOR_HUMAN


def test_empty_website_content_fails_content_check() -> None:
    judgment = FakeJudgment()
    agent = _agent(fetcher=FakeContentFetcher(text="   "), judgment=judgment)

    result = asyncio.run(agent.verify(make_resource()))

    check = result.checks[CheckName.WEBSITE_CONTENT_MATCHES]
    assert not check.passed
    assert check.evidence == "Website content could not be retrieved"
    assert judgment.content_calls == 0


def test_judgment_errors_fail_content_check() -> None:
    agent = _agent(judgment=FakeJudgment(raises=RuntimeError("model overloaded")))

    result = asyncio.run(agent.verify(make_resource()))

    check = result.checks[CheckName.WEBSITE_CONTENT_MATCHES]
    assert not check.passed
    assert check.evidence == "AI content verification failed: model overloaded"
    assert result.cost_usd == 0.0


def test_cross_reference_failures_are_recorded_not_raised() -> None:
    references = [
        FakeCrossReference("Google Places", match=CrossReferenceMatch(found=True)),
        FakeCrossReference("211", raises=ConnectionError("211 down")),
        FakeCrossReference("Other", match=CrossReferenceMatch(found=False)),
    ]
    agent = _agent(cross_references=references)

    result = asyncio.run(agent.verify(make_resource()))

    check = result.checks[CheckName.CROSS_REFERENCED]
    assert check.passed
    assert check.confidence == pytest.approx(0.8)
    assert [source["name"] for source in check.details["sources"]] == ["Google Places"]
    assert check.details["errors"] == [{"source": "211", "error": "211 down"}]
    assert references[0].queries[0].address == "123 Main St, Springfield, IL, 62701"


def test_directory_matches_with_full_postal_addresses_are_approved() -> None:
    references = [
        FakeCrossReference(
            "Google Places",
            match=CrossReferenceMatch(
                found=True,
                match_score=0.9,
                data={
                    "name": "Downtown Job Center",
                    "address": "123 Main St, Springfield, IL 62701, USA",
                    "phone": "(217) 555-0100",
                    "website": "https://jobs.example.org/",
                },
            ),
        ),
        FakeCrossReference(
            "211",
            match=CrossReferenceMatch(
                found=True,
                match_score=0.9,
                data={
                    "name": "Downtown Job Center",
                    "address": "123 Main St, Springfield, IL",
                    "phone": "217-555-0100",
                },
            ),
        ),
    ]
    agent = _agent(judgment=FakeJudgment(), cross_references=references)

    result = asyncio.run(agent.verify(make_resource()))

    assert result.conflicts == ()
    assert result.checks[CheckName.CONFLICT_DETECTION].passed
    assert result.decision is Decision.AUTO_APPROVE


def test_conflicting_cross_reference_flags_candidate() -> None:
    references = [
        FakeCrossReference(
            "Google Places",
            match=CrossReferenceMatch(found=True, match_score=0.9, data={"name": "XQZ"}),
        ),
        FakeCrossReference("211"),
    ]
    agent = _agent(judgment=FakeJudgment(), cross_references=references)

    result = asyncio.run(agent.verify(make_resource()))

    assert [conflict.field for conflict in result.conflicts] == ["name"]
    assert not result.checks[CheckName.CONFLICT_DETECTION].passed
    assert result.decision is Decision.FLAG_FOR_HUMAN
    assert result.decision_reason == "1 high-confidence conflict(s) detected: name"


def test_events_are_emitted_and_sink_errors_ignored() -> None:
    events = RecordingEventSink()
    asyncio.run(_agent(events=events).verify(make_resource(), candidate_key="row-7"))

    assert events.events[0] == ("started", "row-7")
    assert ("progress", "Geocoding address") in events.events
    assert events.events[-1] == ("completed", "row-7")

    class BrokenSink(RecordingEventSink):
        def progress(self, candidate_key: str, message: str) -> None:
            raise RuntimeError("sink broken")

    result = asyncio.run(_agent(events=BrokenSink()).verify(make_resource()))
    assert result.decision is Decision.AUTO_APPROVE

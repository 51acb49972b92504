"""In-memory stand-ins for the verification and publication ports."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field

from resourcevet.domain.model import GeocodeConfidence, NormalizedResource, UsageLog
from resourcevet.domain.ports import (
    BatchResponse,
    BatchStats,
    BatchSubmission,
    ContentJudgment,
    CrossReferenceMatch,
    CrossReferenceQuery,
    GeocodedAddress,
    GeocodeRequest,
    GeocodeResult,
    ProbeResult,
    PublicationResult,
    TokenUsage,
    UrlProposal,
)

USAGE = TokenUsage(provider="openai", model="gpt-4o-mini", input_tokens=1000, output_tokens=200)


@dataclass
class FakeProbe:
    reachable: set[str] = field(default_factory=set)
    calls: list[str] = field(default_factory=list)
    error: Exception | None = None

    async def probe(self, url: str) -> ProbeResult:
        self.calls.append(url)
        if self.error is not None:
            raise self.error
        if url in self.reachable:
            return ProbeResult(reachable=True, status_code=200, final_url=url)
        return ProbeResult(reachable=False, status_code=404, error="HTTP 404")


@dataclass
class FakeContentFetcher:
    text: str = "Downtown Job Center offers job search help and resume workshops."
    calls: list[str] = field(default_factory=list)

    async def fetch_text(self, url: str) -> str:
        self.calls.append(url)
        return self.text


@dataclass
class FakeGeocoder:
    confidence: GeocodeConfidence = GeocodeConfidence.HIGH
    fail_with: str | None = None
    raises: Exception | None = None
    requests: list[GeocodeRequest] = field(default_factory=list)

    async def geocode(self, request: GeocodeRequest) -> GeocodeResult:
        self.requests.append(request)
        if self.raises is not None:
            raise self.raises
        if self.fail_with is not None:
            return GeocodeResult.failure(self.fail_with)
        return GeocodeResult(
            success=True,
            data=GeocodedAddress(
                latitude=39.7817,
                longitude=-89.6501,
                formatted_address=f"{request.address}, USA",
                place_id="place-1",
                location_type="ROOFTOP",
                county="Sangamon",
                confidence=self.confidence,
            ),
        )


@dataclass
class FakeJudgment:
    passed: bool = True
    confidence: float = 0.9
    proposed_url: str | None = None
    content_calls: int = 0
    url_calls: int = 0
    raises: Exception | None = None

    async def judge_content(
        self,
        claims: Mapping[str, object],
        evidence_text: str,
    ) -> ContentJudgment:
        _ = (claims, evidence_text)
        self.content_calls += 1
        if self.raises is not None:
            raise self.raises
        return ContentJudgment(
            passed=self.passed,
            confidence=self.confidence,
            evidence="Website describes the same services",
            usage=USAGE,
        )

    async def propose_url(self, name: str, city: str, state: str) -> UrlProposal:
        _ = (name, city, state)
        self.url_calls += 1
        return UrlProposal(url=self.proposed_url, usage=USAGE)


@dataclass
class FakeCrossReference:
    name: str
    match: CrossReferenceMatch = field(
        default_factory=lambda: CrossReferenceMatch(found=True, match_score=0.9)
    )
    raises: Exception | None = None
    queries: list[CrossReferenceQuery] = field(default_factory=list)

    async def lookup(self, query: CrossReferenceQuery) -> CrossReferenceMatch:
        self.queries.append(query)
        if self.raises is not None:
            raise self.raises
        return self.match


@dataclass
class RecordingUsageSink:
    entries: list[UsageLog] = field(default_factory=list)

    async def submit(self, entry: UsageLog) -> None:
        self.entries.append(entry)


@dataclass
class RecordingEventSink:
    events: list[tuple[str, str]] = field(default_factory=list)

    def started(self, candidate_key: str) -> None:
        self.events.append(("started", candidate_key))

    def progress(self, candidate_key: str, message: str) -> None:
        self.events.append(("progress", message))

    def completed(self, candidate_key: str, result: object) -> None:
        _ = result
        self.events.append(("completed", candidate_key))


type Outcome = Callable[[NormalizedResource], PublicationResult]


def approve(resource: NormalizedResource) -> PublicationResult:
    return PublicationResult(
        source_id=resource.source.source_id,
        status="approved",
        resource_id=f"res-{resource.source.source_id}",
        verification_score=0.9,
        decision_reason="High confidence",
    )


@dataclass
class FakePublisher:
    """Publishes every resource with ``outcome``; can fail or hook into a batch."""

    outcome: Outcome = approve
    fail_on_call: int | None = None
    on_submit: Callable[[int], None] | None = None
    drop_last_result: bool = False
    batches: list[BatchSubmission] = field(default_factory=list)

    async def submit(self, batch: BatchSubmission) -> BatchResponse:
        self.batches.append(batch)
        call = len(self.batches)
        if self.on_submit is not None:
            self.on_submit(call)
        if self.fail_on_call == call:
            raise ConnectionError("publication endpoint unreachable")
        await asyncio.sleep(0)
        results = [self.outcome(resource) for resource in batch.resources]
        if self.drop_last_result:
            results = results[:-1]
        return BatchResponse(
            success=True,
            stats=BatchStats(total=len(batch.resources), submitted=len(batch.resources)),
            results=results,
        )

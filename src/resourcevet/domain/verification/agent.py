"""Tiered, adversarial verification of a single candidate resource."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from statistics import fmean
from typing import TYPE_CHECKING, Any

from resourcevet.domain.model import (
    CheckName,
    CheckResult,
    FieldConflict,
    GeocodeConfidence,
    VerificationResult,
    VerificationType,
)
from resourcevet.domain.ports import CrossReferenceQuery, GeocodeRequest, ProbeResult

from .checks import detect_conflicts, enrich_address, validate_phone
from .cost import CostTracker
from .events import LoggingEventSink
from .policy import decide
from .scoring import compute_score

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from resourcevet.domain.model import NormalizedResource
    from resourcevet.domain.ports import (
        CrossReferenceService,
        GeocodingService,
        JudgmentService,
        ReachabilityProbe,
        TokenUsage,
        VerificationEventSink,
        WebsiteContentFetcher,
    )

log = logging.getLogger(__name__)

DEFAULT_MATCH_SCORE = 0.8
GEOCODE_CONFIDENCE: dict[GeocodeConfidence, float] = {
    GeocodeConfidence.HIGH: 1.0,
    GeocodeConfidence.MEDIUM: 0.95,
    GeocodeConfidence.LOW: 0.75,
}


@dataclass(slots=True)
class _Run:
    candidate_key: str
    checks: dict[str, CheckResult] = field(default_factory=dict)
    conflicts: list[FieldConflict] = field(default_factory=list)
    cost_usd: float = 0.0
    api_calls: int = 0


def candidate_key_for(candidate: NormalizedResource) -> str:
    return f"{candidate.source.source_name}:{candidate.source.source_id}"


class VerificationAgent:
    """Runs reachability, phone, address, content and cross-reference checks.

    ``verify`` never touches persistent storage: it returns a
    :class:`VerificationResult` and leaves applying the decision to the caller.
    A failing collaborator turns into a failed check rather than an exception.
    """

    def __init__(
        self,
        *,
        probe: ReachabilityProbe,
        content_fetcher: WebsiteContentFetcher,
        geocoder: GeocodingService,
        judgment: JudgmentService | None = None,
        cross_references: Sequence[CrossReferenceService] = (),
        cost_tracker: CostTracker | None = None,
        events: VerificationEventSink | None = None,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self._probe = probe
        self._content_fetcher = content_fetcher
        self._geocoder = geocoder
        self._judgment = judgment
        self._cross_references = tuple(cross_references)
        self._costs = cost_tracker or CostTracker()
        self._events = events or LoggingEventSink()
        self._clock = clock

    async def verify(
        self,
        candidate: NormalizedResource,
        verification_type: VerificationType = VerificationType.INITIAL,
        *,
        candidate_key: str | None = None,
    ) -> VerificationResult:
        started = self._clock()
        run = _Run(candidate_key=candidate_key or candidate_key_for(candidate))
        self._emit("started", run.candidate_key)

        website = await self._check_website(run, candidate)
        self._check_phone(run, candidate)
        full_address = await self._check_address(run, candidate)
        if website is not None:
            await self._check_content(run, candidate, website)
        await self._cross_reference(run, candidate, full_address)

        score = compute_score(run.checks)
        outcome = decide(score, run.checks, run.conflicts)
        result = VerificationResult(
            overall_score=score,
            checks=dict(run.checks),
            conflicts=tuple(run.conflicts),
            decision=outcome.decision,
            decision_reason=outcome.reason,
            cost_usd=round(run.cost_usd, 6),
            duration_ms=int((self._clock() - started) * 1000),
            api_calls_made=run.api_calls,
        )
        log.debug(
            "Verified %s (%s): %s, score %.2f",
            run.candidate_key,
            verification_type,
            result.decision,
            score,
        )
        self._emit("completed", run.candidate_key, result)
        return result

    # Tier 1 ---------------------------------------------------------------

    async def _check_website(self, run: _Run, candidate: NormalizedResource) -> str | None:
        """Probe the website, trying one repaired URL. Returns the reachable URL."""

        original = candidate.website
        if not original:
            return None
        self._emit("progress", run.candidate_key, "Checking website URL")
        first = await self._probe_url(run, original)
        if first.reachable:
            run.checks[CheckName.URL_REACHABLE] = CheckResult(
                passed=True,
                details={"url": original, "status_code": first.status_code},
            )
            return original

        self._emit("progress", run.candidate_key, "Website unreachable, attempting repair")
        repaired = await self._propose_url(run, candidate, original)
        second: ProbeResult | None = None
        if repaired is not None:
            second = await self._probe_url(run, repaired)

        details: dict[str, Any] = {
            "url": original,
            "status_code": first.status_code,
            "error": first.error,
            "repair_attempted": self._judgment is not None,
            "repaired_url": repaired,
        }
        if second is not None and second.reachable:
            details["repaired_status_code"] = second.status_code
            run.checks[CheckName.URL_REACHABLE] = CheckResult(
                passed=True,
                evidence=f"Repaired URL {repaired} is reachable",
                details=details,
            )
            return repaired

        run.checks[CheckName.URL_REACHABLE] = CheckResult(
            passed=False,
            evidence=first.error or "Website did not respond successfully",
            details=details,
        )
        return None

    async def _probe_url(self, run: _Run, url: str) -> ProbeResult:
        run.api_calls += 1
        try:
            return await self._probe.probe(url)
        except Exception as exc:  # noqa: BLE001
            log.warning("Reachability probe for %s failed: %s", url, exc)
            return ProbeResult(reachable=False, error=str(exc))

    async def _propose_url(
        self,
        run: _Run,
        candidate: NormalizedResource,
        broken_url: str,
    ) -> str | None:
        if self._judgment is None:
            return None
        run.api_calls += 1
        try:
            proposal = await self._judgment.propose_url(
                candidate.name, candidate.city, candidate.state
            )
        except Exception as exc:  # noqa: BLE001
            log.warning("URL repair for %s failed: %s", run.candidate_key, exc)
            return None
        await self._track(
            run,
            "url_autofix",
            proposal.usage,
            context={"current_url": broken_url, "city": candidate.city, "state": candidate.state},
        )
        url = (proposal.url or "").strip()
        if not url.startswith(("http://", "https://")) or url == broken_url:
            return None
        return url

    def _check_phone(self, run: _Run, candidate: NormalizedResource) -> None:
        if not candidate.phone:
            return
        validation = validate_phone(candidate.phone)
        run.checks[CheckName.PHONE_VALID] = CheckResult(
            passed=validation.passed,
            details={"format": validation.format, "normalized": validation.normalized},
        )

    async def _check_address(self, run: _Run, candidate: NormalizedResource) -> str:
        enriched = enrich_address(candidate.address, candidate.city, candidate.state, candidate.zip)
        self._emit("progress", run.candidate_key, "Geocoding address")
        run.api_calls += 1
        try:
            outcome = await self._geocoder.geocode(
                GeocodeRequest(
                    address=enriched.full_address,
                    city=candidate.city,
                    state=candidate.state,
                    zip=candidate.zip,
                )
            )
        except Exception as exc:  # noqa: BLE001
            log.warning("Geocoding for %s failed: %s", run.candidate_key, exc)
            run.checks[CheckName.ADDRESS_GEOCODED] = CheckResult(
                passed=False,
                evidence=str(exc),
                details={"address": enriched.full_address},
            )
            return enriched.full_address

        if not outcome.success or outcome.data is None:
            run.checks[CheckName.ADDRESS_GEOCODED] = CheckResult(
                passed=False,
                evidence=outcome.error or "Address could not be geocoded",
                details={"address": enriched.full_address},
            )
            return enriched.full_address

        data = outcome.data
        run.checks[CheckName.ADDRESS_GEOCODED] = CheckResult(
            passed=True,
            confidence=GEOCODE_CONFIDENCE[data.confidence],
            details={
                "address": enriched.full_address,
                "added_fields": list(enriched.added_fields),
                "latitude": data.latitude,
                "longitude": data.longitude,
                "formatted_address": data.formatted_address,
            },
        )
        return enriched.full_address

    # Tier 2 ---------------------------------------------------------------

    async def _check_content(self, run: _Run, candidate: NormalizedResource, url: str) -> None:
        if self._judgment is None:
            return
        self._emit("progress", run.candidate_key, "Running AI content verification")
        run.api_calls += 1
        try:
            text = await self._content_fetcher.fetch_text(url)
        except Exception as exc:  # noqa: BLE001
            log.warning("Fetching %s failed: %s", url, exc)
            text = ""
        if not text.strip():
            run.checks[CheckName.WEBSITE_CONTENT_MATCHES] = CheckResult(
                passed=False,
                evidence="Website content could not be retrieved",
            )
            return

        claims = {
            "name": candidate.name,
            "category": candidate.primary_category,
            "description": candidate.description,
            "services": candidate.services_offered,
        }
        run.api_calls += 1
        try:
            judgment = await self._judgment.judge_content(claims, text)
        except Exception as exc:  # noqa: BLE001
            log.warning("AI content verification for %s failed: %s", run.candidate_key, exc)
            run.checks[CheckName.WEBSITE_CONTENT_MATCHES] = CheckResult(
                passed=False,
                evidence=f"AI content verification failed: {exc}",
            )
            return

        await self._track(run, "verification", judgment.usage)
        run.checks[CheckName.WEBSITE_CONTENT_MATCHES] = CheckResult(
            passed=judgment.passed,
            confidence=judgment.confidence,
            evidence=judgment.evidence,
        )

    # Tier 3 ---------------------------------------------------------------

    async def _cross_reference(
        self,
        run: _Run,
        candidate: NormalizedResource,
        full_address: str,
    ) -> None:
        self._emit("progress", run.candidate_key, "Cross-referencing with external sources")
        query = CrossReferenceQuery(name=candidate.name, address=full_address)
        # directories answer with a full postal address, not the street line
        claimed = {**candidate.model_dump(), "address": full_address}
        sources: list[dict[str, Any]] = []
        errors: list[dict[str, str]] = []

        for service in self._cross_references:
            run.api_calls += 1
            try:
                match = await service.lookup(query)
            except Exception as exc:  # noqa: BLE001
                log.warning(
                    "Cross-reference %s failed for %s: %s", service.name, run.candidate_key, exc
                )
                errors.append({"source": service.name, "error": str(exc)})
                continue
            if not match.found:
                continue
            score = match.match_score if match.match_score is not None else DEFAULT_MATCH_SCORE
            sources.append({"name": service.name, "url": match.url, "match_score": score})
            if match.data:
                run.conflicts.extend(detect_conflicts(claimed, match.data, service.name))

        run.checks[CheckName.CROSS_REFERENCED] = CheckResult(
            passed=bool(sources),
            confidence=fmean(source["match_score"] for source in sources) if sources else None,
            details={"sources": sources, "errors": errors},
        )
        run.checks[CheckName.CONFLICT_DETECTION] = CheckResult(
            passed=not run.conflicts,
            details={"conflicts": [conflict.to_dict() for conflict in run.conflicts]},
        )

    # Helpers --------------------------------------------------------------

    async def _track(
        self,
        run: _Run,
        operation_type: str,
        usage: TokenUsage,
        *,
        context: dict[str, object] | None = None,
    ) -> None:
        input_cost, output_cost = self._costs.price(usage)
        run.cost_usd += input_cost + output_cost
        try:
            await self._costs.record(
                operation_type, usage, candidate_key=run.candidate_key, context=context
            )
        except Exception:
            log.exception("Failed to record LLM usage for %s", run.candidate_key)

    def _emit(self, event: str, candidate_key: str, *args: Any) -> None:
        try:
            getattr(self._events, event)(candidate_key, *args)
        except Exception:
            log.exception("Verification event sink failed on %s", event)

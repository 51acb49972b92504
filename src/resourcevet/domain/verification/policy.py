"""Decision policy applied to a scored verification run."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from resourcevet.domain.model import CheckName, Decision

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from resourcevet.domain.model import CheckResult, FieldConflict

REJECT_BELOW = 0.5
FLAG_BELOW = 0.7
APPROVE_AT = 0.85
CONFLICT_CONFIDENCE = 0.7
MIN_CROSS_REFERENCES = 2


@dataclass(frozen=True, slots=True)
class PolicyDecision:
    decision: Decision
    reason: str


def _percent(score: float) -> str:
    return f"{score * 100:.0f}%"


def cross_reference_count(checks: Mapping[str, CheckResult]) -> int:
    check = checks.get(CheckName.CROSS_REFERENCED)
    if check is None:
        return 0
    sources = check.details.get("sources") or ()
    return len(sources)


def decide(
    score: float,
    checks: Mapping[str, CheckResult],
    conflicts: Sequence[FieldConflict],
) -> PolicyDecision:
    """Apply the ordered rules; the first one that matches wins."""

    url_check = checks.get(CheckName.URL_REACHABLE)
    if url_check is not None and not url_check.passed:
        return PolicyDecision(Decision.AUTO_REJECT, "Website URL is not reachable")

    if score < REJECT_BELOW:
        return PolicyDecision(
            Decision.AUTO_REJECT,
            f"Overall verification score too low: {_percent(score)}",
        )

    material = [conflict for conflict in conflicts if conflict.confidence > CONFLICT_CONFIDENCE]
    if material:
        fields = ", ".join(dict.fromkeys(conflict.field for conflict in material))
        return PolicyDecision(
            Decision.FLAG_FOR_HUMAN,
            f"{len(material)} high-confidence conflict(s) detected: {fields}",
        )

    phone = checks.get(CheckName.PHONE_VALID)
    address = checks.get(CheckName.ADDRESS_GEOCODED)
    if phone is None or address is None or not phone.passed or not address.passed:
        return PolicyDecision(
            Decision.FLAG_FOR_HUMAN,
            "Critical fields missing or invalid (phone or address)",
        )

    if score < FLAG_BELOW:
        return PolicyDecision(
            Decision.FLAG_FOR_HUMAN,
            f"Verification score below auto-approve threshold: {_percent(score)}",
        )

    matched = cross_reference_count(checks)
    if score >= APPROVE_AT and matched < MIN_CROSS_REFERENCES:
        return PolicyDecision(
            Decision.FLAG_FOR_HUMAN,
            f"Insufficient cross-reference sources (need at least {MIN_CROSS_REFERENCES})",
        )

    if score >= APPROVE_AT and not conflicts:
        return PolicyDecision(
            Decision.AUTO_APPROVE,
            f"High confidence ({_percent(score)}) with {matched} cross-references "
            "and no conflicts",
        )

    return PolicyDecision(Decision.FLAG_FOR_HUMAN, "Does not meet auto-approve criteria")

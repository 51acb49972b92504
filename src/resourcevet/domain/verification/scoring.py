"""Weighted combination of check results into a single trust score.

Each check present in the result contributes ``weight * credit``. Credit is ``0`` for a
failed check and the check's confidence (``1`` when absent) for a passed one, so a
check flipping from fail to pass can only add to the numerator. The denominator is the
total weight of the checks that are present, which does not depend on whether they
passed.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import TYPE_CHECKING

from resourcevet.domain.model import CheckName

if TYPE_CHECKING:
    from collections.abc import Mapping

    from resourcevet.domain.model import CheckResult

CHECK_WEIGHTS: Mapping[str, float] = MappingProxyType(
    {
        CheckName.URL_REACHABLE: 0.15,
        CheckName.PHONE_VALID: 0.15,
        CheckName.ADDRESS_GEOCODED: 0.20,
        CheckName.WEBSITE_CONTENT_MATCHES: 0.20,
        CheckName.CROSS_REFERENCED: 0.20,
        CheckName.CONFLICT_DETECTION: 0.10,
    }
)


def check_credit(check: CheckResult) -> float:
    if not check.passed:
        return 0.0
    if check.confidence is None:
        return 1.0
    return min(max(check.confidence, 0.0), 1.0)


def compute_score(
    checks: Mapping[str, CheckResult],
    weights: Mapping[str, float] = CHECK_WEIGHTS,
) -> float:
    total_weight = 0.0
    earned = 0.0
    for name, check in checks.items():
        weight = weights.get(name)
        if weight is None:
            continue
        total_weight += weight
        earned += weight * check_credit(check)
    if total_weight == 0:
        return 0.0
    return round(earned / total_weight, 4)

"""Deterministic verification checks and cross-source conflict detection."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from rapidfuzz import fuzz

from resourcevet.domain.model import FieldConflict

if TYPE_CHECKING:
    from collections.abc import Mapping

CONFLICT_FIELDS = ("name", "phone", "website", "address", "email", "latitude", "longitude")
SIMILARITY_THRESHOLD = 0.7
COORDINATE_TOLERANCE = 0.001

_NON_DIGIT = re.compile(r"\D")
_PUNCTUATION = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")
_URL_PREFIX = re.compile(r"^(?:https?://)?(?:www\.)?", re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class PhoneValidation:
    passed: bool
    format: str
    normalized: str | None = None


@dataclass(frozen=True, slots=True)
class EnrichedAddress:
    full_address: str
    added_fields: tuple[str, ...]

    @property
    def enriched(self) -> bool:
        return bool(self.added_fields)


def validate_phone(phone: str) -> PhoneValidation:
    """Validate a North American number: 10 digits, or 11 with a leading 1."""

    digits = _NON_DIGIT.sub("", phone)
    if len(digits) == 11 and digits.startswith("1"):
        digits = digits[1:]
    elif len(digits) != 10:
        return PhoneValidation(passed=False, format="invalid")
    return PhoneValidation(
        passed=True,
        format="US",
        normalized=f"({digits[:3]}) {digits[3:6]}-{digits[6:]}",
    )


def enrich_address(
    address: str,
    city: str | None = None,
    state: str | None = None,
    zip_code: str | None = None,
) -> EnrichedAddress:
    """Append city, state and zip when the address text does not already contain them."""

    lowered = address.lower()
    parts = [address.strip()]
    added: list[str] = []
    if city and city.lower() not in lowered:
        parts.append(city)
        added.append("city")
    if state and state.lower() not in lowered:
        parts.append(state)
        added.append("state")
    if zip_code and zip_code not in address:
        parts.append(zip_code)
        added.append("zip")
    return EnrichedAddress(full_address=", ".join(parts), added_fields=tuple(added))


def normalize_text(value: str) -> str:
    text = _PUNCTUATION.sub(" ", value.lower())
    return _WHITESPACE.sub(" ", text).strip()


def normalize_phone_digits(value: str) -> str:
    digits = _NON_DIGIT.sub("", value)
    if len(digits) == 11 and digits.startswith("1"):
        return digits[1:]
    return digits


def normalize_website(value: str) -> str:
    return _URL_PREFIX.sub("", value.strip().lower()).rstrip("/")


def similarity(left: str, right: str) -> float:
    """Return a similarity in [0, 1] between two already-normalized strings."""

    if left == right:
        return 1.0
    if not left or not right:
        return 0.0
    return fuzz.ratio(left, right) / 100.0


def address_similarity(left: str, right: str) -> float:
    """Like :func:`similarity`, but a trailing zip or country on one side costs nothing."""

    if not left or not right:
        return 0.0
    return fuzz.token_set_ratio(left, right) / 100.0


def _is_missing(value: object) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _compare(field: str, submitted: object, found: object) -> float | None:
    """Return the confidence that a disagreement is material, or ``None`` if none."""

    if field in {"latitude", "longitude"}:
        try:
            delta = abs(float(submitted) - float(found))  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return None
        if delta <= COORDINATE_TOLERANCE:
            return None
        return min(1.0, delta / (COORDINATE_TOLERANCE * 10))

    if field == "phone":
        left = normalize_phone_digits(str(submitted))
        right = normalize_phone_digits(str(found))
    elif field == "website":
        left = normalize_website(str(submitted))
        right = normalize_website(str(found))
    else:
        left = normalize_text(str(submitted))
        right = normalize_text(str(found))

    score = address_similarity(left, right) if field == "address" else similarity(left, right)
    if score >= SIMILARITY_THRESHOLD:
        return None
    return 1.0 - score


def detect_conflicts(
    submitted: Mapping[str, object],
    external: Mapping[str, object],
    source: str,
) -> list[FieldConflict]:
    conflicts: list[FieldConflict] = []
    for field in CONFLICT_FIELDS:
        claimed = submitted.get(field)
        observed = external.get(field)
        if _is_missing(claimed) or _is_missing(observed):
            continue
        confidence = _compare(field, claimed, observed)
        if confidence is None:
            continue
        conflicts.append(
            FieldConflict(
                field=field,
                submitted=claimed,
                found=observed,
                confidence=round(confidence, 4),
                source=source,
            )
        )
    return conflicts

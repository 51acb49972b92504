"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class VerificationLevel(StrEnum):
    """Trust tier of a source."""

    L1 = "L1"  # government / authoritative
    L2 = "L2"  # partially verified
    L3 = "L3"  # unverified / scraped


class JobStatus(StrEnum):
    PENDING = "pending"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class RecordStatus(StrEnum):
    PENDING = "pending"
    PROCESSING = "processing"
    GEOCODING = "geocoding"
    VERIFYING = "verifying"
    APPROVED = "approved"
    FLAGGED = "flagged"
    REJECTED = "rejected"
    ERROR = "error"
    SKIPPED = "skipped"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_RECORD_STATUSES


_TERMINAL_RECORD_STATUSES = frozenset(
    {
        RecordStatus.APPROVED,
        RecordStatus.FLAGGED,
        RecordStatus.REJECTED,
        RecordStatus.ERROR,
        RecordStatus.SKIPPED,
    }
)


class Decision(StrEnum):
    AUTO_APPROVE = "auto_approve"
    FLAG_FOR_HUMAN = "flag_for_human"
    AUTO_REJECT = "auto_reject"


class VerificationType(StrEnum):
    INITIAL = "initial"
    PERIODIC = "periodic"
    TRIGGERED = "triggered"


class CheckName(StrEnum):
    URL_REACHABLE = "url_reachable"
    PHONE_VALID = "phone_valid"
    ADDRESS_GEOCODED = "address_geocoded"
    WEBSITE_CONTENT_MATCHES = "website_content_matches"
    CROSS_REFERENCED = "cross_referenced"
    CONFLICT_DETECTION = "conflict_detection"


class SuggestionStatus(StrEnum):
    PENDING = "pending"
    REJECTED = "rejected"


class GeocodeConfidence(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

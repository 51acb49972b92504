from .enums import (
    CheckName,
    Decision,
    GeocodeConfidence,
    JobStatus,
    RecordStatus,
    SuggestionStatus,
    VerificationLevel,
    VerificationType,
)
from .imports import Checkpoint, ImportJob, ImportJobSettings, ImportRecord, JobError
from .resource import NormalizedResource, SourceInfo
from .verification import (
    CheckResult,
    FieldConflict,
    PublishedResource,
    ResourceSuggestion,
    UsageLog,
    VerificationLog,
    VerificationResult,
)

__all__ = [
    "CheckName",
    "CheckResult",
    "Checkpoint",
    "Decision",
    "FieldConflict",
    "GeocodeConfidence",
    "ImportJob",
    "ImportJobSettings",
    "ImportRecord",
    "JobError",
    "JobStatus",
    "NormalizedResource",
    "PublishedResource",
    "RecordStatus",
    "ResourceSuggestion",
    "SourceInfo",
    "SuggestionStatus",
    "UsageLog",
    "VerificationLevel",
    "VerificationLog",
    "VerificationResult",
    "VerificationType",
]

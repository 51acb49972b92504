from .fingerprint import fingerprint_records
from .orchestrator import (
    ImportConfig,
    ImportOrchestrator,
    JobProgress,
    cancel_job,
    pause_job,
)
from .publisher import AppliedDecision, DecisionApplier, VerifyingPublisher, enrich_from_checks

__all__ = [
    "AppliedDecision",
    "DecisionApplier",
    "ImportConfig",
    "ImportOrchestrator",
    "JobProgress",
    "VerifyingPublisher",
    "cancel_job",
    "enrich_from_checks",
    "fingerprint_records",
    "pause_job",
]

from .agent import VerificationAgent, candidate_key_for
from .checks import detect_conflicts, enrich_address, validate_phone
from .cost import CostTracker, ModelPrice, PriceTable
from .events import LoggingEventSink
from .policy import PolicyDecision, decide
from .scoring import CHECK_WEIGHTS, compute_score

__all__ = [
    "CHECK_WEIGHTS",
    "CostTracker",
    "LoggingEventSink",
    "ModelPrice",
    "PolicyDecision",
    "PriceTable",
    "VerificationAgent",
    "candidate_key_for",
    "compute_score",
    "decide",
    "detect_conflicts",
    "enrich_address",
    "validate_phone",
]

from .crossref import CrossReferenceMatch, CrossReferenceQuery, CrossReferenceService
from .geocoding import GeocodedAddress, GeocodeRequest, GeocodeResult, GeocodingService
from .llm import ContentJudgment, JudgmentService, TokenUsage, UrlProposal
from .publication import (
    BatchResponse,
    BatchStats,
    BatchSubmission,
    PublicationEndpoint,
    PublicationResult,
)
from .telemetry import UsageSink, VerificationEventSink
from .web import ProbeResult, ReachabilityProbe, WebsiteContentFetcher

__all__ = [
    "BatchResponse",
    "BatchStats",
    "BatchSubmission",
    "ContentJudgment",
    "CrossReferenceMatch",
    "CrossReferenceQuery",
    "CrossReferenceService",
    "GeocodeRequest",
    "GeocodeResult",
    "GeocodedAddress",
    "GeocodingService",
    "JudgmentService",
    "ProbeResult",
    "PublicationEndpoint",
    "PublicationResult",
    "ReachabilityProbe",
    "TokenUsage",
    "UrlProposal",
    "UsageSink",
    "VerificationEventSink",
    "WebsiteContentFetcher",
]

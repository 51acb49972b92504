"""Website probing configuration values."""

from __future__ import annotations

from dataclasses import dataclass, field

from .http_resilience import NO_RETRY, ResilienceConfig

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (compatible; resourcevet-verification/1.0; +https://example.org/bot)"
)
PROBE_TIMEOUT_SECONDS = 15.0
CONTENT_TIMEOUT_SECONDS = 10.0
MAX_CONTENT_CHARS = 5000


def _default_probe_resilience() -> ResilienceConfig:
    return ResilienceConfig(
        name="website",
        timeout_seconds=PROBE_TIMEOUT_SECONDS,
        retry=NO_RETRY,
        cache=None,
        default_headers={
            "User-Agent": DEFAULT_USER_AGENT,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.9",
        },
        follow_redirects=True,
    )


@dataclass(frozen=True, slots=True)
class WebsiteConfig:
    resilience: ResilienceConfig = field(default_factory=_default_probe_resilience)
    content_timeout_seconds: float = CONTENT_TIMEOUT_SECONDS
    max_content_chars: int = MAX_CONTENT_CHARS


def get_website_config() -> WebsiteConfig:
    return WebsiteConfig()

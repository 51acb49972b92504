"""Google Maps Platform configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import require_env_vars
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy

GOOGLE_MAPS_BASE_URL = "https://maps.googleapis.com/maps/api/"
GOOGLE_MAPS_TIMEOUT_SECONDS = 10.0
# addresses rarely move; re-imports of the same source reuse earlier answers
GOOGLE_MAPS_CACHE_TTL_SECONDS = 30 * 24 * 3600.0
CACHEABLE_STATUSES = frozenset({"OK", "ZERO_RESULTS"})


def cacheable_maps_payload(payload: object) -> bool:
    """Only store real answers, never quota or request errors."""

    return isinstance(payload, dict) and payload.get("status") in CACHEABLE_STATUSES


@dataclass(frozen=True, slots=True)
class GoogleMapsConfig:
    """Holds Google Maps API credentials and client tuning."""

    api_key: str
    resilience: ResilienceConfig


def get_google_maps_config(*, resilience: ResilienceConfig | None = None) -> GoogleMapsConfig:
    values = require_env_vars(("GOOGLE_MAPS_KEY",))
    return GoogleMapsConfig(
        api_key=values["GOOGLE_MAPS_KEY"],
        resilience=resilience
        or ResilienceConfig(
            name="google_maps",
            base_url=GOOGLE_MAPS_BASE_URL,
            timeout_seconds=GOOGLE_MAPS_TIMEOUT_SECONDS,
            ratelimit=RateLimit(max_calls=10, per_seconds=1.0),
            retry=RetryPolicy(total=3),
            cache=CacheConfig(
                backend="sqlite",
                default_ttl_seconds=GOOGLE_MAPS_CACHE_TTL_SECONDS,
                should_cache=cacheable_maps_payload,
            ),
        ),
    )

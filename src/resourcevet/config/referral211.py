"""211 resource directory configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_env_var, require_env_vars
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy

DEFAULT_REFERRAL211_BASE_URL = "https://api.211.org/search/v1/api/"


@dataclass(frozen=True, slots=True)
class Referral211Config:
    api_key: str
    resilience: ResilienceConfig


def get_referral211_config() -> Referral211Config:
    values = require_env_vars(("REFERRAL211_API_KEY",))
    base_url = optional_env_var("REFERRAL211_BASE_URL", DEFAULT_REFERRAL211_BASE_URL)
    return Referral211Config(
        api_key=values["REFERRAL211_API_KEY"],
        resilience=ResilienceConfig(
            name="referral211",
            base_url=base_url,
            timeout_seconds=15.0,
            ratelimit=RateLimit.per_minute(60),
            retry=RetryPolicy(total=2),
            cache=CacheConfig(backend="memory"),
            default_headers={"Api-Key": values["REFERRAL211_API_KEY"]},
        ),
    )

"""LLM judgment service configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import env_float, env_int, optional_env_var, require_env_vars
from .http_resilience import RateLimit

DEFAULT_JUDGMENT_MODEL = "gpt-4o-mini"
DEFAULT_REPAIR_MODEL = "gpt-4o-mini"
LLM_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True, slots=True)
class LlmConfig:
    api_key: str
    judgment_model: str = DEFAULT_JUDGMENT_MODEL
    repair_model: str = DEFAULT_REPAIR_MODEL
    timeout_seconds: float = LLM_TIMEOUT_SECONDS
    max_retries: int = 2
    ratelimit: RateLimit | None = None
    base_url: str | None = None


def get_llm_config() -> LlmConfig:
    values = require_env_vars(("OPENAI_API_KEY",))
    return LlmConfig(
        api_key=values["OPENAI_API_KEY"],
        judgment_model=optional_env_var("RESOURCEVET_JUDGMENT_MODEL", DEFAULT_JUDGMENT_MODEL)
        or DEFAULT_JUDGMENT_MODEL,
        repair_model=optional_env_var("RESOURCEVET_REPAIR_MODEL", DEFAULT_REPAIR_MODEL)
        or DEFAULT_REPAIR_MODEL,
        timeout_seconds=env_float("RESOURCEVET_LLM_TIMEOUT", LLM_TIMEOUT_SECONDS),
        ratelimit=RateLimit.per_minute(env_int("RESOURCEVET_LLM_RPM", 500)),
        base_url=optional_env_var("OPENAI_BASE_URL"),
    )

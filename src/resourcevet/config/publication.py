"""Remote publication endpoint configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_env_var, require_env_vars
from .http_resilience import NO_RETRY, ResilienceConfig

PUBLICATION_TIMEOUT_SECONDS = 300.0


@dataclass(frozen=True, slots=True)
class PublicationConfig:
    endpoint_url: str
    resilience: ResilienceConfig


def get_publication_config() -> PublicationConfig:
    values = require_env_vars(("RESOURCEVET_PUBLICATION_URL",))
    token = optional_env_var("RESOURCEVET_PUBLICATION_TOKEN")
    headers = {"Authorization": f"Bearer {token}"} if token else None
    return PublicationConfig(
        endpoint_url=values["RESOURCEVET_PUBLICATION_URL"],
        resilience=ResilienceConfig(
            name="publication",
            timeout_seconds=PUBLICATION_TIMEOUT_SECONDS,
            # a retried batch would be published twice
            retry=NO_RETRY,
            cache=None,
            default_headers=headers,
        ),
    )

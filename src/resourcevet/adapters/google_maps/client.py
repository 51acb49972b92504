"""Shared HTTP plumbing for the Google Maps web services."""

from __future__ import annotations

import re
from logging import getLogger
from typing import TYPE_CHECKING

from resourcevet.adapters.http_resilience import ResilientClient, default_client_factory
from resourcevet.domain.errors import ExternalServiceError

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from resourcevet.config.google_maps import GoogleMapsConfig
    from resourcevet.config.http_resilience import ResilienceConfig

log = getLogger(__name__)

_COUNTY_SUFFIX = re.compile(r" (County|Parish|Borough|Census Area|Municipality)$", re.IGNORECASE)


def clean_county_name(name: str) -> str:
    return _COUNTY_SUFFIX.sub("", name)


class GoogleMapsAPIError(ExternalServiceError):
    """Raised when a Google Maps endpoint answers with a non-OK status."""

    def __init__(
        self,
        message: str,
        *,
        status: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, service="google_maps", status_code=status_code)
        self.status = status


class GoogleMapsClient:
    """Owns one :class:`ResilientClient` and signs every request with the API key."""

    def __init__(
        self,
        config: GoogleMapsConfig,
        *,
        client_factory: Callable[[ResilienceConfig], ResilientClient] = default_client_factory,
    ) -> None:
        self.config = config
        self._client_factory = client_factory
        self._client: ResilientClient | None = None

    async def get_json(self, path: str, params: Mapping[str, str]) -> object:
        client = self._ensure_client()
        response = await client.get(path, params={**params, "key": self.config.api_key})
        if response.status_code >= 400:
            log.warning("Google Maps %s answered HTTP %s", path, response.status_code)
            raise GoogleMapsAPIError(
                f"HTTP {response.status_code}: {response.reason_phrase}",
                status_code=response.status_code,
            )
        return response.json()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> ResilientClient:
        if self._client is None:
            self._client = self._client_factory(self.config.resilience)
        return self._client

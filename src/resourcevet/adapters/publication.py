"""Publication endpoint reached over HTTP."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from resourcevet.adapters.http_resilience import ResilientClient, default_client_factory
from resourcevet.domain.errors import ExternalServiceError
from resourcevet.domain.ports import BatchResponse

if TYPE_CHECKING:
    from collections.abc import Callable

    from resourcevet.config.http_resilience import ResilienceConfig
    from resourcevet.config.publication import PublicationConfig
    from resourcevet.domain.ports import BatchSubmission

log = getLogger(__name__)


class PublicationAPIError(ExternalServiceError):
    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message, service="publication", status_code=status_code)


class HttpPublicationEndpoint:
    """POSTs a batch as JSON and parses the per-resource results."""

    def __init__(
        self,
        config: PublicationConfig,
        *,
        client_factory: Callable[[ResilienceConfig], ResilientClient] = default_client_factory,
    ) -> None:
        self.config = config
        self._client_factory = client_factory

    async def submit(self, batch: BatchSubmission) -> BatchResponse:
        payload = batch.model_dump(mode="json", exclude_none=True)
        async with self._client_factory(self.config.resilience) as client:
            try:
                response = await client.post(self.config.endpoint_url, json=payload)
            except httpx.HTTPError as exc:
                raise PublicationAPIError(f"Publication request failed: {exc}") from exc

        if response.status_code >= 400:
            body = response.text[:500]
            log.error("Publication endpoint answered HTTP %s: %s", response.status_code, body)
            raise PublicationAPIError(
                f"API error: {response.status_code} - {body}",
                status_code=response.status_code,
            )
        try:
            return BatchResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise PublicationAPIError("Unexpected publication response payload") from exc

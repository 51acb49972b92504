"""Cross-reference adapter over a 211 resource directory search API."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import ValidationError

from resourcevet.adapters.http_resilience import ResilientClient, default_client_factory
from resourcevet.domain.errors import ExternalServiceError
from resourcevet.domain.ports import CrossReferenceMatch
from resourcevet.domain.verification.checks import normalize_text, similarity

from .schema import ListingPayload, SearchResponse

if TYPE_CHECKING:
    from collections.abc import Callable

    from resourcevet.config.http_resilience import ResilienceConfig
    from resourcevet.config.referral211 import Referral211Config
    from resourcevet.domain.ports import CrossReferenceQuery

log = getLogger(__name__)

SEARCH_PATH = "Search/Keyword"
MIN_NAME_SIMILARITY = 0.6
MAX_RESULTS = 10


class Referral211APIError(ExternalServiceError):
    """Raised when the 211 directory answers with an error or an unreadable payload."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message, service="211", status_code=status_code)


def _listing_data(listing: ListingPayload) -> dict[str, object]:
    address = ", ".join(part for part in (listing.address, listing.city, listing.state) if part)
    data: dict[str, object | None] = {
        "name": listing.display_name or None,
        "address": address or None,
        "phone": listing.phone,
        "website": listing.website,
        "email": listing.email,
        "latitude": listing.latitude,
        "longitude": listing.longitude,
    }
    return {key: value for key, value in data.items() if value is not None}


class Referral211CrossReference:
    """Searches the directory by name and location and keeps the closest name match."""

    name = "211"

    def __init__(
        self,
        config: Referral211Config,
        *,
        client_factory: Callable[[ResilienceConfig], ResilientClient] = default_client_factory,
        min_similarity: float = MIN_NAME_SIMILARITY,
    ) -> None:
        self.config = config
        self._client_factory = client_factory
        self._client: ResilientClient | None = None
        self._min_similarity = min_similarity

    async def lookup(self, query: CrossReferenceQuery) -> CrossReferenceMatch:
        response = await self._search(query)
        best: ListingPayload | None = None
        best_score = 0.0
        for listing in response.results:
            score = similarity(normalize_text(query.name), normalize_text(listing.display_name))
            if score > best_score:
                best, best_score = listing, score

        if best is None or best_score < self._min_similarity:
            return CrossReferenceMatch(found=False, match_score=best_score or None)

        base_url = self.config.resilience.base_url or ""
        return CrossReferenceMatch(
            found=True,
            match_score=round(best_score, 4),
            url=f"{base_url.rstrip('/')}/ServiceAtLocation/{best.id}" if best.id else None,
            data=_listing_data(best),
        )

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _search(self, query: CrossReferenceQuery) -> SearchResponse:
        if self._client is None:
            self._client = self._client_factory(self.config.resilience)
        params = {"Keyword": query.name, "Location": query.address, "Top": str(MAX_RESULTS)}
        response = await self._client.get(SEARCH_PATH, params=params)
        if response.status_code == 404:
            return SearchResponse()
        if response.status_code >= 400:
            log.warning("211 search answered HTTP %s", response.status_code)
            raise Referral211APIError(
                f"HTTP {response.status_code}: {response.reason_phrase}",
                status_code=response.status_code,
            )
        payload = response.json()
        # some deployments return the bare result list
        if isinstance(payload, list):
            payload = {"count": len(payload), "results": payload}
        try:
            return SearchResponse.model_validate(payload)
        except ValidationError as exc:
            raise Referral211APIError("Unexpected 211 response payload") from exc

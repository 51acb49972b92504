"""Cross-reference adapter over the Google Places API."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from resourcevet.domain.ports import CrossReferenceMatch
from resourcevet.domain.verification.checks import normalize_text, similarity

from .client import GoogleMapsAPIError
from .schema import FindPlaceResponse, PlaceDetailsResponse

if TYPE_CHECKING:
    from resourcevet.domain.ports import CrossReferenceQuery

    from .client import GoogleMapsClient

log = getLogger(__name__)

FIND_PLACE_PATH = "place/findplacefromtext/json"
DETAILS_PATH = "place/details/json"
MIN_NAME_SIMILARITY = 0.6
_DETAIL_FIELDS = "name,formatted_address,formatted_phone_number,website,url,geometry"


class GooglePlacesCrossReference:
    """Finds the candidate on Google Places and returns the listing's details."""

    name = "Google Places"

    def __init__(
        self,
        client: GoogleMapsClient,
        *,
        min_similarity: float = MIN_NAME_SIMILARITY,
    ) -> None:
        self._client = client
        self._min_similarity = min_similarity

    async def lookup(self, query: CrossReferenceQuery) -> CrossReferenceMatch:
        found = FindPlaceResponse.model_validate(
            await self._client.get_json(
                FIND_PLACE_PATH,
                {
                    "input": f"{query.name} {query.address}".strip(),
                    "inputtype": "textquery",
                    "fields": "place_id,name,formatted_address",
                },
            )
        )
        if found.status == "ZERO_RESULTS":
            return CrossReferenceMatch(found=False)
        if found.status != "OK":
            raise GoogleMapsAPIError(f"Place search failed: {found.status}", status=found.status)
        if not found.candidates:
            return CrossReferenceMatch(found=False)

        candidate = found.candidates[0]
        score = similarity(normalize_text(query.name), normalize_text(candidate.name or ""))
        if score < self._min_similarity:
            log.debug(
                "Best place match %r for %r scored %.2f, below threshold",
                candidate.name,
                query.name,
                score,
            )
            return CrossReferenceMatch(found=False, match_score=score)

        details = PlaceDetailsResponse.model_validate(
            await self._client.get_json(
                DETAILS_PATH, {"place_id": candidate.place_id, "fields": _DETAIL_FIELDS}
            )
        )
        data: dict[str, object] = {}
        url: str | None = None
        if details.status == "OK" and details.result is not None:
            result = details.result
            url = result.url
            data = {
                "name": result.name,
                "address": result.formatted_address,
                "phone": result.formatted_phone_number,
                "website": result.website,
            }
            if result.geometry is not None:
                data["latitude"] = result.geometry.location.lat
                data["longitude"] = result.geometry.location.lng
        return CrossReferenceMatch(
            found=True,
            match_score=round(score, 4),
            url=url,
            data={key: value for key, value in data.items() if value is not None},
        )

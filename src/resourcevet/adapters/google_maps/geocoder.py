"""Geocoding adapter over the Google Geocoding API."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from resourcevet.domain.model import GeocodeConfidence
from resourcevet.domain.ports import GeocodedAddress, GeocodeResult
from resourcevet.domain.verification.checks import enrich_address

from .client import GoogleMapsAPIError, clean_county_name
from .schema import GeocodeResponse

if TYPE_CHECKING:
    from resourcevet.domain.ports import GeocodeRequest

    from .client import GoogleMapsClient

log = getLogger(__name__)

GEOCODE_PATH = "geocode/json"

_STATUS_MESSAGES = {
    "ZERO_RESULTS": "No results found for this address",
    "OVER_QUERY_LIMIT": "API rate limit exceeded",
}


def confidence_for(location_type: str | None) -> GeocodeConfidence:
    if location_type == "ROOFTOP":
        return GeocodeConfidence.HIGH
    if location_type == "GEOMETRIC_CENTER":
        return GeocodeConfidence.LOW
    return GeocodeConfidence.MEDIUM


class GoogleGeocoder:
    """:class:`GeocodingService` returning failures as values, never raising."""

    def __init__(self, client: GoogleMapsClient) -> None:
        self._client = client

    async def geocode(self, request: GeocodeRequest) -> GeocodeResult:
        enriched = enrich_address(request.address, request.city, request.state, request.zip)
        address = enriched.full_address
        if not address.strip():
            return GeocodeResult.failure("No address to geocode")
        try:
            payload = await self._client.get_json(GEOCODE_PATH, {"address": address})
            response = GeocodeResponse.model_validate(payload)
        except GoogleMapsAPIError as exc:
            return GeocodeResult.failure(str(exc))
        except httpx.HTTPError as exc:
            log.warning("Geocoding request for %s failed: %s", address, exc)
            return GeocodeResult.failure(str(exc) or type(exc).__name__)
        except ValidationError:
            log.warning("Unexpected geocoding payload for %s", address)
            return GeocodeResult.failure("Unexpected geocoding response payload")

        if response.status != "OK":
            message = _STATUS_MESSAGES.get(response.status)
            if message is None:
                message = f"Geocoding failed: {response.status}"
                if response.error_message:
                    message = f"{message} - {response.error_message}"
            return GeocodeResult.failure(message)
        if not response.results:
            return GeocodeResult.failure("No results returned from geocoding API")

        result = response.results[0]
        county = result.component("administrative_area_level_2")
        return GeocodeResult(
            success=True,
            data=GeocodedAddress(
                latitude=result.geometry.location.lat,
                longitude=result.geometry.location.lng,
                formatted_address=result.formatted_address,
                place_id=result.place_id,
                location_type=result.geometry.location_type,
                county=clean_county_name(county) if county else None,
                neighborhood=result.component("neighborhood"),
                confidence=confidence_for(result.geometry.location_type),
            ),
        )

"""Public interface for the Google Maps adapters."""

from __future__ import annotations

from resourcevet.config.google_maps import GoogleMapsConfig, get_google_maps_config

from .client import GoogleMapsAPIError, GoogleMapsClient, clean_county_name
from .geocoder import GoogleGeocoder, confidence_for
from .places import GooglePlacesCrossReference


def build_google_maps(
    config: GoogleMapsConfig | None = None,
) -> tuple[GoogleMapsClient, GoogleGeocoder, GooglePlacesCrossReference]:
    """Geocoder and Places lookup sharing one rate-limited client."""

    client = GoogleMapsClient(config or get_google_maps_config())
    return client, GoogleGeocoder(client), GooglePlacesCrossReference(client)


__all__ = [
    "GoogleGeocoder",
    "GoogleMapsAPIError",
    "GoogleMapsClient",
    "GooglePlacesCrossReference",
    "build_google_maps",
    "clean_county_name",
    "confidence_for",
]

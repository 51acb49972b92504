"""Pydantic models describing the Google Maps web service payloads."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class GoogleMapsBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class LatLng(GoogleMapsBaseModel):
    lat: float
    lng: float


class Geometry(GoogleMapsBaseModel):
    location: LatLng
    location_type: str | None = None


class AddressComponent(GoogleMapsBaseModel):
    long_name: str
    short_name: str
    types: list[str] = Field(default_factory=list)


class GeocodeResultPayload(GoogleMapsBaseModel):
    formatted_address: str
    place_id: str
    geometry: Geometry
    address_components: list[AddressComponent] = Field(default_factory=list)

    def component(self, kind: str) -> str | None:
        for component in self.address_components:
            if kind in component.types:
                return component.long_name
        return None


class GeocodeResponse(GoogleMapsBaseModel):
    status: str
    results: list[GeocodeResultPayload] = Field(default_factory=list)
    error_message: str | None = None


class PlaceCandidate(GoogleMapsBaseModel):
    place_id: str
    name: str | None = None
    formatted_address: str | None = None
    geometry: Geometry | None = None


class FindPlaceResponse(GoogleMapsBaseModel):
    status: str
    candidates: list[PlaceCandidate] = Field(default_factory=list)
    error_message: str | None = None


class PlaceDetails(GoogleMapsBaseModel):
    name: str | None = None
    formatted_address: str | None = None
    formatted_phone_number: str | None = None
    website: str | None = None
    url: str | None = None
    geometry: Geometry | None = None


class PlaceDetailsResponse(GoogleMapsBaseModel):
    status: str
    result: PlaceDetails | None = None
    error_message: str | None = None

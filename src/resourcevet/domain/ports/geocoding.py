"""Port for resolving address text into coordinates."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from resourcevet.domain.model import GeocodeConfidence


@dataclass(frozen=True, slots=True)
class GeocodeRequest:
    address: str
    city: str | None = None
    state: str | None = None
    zip: str | None = None


@dataclass(frozen=True, slots=True)
class GeocodedAddress:
    latitude: float
    longitude: float
    formatted_address: str
    place_id: str
    location_type: str | None = None
    county: str | None = None
    neighborhood: str | None = None
    confidence: GeocodeConfidence = GeocodeConfidence.MEDIUM


@dataclass(frozen=True, slots=True)
class GeocodeResult:
    success: bool
    data: GeocodedAddress | None = None
    error: str | None = None

    @classmethod
    def failure(cls, error: str) -> GeocodeResult:
        return cls(success=False, error=error)


@runtime_checkable
class GeocodingService(Protocol):
    async def geocode(self, request: GeocodeRequest) -> GeocodeResult: ...


__all__ = ["GeocodeRequest", "GeocodeResult", "GeocodedAddress", "GeocodingService"]

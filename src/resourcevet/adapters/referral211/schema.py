"""Pydantic models describing the 211 directory search payloads."""

from __future__ import annotations

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class Referral211BaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ListingPayload(Referral211BaseModel):
    id: str | None = Field(default=None, validation_alias=AliasChoices("idServiceAtLocation", "id"))
    organization: str | None = Field(
        default=None, validation_alias=AliasChoices("nameOrganization", "organizationName")
    )
    service: str | None = Field(default=None, validation_alias=AliasChoices("nameService", "name"))
    address: str | None = Field(
        default=None, validation_alias=AliasChoices("address1PhysicalAddress", "address")
    )
    city: str | None = Field(
        default=None, validation_alias=AliasChoices("cityPhysicalAddress", "city")
    )
    state: str | None = Field(
        default=None, validation_alias=AliasChoices("stateProvincePhysicalAddress", "state")
    )
    phone: str | None = Field(default=None, validation_alias=AliasChoices("phoneNumber", "phone"))
    website: str | None = Field(
        default=None, validation_alias=AliasChoices("websiteOrganization", "website")
    )
    email: str | None = Field(
        default=None, validation_alias=AliasChoices("emailOrganization", "email")
    )
    latitude: float | None = Field(
        default=None, validation_alias=AliasChoices("latitudeLocation", "latitude")
    )
    longitude: float | None = Field(
        default=None, validation_alias=AliasChoices("longitudeLocation", "longitude")
    )

    @property
    def display_name(self) -> str:
        return self.organization or self.service or ""


class SearchResponse(Referral211BaseModel):
    count: int = 0
    results: list[ListingPayload] = Field(default_factory=list)

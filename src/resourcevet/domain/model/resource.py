"""Canonical, source-agnostic resource representation."""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .enums import VerificationLevel


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class SourceInfo(BaseModel):
    """Provenance of a normalized resource."""

    model_config = ConfigDict(frozen=True)

    source_id: str
    source_name: str
    display_name: str | None = None
    url: str | None = None
    fetched_at: datetime = Field(default_factory=_utcnow)

    @field_validator("source_id")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("source_id must not be empty")
        return value


class NormalizedResource(BaseModel):
    model_config = ConfigDict(extra="ignore", validate_assignment=True)

    name: str
    address: str
    city: str
    state: str
    primary_category: str

    zip: str | None = None
    phone: str | None = None
    fax: str | None = None
    email: str | None = None
    website: str | None = None

    description: str | None = None
    services_offered: list[str] | None = None
    eligibility_requirements: str | None = None
    required_documents: list[str] | None = None
    fees: str | None = None
    languages: list[str] | None = None
    accessibility_features: list[str] | None = None

    categories: list[str] | None = None
    tags: list[str] | None = None
    hours: dict[str, str] | str | None = None

    latitude: float | None = None
    longitude: float | None = None
    formatted_address: str | None = None
    place_id: str | None = None
    county: str | None = None
    neighborhood: str | None = None

    program_type: str | None = None
    target_population: str | None = None

    source: SourceInfo
    verification_level: VerificationLevel | None = None

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    def with_updates(self, **changes: object) -> NormalizedResource:
        """Return a validated copy with ``changes`` applied."""

        return type(self).model_validate({**self.model_dump(), **changes})

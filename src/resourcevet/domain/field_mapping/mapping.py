"""Declarative per-source mapping configuration and its packaged registry."""

from __future__ import annotations

import json
from functools import cache
from importlib import resources
from typing import TYPE_CHECKING, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from resourcevet.domain.errors import UnknownSourceError
from resourcevet.domain.model import VerificationLevel

if TYPE_CHECKING:
    from collections.abc import Mapping

WILDCARD = "*"


class SourceMapping(BaseModel):
    """How one source's raw records translate into the canonical schema."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    display_name: str
    field_mapping: dict[str, str]
    category_mapping: dict[str, str]
    services_mapping: dict[str, str] | None = None
    tags: list[str] = Field(default_factory=list)
    verification_level: VerificationLevel
    hours_format: Literal["structured", "raw"] | None = None
    requires_geocoding: bool = False
    requests_per_minute: int | None = None


class MappingRegistry:
    """Named collection of source mappings."""

    def __init__(self, mappings: Mapping[str, SourceMapping]) -> None:
        self._mappings = dict(mappings)

    @classmethod
    def from_json(cls, payload: str | bytes) -> MappingRegistry:
        raw = json.loads(payload)
        if not isinstance(raw, dict):
            raise ValueError("mapping registry must be a JSON object")
        try:
            mappings = {name: SourceMapping.model_validate(entry) for name, entry in raw.items()}
        except ValidationError as exc:
            raise ValueError(f"invalid mapping registry: {exc}") from exc
        return cls(mappings)

    def list_sources(self) -> list[tuple[str, str]]:
        """Return ``(name, display_name)`` pairs in registry order."""

        return [(name, mapping.display_name) for name, mapping in self._mappings.items()]

    def has_source(self, source_name: str) -> bool:
        return source_name in self._mappings

    def get_source_mapping(self, source_name: str) -> SourceMapping:
        try:
            return self._mappings[source_name]
        except KeyError:
            raise UnknownSourceError(source_name) from None


@cache
def default_registry() -> MappingRegistry:
    payload = (
        resources.files("resourcevet.domain.field_mapping")
        .joinpath("data", "field_mappings.json")
        .read_text(encoding="utf-8")
    )
    return MappingRegistry.from_json(payload)


def list_sources() -> list[tuple[str, str]]:
    return default_registry().list_sources()


def has_source(source_name: str) -> bool:
    return default_registry().has_source(source_name)


def get_source_mapping(source_name: str) -> SourceMapping:
    return default_registry().get_source_mapping(source_name)

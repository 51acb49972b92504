"""Translate one source's raw records into :class:`NormalizedResource`."""

from __future__ import annotations

import json
import re
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from resourcevet.domain.errors import (
    MissingRequiredFieldsError,
    NormalizationError,
    UnknownCategoryError,
)
from resourcevet.domain.model import NormalizedResource

from .mapping import WILDCARD, MappingRegistry, SourceMapping, default_registry

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from resourcevet.domain.model import VerificationLevel

REQUIRED_FIELDS = ("name", "address", "city", "state")
CATEGORY_FIELDS = (
    "type",
    "category",
    "ProgramType",
    "program_type",
    "facility_type",
    "type_facility",
    "category_raw",
    "program_type_raw",
)
ID_FIELDS = ("id", "ID", "OrganizationID", "source_id", "facility_id", "program_id")
SOURCE_ID_MAX_LENGTH = 50
RAW_EXCERPT_LENGTH = 200

_LIST_FIELDS = frozenset(
    {
        "services_offered",
        "required_documents",
        "languages",
        "accessibility_features",
        "categories",
        "tags",
    }
)
_FLOAT_FIELDS = frozenset({"latitude", "longitude"})
_LIST_SEPARATORS = re.compile(r"[;,]")
_NON_ALNUM = re.compile(r"[^a-z0-9]")


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


def _is_blank(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, list | dict | tuple):
        return len(value) == 0
    return False


def _split_list(value: object) -> list[str]:
    if isinstance(value, str):
        return [part.strip() for part in _LIST_SEPARATORS.split(value) if part.strip()]
    if isinstance(value, list | tuple):
        return [str(item).strip() for item in value if not _is_blank(item)]
    return [str(value)]


def _raw_excerpt(raw: Mapping[str, Any]) -> str:
    return json.dumps(raw, default=str)[:RAW_EXCERPT_LENGTH]


def _set_nested(target: dict[str, Any], path: str, value: object) -> None:
    parts = path.split(".")
    current = target
    for part in parts[:-1]:
        child = current.get(part)
        if not isinstance(child, dict):
            child = {}
            current[part] = child
        current = child
    current[parts[-1]] = value


def synthesize_source_id(name: str, address: str, city: str) -> str:
    """Stable identifier for records whose source has no native id."""

    key = f"{name}-{address}-{city}".lower()
    return _NON_ALNUM.sub("", key)[:SOURCE_ID_MAX_LENGTH]


class FieldMapper:
    """Stateless translator for one source, driven by its :class:`SourceMapping`."""

    def __init__(
        self,
        source_name: str,
        registry: MappingRegistry | None = None,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.source_name = source_name
        self.mapping: SourceMapping = (registry or default_registry()).get_source_mapping(
            source_name
        )
        self._clock = clock

    @property
    def display_name(self) -> str:
        return self.mapping.display_name

    @property
    def verification_level(self) -> VerificationLevel:
        return self.mapping.verification_level

    @property
    def requires_geocoding(self) -> bool:
        return self.mapping.requires_geocoding

    @property
    def requests_per_minute(self) -> int | None:
        return self.mapping.requests_per_minute

    def normalize(self, raw: Mapping[str, Any]) -> NormalizedResource:
        excerpt = _raw_excerpt(raw)
        fields: dict[str, Any] = {}
        for raw_key, target in self.mapping.field_mapping.items():
            value = raw.get(raw_key)
            if _is_blank(value):
                continue
            _set_nested(fields, target, value.strip() if isinstance(value, str) else value)

        missing = [name for name in REQUIRED_FIELDS if _is_blank(fields.get(name))]
        if missing:
            raise MissingRequiredFieldsError(
                missing, source_name=self.source_name, raw_excerpt=excerpt
            )

        fields["primary_category"] = self._resolve_category(raw, fields, excerpt)

        services_raw = fields.pop("services_raw", None)
        if services_raw is not None:
            fields["services_offered"] = [
                self._map_service(service) for service in _split_list(services_raw)
            ]

        if self.mapping.tags:
            existing = _split_list(fields["tags"]) if "tags" in fields else []
            fields["tags"] = list(dict.fromkeys([*existing, *self.mapping.tags]))

        self._promote_raw(fields, "program_type_raw", "program_type")
        self._promote_raw(fields, "target_population_raw", "target_population")
        self._promote_raw(fields, "hours_raw", "hours")

        nested_source = fields.pop("source", None)
        source: dict[str, Any] = dict(nested_source) if isinstance(nested_source, dict) else {}
        source.update(
            source_id=self._extract_source_id(raw, fields),
            source_name=self.source_name,
            display_name=self.mapping.display_name,
            fetched_at=self._clock(),
        )
        fields["source"] = source
        fields["verification_level"] = self.mapping.verification_level

        for key in [key for key in fields if key.endswith("_raw")]:
            del fields[key]

        try:
            return NormalizedResource.model_validate(self._coerce(fields))
        except ValidationError as exc:
            raise NormalizationError(
                f"Invalid field values for {self.source_name}: {exc.error_count()} error(s), "
                f"Raw data: {excerpt}",
                source_name=self.source_name,
                raw_excerpt=excerpt,
            ) from exc

    def _resolve_category(
        self,
        raw: Mapping[str, Any],
        fields: Mapping[str, Any],
        excerpt: str,
    ) -> str:
        tried: list[str] = []
        table = self.mapping.category_mapping
        for name in CATEGORY_FIELDS:
            value = raw.get(name)
            if _is_blank(value):
                value = fields.get(name)
            if _is_blank(value):
                continue
            candidate = str(value).strip()
            tried.append(candidate)
            if candidate in table:
                return table[candidate]
            # first populated field wins; later ones are not consulted
            break
        if WILDCARD in table:
            return table[WILDCARD]
        raise UnknownCategoryError(tried, source_name=self.source_name, raw_excerpt=excerpt)

    def _map_service(self, service: str) -> str:
        table = self.mapping.services_mapping
        if not table:
            return service
        if service in table:
            return table[service]
        lowered = service.lower()
        for key, value in table.items():
            if key.lower() in lowered:
                return value
        return service

    def _extract_source_id(self, raw: Mapping[str, Any], fields: Mapping[str, Any]) -> str:
        for name in ID_FIELDS:
            value = raw.get(name)
            if not _is_blank(value):
                return str(value).strip()
        return synthesize_source_id(
            str(fields.get("name", "")),
            str(fields.get("address", "")),
            str(fields.get("city", "")),
        )

    @staticmethod
    def _promote_raw(fields: dict[str, Any], raw_key: str, target: str) -> None:
        value = fields.pop(raw_key, None)
        if value is not None and target not in fields:
            fields[target] = value

    @staticmethod
    def _coerce(fields: dict[str, Any]) -> dict[str, Any]:
        coerced: dict[str, Any] = {}
        for key, value in fields.items():
            if key in _LIST_FIELDS:
                coerced[key] = _split_list(value)
            elif key in _FLOAT_FIELDS:
                coerced[key] = value
            elif key == "hours":
                coerced[key] = value if isinstance(value, dict) else str(value)
            elif key in {"source", "verification_level"}:
                coerced[key] = value
            elif isinstance(value, int | float) and not isinstance(value, bool):
                coerced[key] = str(value)
            else:
                coerced[key] = value
        return coerced

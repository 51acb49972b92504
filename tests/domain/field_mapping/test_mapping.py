from __future__ import annotations

import json

import pytest

from resourcevet.domain.errors import UnknownSourceError
from resourcevet.domain.field_mapping import (
    MappingRegistry,
    get_source_mapping,
    has_source,
    list_sources,
)
from resourcevet.domain.model import VerificationLevel


def test_packaged_registry_lists_sources_in_order() -> None:
    names = [name for name, _ in list_sources()]

    assert names[:2] == ["careeronestop", "careeronestop_reentry"]
    assert "community_csv" in names
    assert has_source("careeronestop")
    assert not has_source("nope")


def test_get_source_mapping_reads_typed_settings() -> None:
    mapping = get_source_mapping("community_csv")

    assert mapping.verification_level is VerificationLevel.L3
    assert mapping.requires_geocoding is True
    assert mapping.requests_per_minute == 30
    assert mapping.category_mapping["shelter"] == "housing"


def test_get_source_mapping_unknown_source() -> None:
    with pytest.raises(UnknownSourceError) as excinfo:
        get_source_mapping("nope")

    assert excinfo.value.source_name == "nope"


def test_registry_from_json_validates_entries() -> None:
    payload = json.dumps(
        {
            "tiny": {
                "display_name": "Tiny",
                "field_mapping": {"n": "name"},
                "category_mapping": {"*": "food"},
                "verification_level": "L2",
            }
        }
    )

    registry = MappingRegistry.from_json(payload)

    assert registry.list_sources() == [("tiny", "Tiny")]
    assert registry.get_source_mapping("tiny").verification_level is VerificationLevel.L2


@pytest.mark.parametrize(
    "payload",
    [
        "[]",
        json.dumps({"bad": {"display_name": "Bad"}}),
        json.dumps(
            {
                "bad": {
                    "display_name": "Bad",
                    "field_mapping": {},
                    "category_mapping": {},
                    "verification_level": "L9",
                }
            }
        ),
    ],
)
def test_registry_from_json_rejects_invalid_payloads(payload: str) -> None:
    with pytest.raises(ValueError):  # noqa: PT011
        MappingRegistry.from_json(payload)

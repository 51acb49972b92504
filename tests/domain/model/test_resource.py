from __future__ import annotations

import pytest
from pydantic import ValidationError

from resourcevet.domain.model import (
    CheckName,
    CheckResult,
    Decision,
    FieldConflict,
    SourceInfo,
    VerificationLevel,
)
from tests.helpers.resources import make_resource, make_result


def test_with_updates_validates_changes() -> None:
    resource = make_resource()

    updated = resource.with_updates(latitude=39.78, longitude=-89.65)

    assert updated.has_coordinates
    assert not resource.has_coordinates
    with pytest.raises(ValidationError):
        resource.with_updates(latitude="north")


def test_unknown_fields_are_ignored() -> None:
    resource = make_resource(legacy_column="ignored", verification_level="L2")

    assert resource.verification_level is VerificationLevel.L2
    assert "legacy_column" not in resource.model_dump()


def test_source_id_must_not_be_blank() -> None:
    with pytest.raises(ValidationError):
        SourceInfo(source_id="  ", source_name="careeronestop")


def test_result_serializes_checks_and_conflicts() -> None:
    conflict = FieldConflict(
        field="phone",
        submitted="(217) 555-0100",
        found="(217) 555-0199",
        confidence=0.9,
        source="Google Places",
    )
    result = make_result(
        Decision.FLAG_FOR_HUMAN,
        checks={CheckName.PHONE_VALID: CheckResult(passed=False, evidence="Invalid phone")},
    )
    payload = {
        **result.to_dict(),
        "conflicts": [conflict.to_dict()],
    }

    assert payload["decision"] == "flag_for_human"
    assert payload["checks"] == {
        "phone_valid": {
            "pass": False,
            "confidence": None,
            "evidence": "Invalid phone",
            "details": {},
        }
    }
    assert payload["conflicts"][0]["source"] == "Google Places"

from __future__ import annotations

import asyncio
from typing import Any

import httpx
import pytest

from resourcevet.adapters.referral211 import Referral211APIError, Referral211CrossReference
from resourcevet.config.http_resilience import NO_RETRY, ResilienceConfig
from resourcevet.config.referral211 import Referral211Config
from resourcevet.domain.ports import CrossReferenceQuery
from tests.support.http import Handler, make_client_factory

BASE_URL = "https://api.211.example/search/v1/api/"
QUERY = CrossReferenceQuery(name="Downtown Job Center", address="123 Main St, Springfield, IL")

LISTINGS: list[dict[str, Any]] = [
    {"idServiceAtLocation": "sal-2", "nameOrganization": "Springfield Food Bank"},
    {
        "idServiceAtLocation": "sal-1",
        "nameOrganization": "Downtown Job Centre",
        "nameService": "Employment Services",
        "address1PhysicalAddress": "123 Main St",
        "cityPhysicalAddress": "Springfield",
        "stateProvincePhysicalAddress": "IL",
        "phoneNumber": "217-555-0100",
        "websiteOrganization": "https://jobs.example.org",
        "latitudeLocation": 39.78,
        "longitudeLocation": -89.65,
    },
]


def _reference(
    handler: Handler,
    requests: list[httpx.Request] | None = None,
) -> Referral211CrossReference:
    config = Referral211Config(
        api_key="211-key",
        resilience=ResilienceConfig(
            name="referral211",
            base_url=BASE_URL,
            retry=NO_RETRY,
            cache=None,
            default_headers={"Api-Key": "211-key"},
        ),
    )
    return Referral211CrossReference(config, client_factory=make_client_factory(handler, requests))


def test_lookup_keeps_closest_name_match() -> None:
    requests: list[httpx.Request] = []
    reference = _reference(
        lambda request: httpx.Response(200, json={"count": 2, "results": LISTINGS}), requests
    )

    match = asyncio.run(reference.lookup(QUERY))

    assert match.found
    assert match.match_score is not None
    assert 0.9 < match.match_score < 1.0
    assert match.url == "https://api.211.example/search/v1/api/ServiceAtLocation/sal-1"
    assert match.data == {
        "name": "Downtown Job Centre",
        "address": "123 Main St, Springfield, IL",
        "phone": "217-555-0100",
        "website": "https://jobs.example.org",
        "latitude": 39.78,
        "longitude": -89.65,
    }

    (request,) = requests
    assert request.url.path == "/search/v1/api/Search/Keyword"
    assert request.url.params["Keyword"] == "Downtown Job Center"
    assert request.url.params["Location"] == "123 Main St, Springfield, IL"
    assert request.url.params["Top"] == "10"
    assert request.headers["Api-Key"] == "211-key"


def test_lookup_accepts_a_bare_result_list() -> None:
    payload = [{"id": "7", "name": "Downtown Job Center", "phone": "217-555-0100"}]
    reference = _reference(lambda request: httpx.Response(200, json=payload))

    match = asyncio.run(reference.lookup(QUERY))

    assert match.found
    assert match.match_score == 1.0
    assert match.data == {"name": "Downtown Job Center", "phone": "217-555-0100"}


def test_weak_matches_are_not_found() -> None:
    reference = _reference(
        lambda request: httpx.Response(200, json={"results": LISTINGS[:1]})
    )

    match = asyncio.run(reference.lookup(QUERY))

    assert not match.found
    assert match.match_score is not None
    assert match.match_score < 0.6


def test_not_found_status_means_no_listing() -> None:
    reference = _reference(lambda request: httpx.Response(404))

    match = asyncio.run(reference.lookup(QUERY))

    assert not match.found
    assert match.match_score is None


def test_server_errors_raise() -> None:
    reference = _reference(lambda request: httpx.Response(500))

    with pytest.raises(Referral211APIError) as excinfo:
        asyncio.run(reference.lookup(QUERY))

    assert excinfo.value.status_code == 500
    assert excinfo.value.service == "211"


def test_malformed_payload_raises() -> None:
    reference = _reference(lambda request: httpx.Response(200, json={"results": "none"}))

    with pytest.raises(Referral211APIError, match="Unexpected 211 response payload"):
        asyncio.run(reference.lookup(QUERY))

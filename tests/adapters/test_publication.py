from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from resourcevet.adapters.publication import HttpPublicationEndpoint, PublicationAPIError
from resourcevet.config.http_resilience import NO_RETRY, ResilienceConfig
from resourcevet.config.publication import PublicationConfig
from resourcevet.domain.model import VerificationLevel
from resourcevet.domain.ports import BatchSubmission
from tests.helpers.resources import make_resource
from tests.support.http import Handler, make_client_factory

ENDPOINT = "https://publish.example.org/api/resources/bulk"


def _endpoint(
    handler: Handler,
    requests: list[httpx.Request] | None = None,
) -> HttpPublicationEndpoint:
    config = PublicationConfig(
        endpoint_url=ENDPOINT,
        resilience=ResilienceConfig(
            name="publication",
            retry=NO_RETRY,
            cache=None,
            default_headers={"Authorization": "Bearer secret"},
        ),
    )
    return HttpPublicationEndpoint(config, client_factory=make_client_factory(handler, requests))


def _batch() -> BatchSubmission:
    return BatchSubmission(
        resources=[make_resource()],
        submitter="Bulk Import: DOL CareerOneStop - American Job Centers",
        verification_level=VerificationLevel.L1,
    )


def test_submit_posts_batch_and_parses_results() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "success": True,
                "stats": {"total": 1, "submitted": 1, "auto_approved": 1},
                "results": [
                    {
                        "source_id": "ajc-1",
                        "status": "approved",
                        "resource_id": "res-9",
                        "verification_score": 0.91,
                        "unexpected": "ignored",
                    }
                ],
            },
        )

    response = asyncio.run(_endpoint(handler, requests).submit(_batch()))

    assert response.success
    assert response.stats.auto_approved == 1
    assert response.results[0].resource_id == "res-9"

    (request,) = requests
    assert request.method == "POST"
    assert str(request.url) == ENDPOINT
    assert request.headers["Authorization"] == "Bearer secret"
    body = json.loads(request.content)
    assert body["verification_level"] == "L1"
    assert body["resources"][0]["name"] == "Downtown Job Center"
    assert body["resources"][0]["source"]["source_id"] == "ajc-1"
    assert "notes" not in body


def test_http_errors_raise_with_status() -> None:
    endpoint = _endpoint(lambda request: httpx.Response(503, text="maintenance"))

    with pytest.raises(PublicationAPIError) as excinfo:
        asyncio.run(endpoint.submit(_batch()))

    assert excinfo.value.status_code == 503
    assert str(excinfo.value) == "API error: 503 - maintenance"


def test_transport_errors_raise() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("no route to host", request=request)

    with pytest.raises(PublicationAPIError, match="no route to host"):
        asyncio.run(_endpoint(handler).submit(_batch()))


@pytest.mark.parametrize(
    "payload",
    [b"not json", b'{"success": true, "results": [{"status": "approved"}]}'],
)
def test_unreadable_payload_raises(payload: bytes) -> None:
    endpoint = _endpoint(lambda request: httpx.Response(200, content=payload))

    with pytest.raises(PublicationAPIError, match="Unexpected publication response"):
        asyncio.run(endpoint.submit(_batch()))

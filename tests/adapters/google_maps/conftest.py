from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from resourcevet.adapters.google_maps import GoogleMapsClient
from resourcevet.config.google_maps import GoogleMapsConfig
from resourcevet.config.http_resilience import NO_RETRY, ResilienceConfig
from tests.support.http import make_client_factory

if TYPE_CHECKING:
    from collections.abc import Callable

    import httpx

    from tests.support.http import Handler

BASE_URL = "https://maps.example.test/maps/api/"


@pytest.fixture
def maps_client() -> Callable[..., GoogleMapsClient]:
    def build(
        handler: Handler,
        requests: list[httpx.Request] | None = None,
    ) -> GoogleMapsClient:
        config = GoogleMapsConfig(
            api_key="test-key",
            resilience=ResilienceConfig(
                name="google_maps", base_url=BASE_URL, retry=NO_RETRY, cache=None
            ),
        )
        return GoogleMapsClient(config, client_factory=make_client_factory(handler, requests))

    return build

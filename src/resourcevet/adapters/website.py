"""Reachability probing and visible-text extraction for candidate websites."""

from __future__ import annotations

import re
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from bs4 import BeautifulSoup

from resourcevet.adapters.http_resilience import ResilientClient, default_client_factory
from resourcevet.config.website import WebsiteConfig
from resourcevet.domain.ports import ProbeResult

if TYPE_CHECKING:
    from collections.abc import Callable

    from resourcevet.config.http_resilience import ResilienceConfig

log = getLogger(__name__)

# some servers refuse HEAD but serve GET
_HEAD_FALLBACK_STATUSES = frozenset({403, 405, 501})
_WHITESPACE = re.compile(r"\s+")
_INVISIBLE_TAGS = ("script", "style", "noscript", "template", "svg")


def is_success(status_code: int) -> bool:
    return 200 <= status_code < 400


def visible_text(html: str, *, max_chars: int) -> str:
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(_INVISIBLE_TAGS):
        tag.decompose()
    text = _WHITESPACE.sub(" ", soup.get_text(separator=" ", strip=True)).strip()
    return text[:max_chars]


class HttpWebsiteInspector:
    """Implements both :class:`ReachabilityProbe` and :class:`WebsiteContentFetcher`."""

    def __init__(
        self,
        config: WebsiteConfig | None = None,
        *,
        client_factory: Callable[[ResilienceConfig], ResilientClient] = default_client_factory,
    ) -> None:
        self.config = config or WebsiteConfig()
        self._client_factory = client_factory
        self._client: ResilientClient | None = None

    async def probe(self, url: str) -> ProbeResult:
        try:
            parsed = httpx.URL(url)
        except httpx.InvalidURL:
            return ProbeResult(reachable=False, error=f"Invalid URL: {url}")
        if parsed.scheme not in {"http", "https"} or not parsed.host:
            return ProbeResult(reachable=False, error=f"Invalid URL: {url}")

        client = self._ensure_client()
        try:
            response = await client.head(url)
            if response.status_code in _HEAD_FALLBACK_STATUSES:
                response = await client.get(url)
        except httpx.HTTPError as exc:
            log.debug("Probe of %s failed: %s", url, exc)
            return ProbeResult(reachable=False, error=str(exc) or type(exc).__name__)

        reachable = is_success(response.status_code)
        return ProbeResult(
            reachable=reachable,
            status_code=response.status_code,
            final_url=str(response.url),
            error=None if reachable else f"HTTP {response.status_code}",
        )

    async def fetch_text(self, url: str) -> str:
        client = self._ensure_client()
        try:
            response = await client.get(url, timeout=self.config.content_timeout_seconds)
        except httpx.HTTPError as exc:
            log.debug("Fetching %s failed: %s", url, exc)
            return ""
        if not is_success(response.status_code):
            return ""
        content_type = response.headers.get("content-type", "")
        if "html" not in content_type and "text" not in content_type:
            return ""
        return visible_text(response.text, max_chars=self.config.max_content_chars)

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> ResilientClient:
        if self._client is None:
            self._client = self._client_factory(self.config.resilience)
        return self._client

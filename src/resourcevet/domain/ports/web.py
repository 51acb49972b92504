"""Ports for probing and reading candidate websites."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True, slots=True)
class ProbeResult:
    reachable: bool
    status_code: int | None = None
    final_url: str | None = None
    error: str | None = None


@runtime_checkable
class ReachabilityProbe(Protocol):
    async def probe(self, url: str) -> ProbeResult: ...


@runtime_checkable
class WebsiteContentFetcher(Protocol):
    async def fetch_text(self, url: str) -> str: ...


__all__ = ["ProbeResult", "ReachabilityProbe", "WebsiteContentFetcher"]

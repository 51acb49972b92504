"""Port for corroborating a candidate against an external directory."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping


@dataclass(frozen=True, slots=True)
class CrossReferenceQuery:
    name: str
    address: str


@dataclass(frozen=True, slots=True)
class CrossReferenceMatch:
    """Outcome of one lookup. ``data`` holds canonical field names when present."""

    found: bool
    match_score: float | None = None
    url: str | None = None
    data: Mapping[str, object] = field(default_factory=dict)


@runtime_checkable
class CrossReferenceService(Protocol):
    """A directory that can confirm a candidate exists.

    Implementations apply their own match threshold and may raise on transport
    failures; callers treat an exception as "not corroborated".
    """

    @property
    def name(self) -> str: ...

    async def lookup(self, query: CrossReferenceQuery) -> CrossReferenceMatch: ...


__all__ = ["CrossReferenceMatch", "CrossReferenceQuery", "CrossReferenceService"]

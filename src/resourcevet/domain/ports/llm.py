"""Port for LLM-assisted judgments."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping


@dataclass(frozen=True, slots=True)
class TokenUsage:
    provider: str
    model: str
    input_tokens: int
    output_tokens: int
    duration_ms: int = 0


@dataclass(frozen=True, slots=True)
class ContentJudgment:
    passed: bool
    confidence: float
    evidence: str
    usage: TokenUsage


@dataclass(frozen=True, slots=True)
class UrlProposal:
    url: str | None
    usage: TokenUsage


@runtime_checkable
class JudgmentService(Protocol):
    async def judge_content(
        self,
        claims: Mapping[str, object],
        evidence_text: str,
    ) -> ContentJudgment: ...

    async def propose_url(self, name: str, city: str, state: str) -> UrlProposal: ...


__all__ = ["ContentJudgment", "JudgmentService", "TokenUsage", "UrlProposal"]

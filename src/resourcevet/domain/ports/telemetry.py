"""Ports for verification telemetry and LLM usage accounting."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from resourcevet.domain.model import UsageLog, VerificationResult


@runtime_checkable
class UsageSink(Protocol):
    async def submit(self, entry: UsageLog) -> None: ...


@runtime_checkable
class VerificationEventSink(Protocol):
    def started(self, candidate_key: str) -> None: ...

    def progress(self, candidate_key: str, message: str) -> None: ...

    def completed(self, candidate_key: str, result: VerificationResult) -> None: ...


__all__ = ["UsageSink", "VerificationEventSink"]

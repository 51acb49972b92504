"""LLM cost accounting."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from resourcevet.domain.model import UsageLog

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from resourcevet.domain.ports import TokenUsage, UsageSink

log = logging.getLogger(__name__)

TOKENS_PER_UNIT = 1_000_000


@dataclass(frozen=True, slots=True)
class ModelPrice:
    """USD per million input and output tokens."""

    input_per_million: float
    output_per_million: float

    def cost(self, input_tokens: int, output_tokens: int) -> tuple[float, float]:
        return (
            input_tokens / TOKENS_PER_UNIT * self.input_per_million,
            output_tokens / TOKENS_PER_UNIT * self.output_per_million,
        )


# matched by substring, first hit wins: keep more specific names first
DEFAULT_PRICES: tuple[tuple[str, ModelPrice], ...] = (
    ("haiku", ModelPrice(0.8, 4.0)),
    ("sonnet", ModelPrice(3.0, 15.0)),
    ("opus", ModelPrice(15.0, 75.0)),
    ("gpt-4o-mini", ModelPrice(0.15, 0.6)),
    ("gpt-4o", ModelPrice(2.5, 10.0)),
)
FALLBACK_PRICE = ModelPrice(3.0, 15.0)


class PriceTable:
    def __init__(
        self,
        prices: Sequence[tuple[str, ModelPrice]] = DEFAULT_PRICES,
        *,
        fallback: ModelPrice = FALLBACK_PRICE,
    ) -> None:
        self._prices = tuple(prices)
        self._fallback = fallback

    def price_for(self, model: str) -> ModelPrice:
        lowered = model.lower()
        for key, price in self._prices:
            if key in lowered:
                return price
        log.warning("No price configured for model %s; using fallback rates", model)
        return self._fallback


class CostTracker:
    """Turns token usage into :class:`UsageLog` entries and forwards them to a sink.

    The tracker holds no per-run state; callers accumulate the returned costs.
    """

    def __init__(self, prices: PriceTable | None = None, sink: UsageSink | None = None) -> None:
        self.prices = prices or PriceTable()
        self._sink = sink

    def price(self, usage: TokenUsage) -> tuple[float, float]:
        return self.prices.price_for(usage.model).cost(usage.input_tokens, usage.output_tokens)

    async def record(
        self,
        operation_type: str,
        usage: TokenUsage,
        *,
        candidate_key: str | None = None,
        context: Mapping[str, object] | None = None,
    ) -> UsageLog:
        input_cost, output_cost = self.price(usage)
        entry = UsageLog(
            operation_type=operation_type,
            provider=usage.provider,
            model=usage.model,
            input_tokens=usage.input_tokens,
            output_tokens=usage.output_tokens,
            input_cost_usd=input_cost,
            output_cost_usd=output_cost,
            duration_ms=usage.duration_ms,
            candidate_key=candidate_key,
            context=dict(context) if context else None,
        )
        if self._sink is not None:
            await self._sink.submit(entry)
        return entry

"""LLM judgment service over the OpenAI chat completions API."""

from __future__ import annotations

import json
import re
import time
from logging import getLogger
from typing import TYPE_CHECKING

from aiolimiter import AsyncLimiter
from openai import AsyncOpenAI, OpenAIError
from pydantic import ValidationError

from resourcevet.domain.errors import ExternalServiceError
from resourcevet.domain.ports import ContentJudgment, TokenUsage, UrlProposal

from .prompts import CONTENT_SYSTEM_PROMPT, URL_SYSTEM_PROMPT, content_prompt, url_prompt
from .schema import JudgmentPayload, UrlProposalPayload

if TYPE_CHECKING:
    from collections.abc import Mapping

    from openai.types.chat import ChatCompletion

    from resourcevet.config.llm import LlmConfig

log = getLogger(__name__)

PROVIDER = "openai"
_CODE_FENCE = re.compile(r"```(?:json)?\s*\n(.*?)\n```", re.DOTALL)


class OpenAIJudgmentError(ExternalServiceError):
    def __init__(self, message: str) -> None:
        super().__init__(message, service=PROVIDER)


def extract_json(text: str) -> object:
    """Parse a JSON object from a reply, tolerating a markdown code fence."""

    match = _CODE_FENCE.search(text)
    payload = match.group(1) if match else text
    try:
        return json.loads(payload)
    except json.JSONDecodeError as exc:
        raise OpenAIJudgmentError(f"Model reply is not valid JSON: {text[:200]}") from exc


class OpenAIJudgmentService:
    """:class:`JudgmentService` backed by ``AsyncOpenAI``, rate limited with ``aiolimiter``."""

    def __init__(
        self,
        config: LlmConfig,
        *,
        client: AsyncOpenAI | None = None,
    ) -> None:
        self.config = config
        self._client = client or AsyncOpenAI(
            api_key=config.api_key,
            base_url=config.base_url,
            timeout=config.timeout_seconds,
            max_retries=config.max_retries,
        )
        self._limiter = (
            AsyncLimiter(config.ratelimit.max_calls, config.ratelimit.per_seconds)
            if config.ratelimit
            else None
        )

    async def judge_content(
        self,
        claims: Mapping[str, object],
        evidence_text: str,
    ) -> ContentJudgment:
        model = self.config.judgment_model
        text, usage = await self._complete(
            model, CONTENT_SYSTEM_PROMPT, content_prompt(claims, evidence_text)
        )
        try:
            payload = JudgmentPayload.model_validate(extract_json(text))
        except ValidationError as exc:
            raise OpenAIJudgmentError("Model reply does not match the judgment shape") from exc
        return ContentJudgment(
            passed=payload.passed,
            confidence=payload.confidence,
            evidence=payload.evidence,
            usage=usage,
        )

    async def propose_url(self, name: str, city: str, state: str) -> UrlProposal:
        model = self.config.repair_model
        text, usage = await self._complete(model, URL_SYSTEM_PROMPT, url_prompt(name, city, state))
        try:
            payload = UrlProposalPayload.model_validate(extract_json(text))
        except ValidationError as exc:
            raise OpenAIJudgmentError("Model reply does not match the URL shape") from exc
        return UrlProposal(url=payload.url, usage=usage)

    async def aclose(self) -> None:
        await self._client.close()

    async def _complete(self, model: str, system: str, prompt: str) -> tuple[str, TokenUsage]:
        started = time.perf_counter()
        try:
            if self._limiter is None:
                completion = await self._create(model, system, prompt)
            else:
                async with self._limiter:
                    completion = await self._create(model, system, prompt)
        except OpenAIError as exc:
            log.debug("OpenAI request failed: %s", exc)
            raise OpenAIJudgmentError(str(exc)) from exc

        duration_ms = int((time.perf_counter() - started) * 1000)
        usage = completion.usage
        token_usage = TokenUsage(
            provider=PROVIDER,
            model=completion.model or model,
            input_tokens=usage.prompt_tokens if usage else 0,
            output_tokens=usage.completion_tokens if usage else 0,
            duration_ms=duration_ms,
        )
        if not completion.choices:
            raise OpenAIJudgmentError("Model returned no choices")
        content = completion.choices[0].message.content or ""
        return content, token_usage

    async def _create(self, model: str, system: str, prompt: str) -> ChatCompletion:
        return await self._client.chat.completions.create(
            model=model,
            temperature=0.1,
            max_tokens=1024,
            response_format={"type": "json_object"},
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
        )

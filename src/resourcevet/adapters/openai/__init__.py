"""Public interface for the OpenAI judgment adapter."""

from __future__ import annotations

from .judgment import OpenAIJudgmentError, OpenAIJudgmentService, extract_json

__all__ = ["OpenAIJudgmentError", "OpenAIJudgmentService", "extract_json"]

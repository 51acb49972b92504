"""Pydantic models for the JSON the judgment prompts ask for."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class JudgmentPayload(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    passed: bool = Field(default=False, alias="pass")
    confidence: float = 0.0
    evidence: str = "No evidence provided"

    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp(cls, value: object) -> float:
        try:
            number = float(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return 0.0
        return min(max(number, 0.0), 1.0)


class UrlProposalPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    url: str | None = None
    confidence: float | None = None

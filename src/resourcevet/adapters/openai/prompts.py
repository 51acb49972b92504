"""Prompt templates for content verification and URL repair."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping

CONTENT_SYSTEM_PROMPT = (
    "You verify social-service resource submissions against the text of their website. "
    "Answer with a single JSON object."
)

URL_SYSTEM_PROMPT = (
    "You know the official websites of social-service organizations in the United States. "
    "Answer with a single JSON object."
)


def content_prompt(claims: Mapping[str, object], evidence_text: str) -> str:
    return f"""Submitted resource data:
{json.dumps(dict(claims), indent=2, default=str)}

Website content:
{evidence_text}

Check whether the organization name matches or is very similar, whether the services
on the website align with the submitted category and services, and whether the
description is consistent with the website.

Respond as JSON: {{"pass": true/false, "confidence": 0.0-1.0, "evidence": "short reason"}}.
Be lenient about wording; focus on substantial mismatches."""


def url_prompt(name: str, city: str, state: str) -> str:
    return f"""Organization: {name}
Location: {city}, {state}

The website on file for this organization is unreachable. What is its current official
website? Respond as JSON: {{"url": "https://..." or null, "confidence": 0.0-1.0}}.
Return null if you are not confident."""

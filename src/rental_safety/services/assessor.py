"""Client for the external listing risk assessment."""

from __future__ import annotations

import asyncio
import json
import logging
import re
from typing import Any, Optional

import requests
from pydantic import ValidationError

from rental_safety.config import AssessorConfig
from rental_safety.models import ListingRecord, RiskAssessment


logger = logging.getLogger(__name__)

JSON_BLOCK_RE = re.compile(r"\{[\s\S]*\}")

PROMPT_TEMPLATE = """You are a rental scam detection expert analyzing a marketplace rental listing. Analyze this listing and provide detailed insights.

LISTING DATA:
Title: {title}
Price: {price}
Location: {location}
Description: {description}

ANALYSIS REQUESTED:
1. Property type and size: what type of rental is this (room, studio, apartment, house)? Estimate square footage if not stated.
2. Fair market value: based on location, size, amenities and utilities, what should this rent for?
3. Scam risk: rate 0-100 (0 = definite scam, 100 = legitimate). Look for manipulation tactics, vague or contradictory details, too-good-to-be-true pricing, payment red flags and communication patterns.
4. Red flags: list specific suspicious elements.
5. Green flags: list legitimate-seeming elements.
6. Recommendation: should the user pursue this listing?

Respond in JSON format:
{{
  "propertyType": "room/studio/1BR/etc",
  "estimatedSqFt": number,
  "fairMarketRent": {{"min": number, "max": number}},
  "scamRiskScore": number (0-100),
  "confidence": "high/medium/low",
  "redFlags": ["flag1", "flag2"],
  "greenFlags": ["flag1", "flag2"],
  "priceAssessment": "scam/too-low/fair/high",
  "recommendation": "avoid/verify-carefully/proceed-with-caution/safe-to-contact",
  "reasoning": "brief explanation"
}}"""


class AssessmentError(Exception):
    """The assessment reply could not be turned into a ``RiskAssessment``."""


def build_prompt(listing: ListingRecord) -> str:
    return PROMPT_TEMPLATE.format(
        title=listing.title,
        price=listing.price or "",
        location=listing.location or "",
        description=listing.description,
    )


def parse_assessment(reply: str) -> RiskAssessment:
    """Validate the first JSON object found in a free-text reply."""
    m = JSON_BLOCK_RE.search(reply or "")
    if not m:
        raise AssessmentError("Failed to parse AI response")
    try:
        data = json.loads(m.group(0))
    except json.JSONDecodeError as e:
        raise AssessmentError(f"Malformed JSON in AI response: {e}") from e
    if not isinstance(data, dict):
        raise AssessmentError("AI response is not a JSON object")
    data["enabled"] = True
    try:
        return RiskAssessment.model_validate(data)
    except ValidationError as e:
        raise AssessmentError(f"Unexpected AI response schema: {e.error_count()} error(s)") from e


class Assessor:
    async def assess(self, listing: ListingRecord) -> RiskAssessment:
        raise NotImplementedError


class DisabledAssessor(Assessor):
    """Used when no credential is configured."""

    async def assess(self, listing: ListingRecord) -> RiskAssessment:
        return RiskAssessment.disabled("AI analysis disabled - no API key configured")


class ClaudeAssessor(Assessor):
    """Asks the Anthropic Messages API to assess a listing.

    - Authentication: ``x-api-key`` header.
    - The blocking HTTP call runs in a worker thread.
    - Any failure comes back as a disabled assessment carrying the error text.
    """

    def __init__(self, config: AssessorConfig | None = None) -> None:
        self.config = config or AssessorConfig()
        self.session = requests.Session()

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "User-Agent": self.config.user_agent,
            "x-api-key": self.config.api_key or "",
            "anthropic-version": self.config.api_version,
        }

    def _payload(self, listing: ListingRecord) -> dict[str, Any]:
        return {
            "model": self.config.model,
            "max_tokens": self.config.max_tokens,
            "messages": [{"role": "user", "content": build_prompt(listing)}],
        }

    def request_reply(self, listing: ListingRecord) -> str:
        url = f"{self.config.base_url.rstrip('/')}/v1/messages"
        resp = self.session.post(
            url,
            json=self._payload(listing),
            headers=self._headers(),
            timeout=self.config.timeout_secs,
        )
        if not resp.ok:
            raise AssessmentError(f"API error: {resp.status_code}")
        body = resp.json()
        try:
            return body["content"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            raise AssessmentError("AI response has no text content") from e

    async def assess(self, listing: ListingRecord) -> RiskAssessment:
        try:
            reply = await asyncio.to_thread(self.request_reply, listing)
            return parse_assessment(reply)
        except (requests.RequestException, ValueError, AssessmentError) as e:
            logger.warning("AI assessment failed: %s", e)
            return RiskAssessment.disabled(str(e))


def get_assessor(config: Optional[AssessorConfig] = None) -> Assessor:
    cfg = config or AssessorConfig()
    if not cfg.ai_enabled:
        return DisabledAssessor()
    return ClaudeAssessor(cfg)

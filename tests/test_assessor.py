from __future__ import annotations

import asyncio
import json

import pytest
import requests

from rental_safety.config import AssessorConfig, InvalidApiKey, validate_api_key
from rental_safety.models import PriceVerdict
from rental_safety.services import ClaudeAssessor, DisabledAssessor, extract_listing, get_assessor
from rental_safety.services.assessor import AssessmentError, build_prompt, parse_assessment


REPLY = """Here is my analysis:
{
  "propertyType": "1BR",
  "estimatedSqFt": 700,
  "fairMarketRent": {"min": 1500, "max": 1800},
  "scamRiskScore": 20,
  "confidence": "high",
  "redFlags": ["asks for Zelle"],
  "greenFlags": [],
  "priceAssessment": "scam",
  "recommendation": "avoid",
  "reasoning": "too cheap"
}
Stay safe!"""


class FakeResponse:
    def __init__(self, status: int, body):
        self.status_code = status
        self.ok = status < 400
        self._body = body

    def json(self):
        return self._body


def _config(**kw) -> AssessorConfig:
    return AssessorConfig(api_key="sk-ant-test", base_url="https://api.example.test", **kw)


def test_parse_assessment_extracts_json_block():
    a = parse_assessment(REPLY)
    assert a.enabled
    assert a.risk_score == 20
    assert a.price_verdict is PriceVerdict.scam
    assert a.fair_market_rent.min == 1500
    assert a.red_flags == ["asks for Zelle"]


@pytest.mark.parametrize("reply", ["no json here", "{not json}", '{"scamRiskScore": 400}', "[1, 2]"])
def test_parse_assessment_rejects_malformed(reply):
    with pytest.raises(AssessmentError):
        parse_assessment(reply)


def test_prompt_carries_listing_fields():
    listing = extract_listing("Cozy 1 bed in Richmond, VA for $1,100/month", ["Cozy 1BR"])
    prompt = build_prompt(listing)
    assert "Title: Cozy 1BR" in prompt
    assert "Price: $1,100/month" in prompt
    assert "Location: Richmond, VA" in prompt


def test_claude_assessor_posts_messages_request(monkeypatch):
    assessor = ClaudeAssessor(_config(model="test-model"))
    calls = []

    def fake_post(url, json=None, headers=None, timeout=None):
        calls.append((url, json, headers))
        return FakeResponse(200, {"content": [{"type": "text", "text": REPLY}]})

    monkeypatch.setattr(assessor.session, "post", fake_post)
    result = asyncio.run(assessor.assess(extract_listing("Room $700/month")))

    assert result.enabled and result.risk_score == 20
    url, payload, headers = calls[0]
    assert url == "https://api.example.test/v1/messages"
    assert payload["model"] == "test-model"
    assert headers["x-api-key"] == "sk-ant-test"
    assert headers["anthropic-version"] == "2023-06-01"


@pytest.mark.parametrize(
    "response",
    [
        FakeResponse(401, {"error": "unauthorized"}),
        FakeResponse(200, {"content": []}),
        FakeResponse(200, {"content": [{"type": "text", "text": "I cannot help"}]}),
    ],
)
def test_claude_assessor_failures_disable(monkeypatch, response):
    assessor = ClaudeAssessor(_config())
    monkeypatch.setattr(assessor.session, "post", lambda *a, **kw: response)
    result = asyncio.run(assessor.assess(extract_listing("Room $700/month")))
    assert not result.enabled
    assert result.error


def test_claude_assessor_network_error(monkeypatch):
    assessor = ClaudeAssessor(_config())

    def boom(*a, **kw):
        raise requests.ConnectionError("offline")

    monkeypatch.setattr(assessor.session, "post", boom)
    result = asyncio.run(assessor.assess(extract_listing("Room $700/month")))
    assert not result.enabled
    assert "offline" in result.error


def test_get_assessor_follows_credential(monkeypatch):
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    assert isinstance(get_assessor(), DisabledAssessor)
    disabled = asyncio.run(get_assessor().assess(extract_listing("")))
    assert not disabled.enabled
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant-xyz")
    assert isinstance(get_assessor(), ClaudeAssessor)


def test_config_from_env(monkeypatch):
    monkeypatch.setenv("RSC_TIMEOUT_SECS", "5")
    monkeypatch.setenv("RSC_MAX_TOKENS", "oops")
    cfg = AssessorConfig()
    assert cfg.timeout_secs == 5.0
    assert cfg.max_tokens == 1024


def test_validate_api_key():
    assert validate_api_key("  ") is None
    assert validate_api_key(" sk-ant-abc ") == "sk-ant-abc"
    with pytest.raises(InvalidApiKey):
        validate_api_key("abc")


def test_parse_assessment_rounds_fractional_numbers():
    reply = '{"scamRiskScore": 72.6, "estimatedSqFt": 650.5, "fairMarketRent": {"min": 1400.0, "max": 1699.9}}'
    a = parse_assessment(reply)
    assert a.risk_score == 73
    assert a.estimated_sqft == 650
    assert (a.fair_market_rent.min, a.fair_market_rent.max) == (1400, 1700)

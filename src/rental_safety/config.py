from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional


API_KEY_PREFIX = "sk-ant-"


class InvalidApiKey(ValueError):
    pass


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.environ.get(name, str(default)))
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.environ.get(name, str(default)))
    except ValueError:
        return default


@dataclass
class AssessorConfig:
    """Settings for the external assessment call.

    Values are read from the environment when the config is created. The
    assessment is enabled only when an API key is present.
    """

    api_key: Optional[str] = field(default_factory=lambda: os.environ.get("ANTHROPIC_API_KEY") or None)
    base_url: str = field(default_factory=lambda: os.environ.get("ANTHROPIC_BASE_URL", "https://api.anthropic.com"))
    model: str = field(default_factory=lambda: os.environ.get("RSC_MODEL", "claude-3-5-sonnet-20241022"))
    api_version: str = "2023-06-01"
    max_tokens: int = field(default_factory=lambda: _env_int("RSC_MAX_TOKENS", 1024))
    timeout_secs: float = field(default_factory=lambda: _env_float("RSC_TIMEOUT_SECS", 30.0))
    user_agent: str = field(default_factory=lambda: os.environ.get("HTTP_USER_AGENT", "RentalSafetyChecker/0.1"))
    regions_file: Optional[str] = field(default_factory=lambda: os.environ.get("RSC_REGIONS_FILE") or None)

    @property
    def ai_enabled(self) -> bool:
        return bool(self.api_key)


def validate_api_key(key: Optional[str]) -> Optional[str]:
    """Normalize a user-supplied key; an empty key disables the assessment."""
    key = (key or "").strip()
    if not key:
        return None
    if not key.startswith(API_KEY_PREFIX):
        raise InvalidApiKey(f'Invalid API key format. Should start with "{API_KEY_PREFIX}"')
    return key

"""Data models for analysed rental listings."""

from __future__ import annotations

import hashlib
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator


class Severity(str, Enum):
    critical = "critical"
    high = "high"
    medium = "medium"
    low = "low"
    info = "info"


class SqftSource(str, Enum):
    """How a listing's square footage was obtained."""

    explicit = "explicit"
    dimensions = "dimensions"
    estimated = "estimated"
    absent = "absent"


class PriceVerdict(str, Enum):
    scam = "scam"
    too_low = "too-low"
    fair = "fair"
    high = "high"


class Finding(BaseModel):
    """A single observation emitted by a detector."""

    model_config = ConfigDict(frozen=True)

    severity: Severity
    message: str
    category: str


class ListingRecord(BaseModel):
    """Structured facts pulled out of a listing page's text."""

    model_config = ConfigDict(frozen=True)

    title: str = ""
    price: Optional[str] = None
    price_amount: Optional[int] = None
    location: Optional[str] = None
    square_footage: Optional[int] = None
    sqft_source: SqftSource = SqftSource.absent
    bedrooms: Optional[int] = None
    description: str = ""

    @computed_field  # type: ignore[misc]
    @property
    def description_lower(self) -> str:
        return f"{self.description} {self.title}".lower()

    @property
    def sqft_is_estimated(self) -> bool:
        return self.sqft_source not in (SqftSource.explicit, SqftSource.dimensions)

    @property
    def fingerprint(self) -> str:
        parts = [self.title, self.price or "", self.location or "", self.description]
        return hashlib.sha1("\x1f".join(parts).encode("utf-8")).hexdigest()


def _round_number(v):
    # Replies may carry fractional numbers for whole-number fields.
    if isinstance(v, float):
        return int(round(v))
    return v


class FairMarketRent(BaseModel):
    model_config = ConfigDict(frozen=True)

    min: int
    max: int

    @field_validator("min", "max", mode="before")
    @classmethod
    def _round_dollars(cls, v):
        return _round_number(v)


class RiskAssessment(BaseModel):
    """Response of the external assessment oracle.

    Field aliases follow the JSON the oracle is asked to produce, so a parsed
    reply can be validated directly with ``RiskAssessment.model_validate``.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    enabled: bool = False
    risk_score: Optional[int] = Field(default=None, alias="scamRiskScore", ge=0, le=100)
    price_verdict: Optional[PriceVerdict] = Field(default=None, alias="priceAssessment")
    red_flags: List[str] = Field(default_factory=list, alias="redFlags")
    green_flags: List[str] = Field(default_factory=list, alias="greenFlags")
    fair_market_rent: Optional[FairMarketRent] = Field(default=None, alias="fairMarketRent")
    property_type: Optional[str] = Field(default=None, alias="propertyType")
    estimated_sqft: Optional[int] = Field(default=None, alias="estimatedSqFt")
    confidence: Optional[str] = None
    recommendation: Optional[str] = None
    reasoning: Optional[str] = None
    error: Optional[str] = None

    @field_validator("risk_score", "estimated_sqft", mode="before")
    @classmethod
    def _round_numbers(cls, v):
        return _round_number(v)

    @classmethod
    def disabled(cls, error: Optional[str] = None) -> "RiskAssessment":
        return cls(enabled=False, error=error)


class AnalysisResult(BaseModel):
    """Render-ready outcome of one analysis pass."""

    model_config = ConfigDict(frozen=True)

    score: int
    label: str
    findings: List[Finding] = Field(default_factory=list)
    assessment: Optional[RiskAssessment] = None
    fingerprint: Optional[str] = None
    url: Optional[str] = None

    @computed_field  # type: ignore[misc]
    @property
    def flag_count(self) -> int:
        return len(self.findings)

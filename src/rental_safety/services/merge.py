from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from rental_safety.models import Finding, PriceVerdict, RiskAssessment, Severity


# Blend weights in tenths: 60% pattern score, 40% external score.
PATTERN_WEIGHT = 6
EXTERNAL_WEIGHT = 4


def blend_score(base_score: int, external_score: Optional[int]) -> int:
    """Weighted blend rounded half-up; a missing external score keeps the base."""
    if external_score is None:
        external_score = base_score
    return (base_score * PATTERN_WEIGHT + external_score * EXTERNAL_WEIGHT + 5) // 10


def _fair_range(assessment: RiskAssessment) -> str:
    rent = assessment.fair_market_rent
    if rent is None:
        return "unknown"
    return f"${rent.min}-${rent.max}"


def price_finding(assessment: RiskAssessment) -> Optional[Finding]:
    verdict = assessment.price_verdict
    if verdict == PriceVerdict.scam:
        return Finding(
            severity=Severity.critical,
            message=f"AI Assessment: Price is likely a scam (Fair market: {_fair_range(assessment)})",
            category="ai-price",
        )
    if verdict == PriceVerdict.too_low:
        return Finding(
            severity=Severity.medium,
            message=f"AI Assessment: Below market rate (Fair: {_fair_range(assessment)})",
            category="ai-price",
        )
    if verdict == PriceVerdict.fair:
        size = assessment.estimated_sqft if assessment.estimated_sqft is not None else "?"
        return Finding(
            severity=Severity.info,
            message=f"AI Assessment: Fair price for {assessment.property_type or 'this rental'} (~{size} sq ft)",
            category="ai-price",
        )
    return None


def merge_assessment(
    base_score: int, findings: Sequence[Finding], assessment: Optional[RiskAssessment]
) -> Tuple[int, List[Finding]]:
    """Combine the pattern-only result with an external assessment.

    Disabled or missing assessments leave the base score and findings as-is.
    """
    merged = list(findings)
    if assessment is None or not assessment.enabled:
        return base_score, merged
    for flag in assessment.red_flags:
        merged.append(Finding(severity=Severity.high, message=f"AI detected: {flag}", category="ai-detection"))
    extra = price_finding(assessment)
    if extra is not None:
        merged.append(extra)
    return blend_score(base_score, assessment.risk_score), merged

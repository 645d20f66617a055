from __future__ import annotations

from typing import Dict, Iterable

from rental_safety.models import Finding, Severity


DEDUCTIONS: Dict[Severity, int] = {
    Severity.critical: 50,
    Severity.high: 30,
    Severity.medium: 15,
    Severity.low: 5,
    Severity.info: 0,
}

HIGH_RISK_BELOW = 40
MEDIUM_RISK_BELOW = 70


def reduce_score(findings: Iterable[Finding]) -> int:
    """Fold findings into a 0-100 score; 100 means nothing was flagged."""
    return max(0, 100 - sum(DEDUCTIONS[f.severity] for f in findings))


def risk_label(score: int) -> str:
    if score < HIGH_RISK_BELOW:
        return "High Risk"
    if score < MEDIUM_RISK_BELOW:
        return "Medium Risk"
    return "Low Risk"

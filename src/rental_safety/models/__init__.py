from .listing import (
    AnalysisResult,
    FairMarketRent,
    Finding,
    ListingRecord,
    PriceVerdict,
    RiskAssessment,
    Severity,
    SqftSource,
)

__all__ = [
    "AnalysisResult",
    "FairMarketRent",
    "Finding",
    "ListingRecord",
    "PriceVerdict",
    "RiskAssessment",
    "Severity",
    "SqftSource",
]

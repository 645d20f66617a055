"""Service layer for the rental safety checker."""

from .assessor import Assessor, ClaudeAssessor, DisabledAssessor, get_assessor
from .extractor import extract_listing, is_rental_listing, parse_price_amount
from .merge import merge_assessment
from .pipeline import AnalysisSession, PendingAnalysis, analyze, evaluate, refine

__all__ = [
    "AnalysisSession",
    "Assessor",
    "ClaudeAssessor",
    "DisabledAssessor",
    "PendingAnalysis",
    "analyze",
    "evaluate",
    "extract_listing",
    "get_assessor",
    "is_rental_listing",
    "merge_assessment",
    "parse_price_amount",
    "refine",
]

"""Analysis pipeline: pattern-only result first, merged result later."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from rental_safety.filters import DetectorEngine, reduce_score, risk_label
from rental_safety.models import AnalysisResult, ListingRecord

from .assessor import Assessor, DisabledAssessor
from .extractor import extract_listing
from .merge import merge_assessment


logger = logging.getLogger(__name__)


def evaluate(listing: ListingRecord, engine: Optional[DetectorEngine] = None) -> AnalysisResult:
    engine = engine or DetectorEngine()
    findings = engine.evaluate(listing)
    score = reduce_score(findings)
    return AnalysisResult(
        score=score,
        label=risk_label(score),
        findings=findings,
        fingerprint=listing.fingerprint,
    )


def analyze(
    text: Optional[str],
    headings: Iterable[Optional[str]] = (),
    engine: Optional[DetectorEngine] = None,
) -> AnalysisResult:
    return evaluate(extract_listing(text, headings), engine)


async def refine(base: AnalysisResult, listing: ListingRecord, assessor: Assessor) -> AnalysisResult:
    """Merge the external assessment into ``base``.

    Failures of any kind leave ``base`` as the answer.
    """
    try:
        assessment = await assessor.assess(listing)
    except Exception:
        logger.warning("AI assessment raised; keeping pattern-only result", exc_info=True)
        return base
    if not assessment.enabled:
        if assessment.error:
            logger.info("AI assessment unavailable: %s", assessment.error)
        return base
    score, findings = merge_assessment(base.score, base.findings, assessment)
    return base.model_copy(
        update={"score": score, "label": risk_label(score), "findings": findings, "assessment": assessment}
    )


@dataclass
class PendingAnalysis:
    listing: ListingRecord
    base: AnalysisResult
    merged: "asyncio.Task[Optional[AnalysisResult]]"


class AnalysisSession:
    """Tracks the newest analysis pass for one page.

    ``start`` returns the base result immediately. The merged result arrives
    through ``PendingAnalysis.merged`` and is dropped (resolves to ``None``)
    when a newer pass over a different listing has started in the meantime.
    Must be used inside a running event loop.
    """

    def __init__(self, assessor: Optional[Assessor] = None, engine: Optional[DetectorEngine] = None) -> None:
        self.assessor = assessor or DisabledAssessor()
        self.engine = engine or DetectorEngine()
        self._current: Optional[AnalysisResult] = None
        self._fingerprint: Optional[str] = None

    @property
    def current(self) -> Optional[AnalysisResult]:
        return self._current

    def start(self, text: Optional[str], headings: Iterable[Optional[str]] = ()) -> PendingAnalysis:
        listing = extract_listing(text, headings)
        base = evaluate(listing, self.engine)
        self._current = base
        self._fingerprint = listing.fingerprint
        task = asyncio.get_running_loop().create_task(self._finish(listing, base))
        return PendingAnalysis(listing=listing, base=base, merged=task)

    def is_current(self, pending: PendingAnalysis) -> bool:
        return pending.listing.fingerprint == self._fingerprint

    async def _finish(self, listing: ListingRecord, base: AnalysisResult) -> Optional[AnalysisResult]:
        merged = await refine(base, listing, self.assessor)
        if listing.fingerprint != self._fingerprint:
            logger.debug("Discarding stale assessment for %s", listing.fingerprint[:8])
            return None
        self._current = merged
        return merged

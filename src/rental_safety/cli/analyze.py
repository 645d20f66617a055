from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from rental_safety.config import AssessorConfig, InvalidApiKey, validate_api_key
from rental_safety.filters import DetectorEngine, RegionTable
from rental_safety.models import AnalysisResult
from rental_safety.services import evaluate, extract_listing, get_assessor, refine


logger = logging.getLogger(__name__)


def render(result: AnalysisResult, title: str) -> str:
    lines = [f"{title}: {result.score} ({result.label}) - {result.flag_count} red flag(s) found"]
    for f in result.findings:
        lines.append(f"  [{f.severity.value}] {f.message}")
    if not result.findings:
        lines.append("  No red flags detected")
    return "\n".join(lines)


async def run(text: str, headings: List[str], cfg: AssessorConfig, as_json: bool) -> int:
    engine = DetectorEngine(RegionTable.from_file(cfg.regions_file)) if cfg.regions_file else DetectorEngine()
    listing = extract_listing(text, headings)
    base = evaluate(listing, engine)
    print(json.dumps(base.model_dump(mode="json")) if as_json else render(base, "Pattern check"))
    if cfg.ai_enabled:
        merged = await refine(base, listing, get_assessor(cfg))
        if merged is not base:
            print(json.dumps(merged.model_dump(mode="json")) if as_json else render(merged, "With AI"))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="rental-safety", description="Score a rental listing for scam risk")
    sub = parser.add_subparsers(dest="command", required=True)
    p = sub.add_parser("analyze", help="Analyze listing text from a file ('-' for stdin)")
    p.add_argument("file", help="Path to the listing page text")
    p.add_argument("--heading", action="append", default=[], help="Heading candidate, most reliable first")
    p.add_argument("--no-ai", action="store_true", help="Pattern checks only")
    p.add_argument("--json", action="store_true", help="Emit JSON lines instead of text")
    p.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    cfg = AssessorConfig()
    try:
        cfg.api_key = None if args.no_ai else validate_api_key(cfg.api_key)
    except InvalidApiKey as e:
        logger.warning("%s; running pattern checks only", e)
        cfg.api_key = None

    text = sys.stdin.read() if args.file == "-" else Path(args.file).read_text(encoding="utf-8")
    return asyncio.run(run(text, args.heading, cfg, args.json))


if __name__ == "__main__":
    sys.exit(main())

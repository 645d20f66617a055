"""Scrapy adapter: analyse single listing pages."""

from __future__ import annotations

import re
from typing import Iterable, Iterator, List, Optional

import scrapy
from scrapy.http import Response

from rental_safety.filters import DetectorEngine
from rental_safety.models import AnalysisResult

from .extractor import extract_listing, is_rental_listing
from .pipeline import evaluate


# Heading candidates, most to least reliable.
HEADING_SELECTORS = ["h1", '[role="heading"]', 'span[dir="auto"]']

_TEXT_XPATH = "//body//text()[not(ancestor::script) and not(ancestor::style) and not(ancestor::noscript)]"


def page_text(response: Response) -> str:
    """Approximate the rendered text of a page, one text run per line."""
    runs = [t.strip() for t in response.xpath(_TEXT_XPATH).getall()]
    return "\n".join(t for t in runs if t)


def heading_candidates(response: Response) -> List[str]:
    out: List[str] = []
    for sel in HEADING_SELECTORS:
        el = response.css(sel)
        if not el:
            continue
        text = " ".join(t.strip() for t in el[0].css("::text").getall() if t and t.strip())
        out.append(re.sub(r"\s+", " ", text))
    return out


class ListingPageSpider(scrapy.Spider):
    """Fetch each start URL once and yield its pattern-only ``AnalysisResult``.

    Links are never followed.
    """

    name = "rental_safety"
    custom_settings = {
        "DOWNLOAD_DELAY": 0.5,
        "RETRY_TIMES": 3,
        "LOG_LEVEL": "INFO",
        "LOG_FORMATTER": "rental_safety.utils.log.ResultLogFormatter",
        "ITEM_PIPELINES": {"rental_safety.utils.pipelines.JsonifyPydantic": 100},
    }

    def __init__(
        self,
        start_urls: Optional[Iterable[str] | str] = None,
        rental_only: Optional[bool | str] = None,
        **kwargs: object,
    ) -> None:
        super().__init__(**kwargs)  # type: ignore[arg-type]
        # Scrapy passes CLI args as strings; accept comma/space-separated URLs.
        parsed: list[str] = []
        if isinstance(start_urls, str):
            parts = re.split(r"[\s,]+", start_urls.strip()) if start_urls.strip() else []
            parsed = [p for p in parts if p]
        elif start_urls is not None:
            parsed = list(start_urls)
        self.start_urls = parsed
        if isinstance(rental_only, str):
            self._rental_only = rental_only not in ("0", "false", "False", "no", "None", "")
        else:
            self._rental_only = bool(rental_only) if rental_only is not None else True
        self.engine = DetectorEngine()

    def parse(self, response: Response, **kwargs: object) -> Iterator[AnalysisResult]:
        text = page_text(response)
        if self._rental_only and not is_rental_listing(response.url, text):
            self.logger.info("Not a rental listing: %s", response.url)
            return
        listing = extract_listing(text, heading_candidates(response))
        result = evaluate(listing, self.engine)
        yield result.model_copy(update={"url": response.url})

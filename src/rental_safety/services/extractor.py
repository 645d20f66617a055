"""Turn raw listing page text into a ``ListingRecord``."""

from __future__ import annotations

import re
from typing import Iterable, Optional, Tuple

from rental_safety.models import ListingRecord, SqftSource


DESCRIPTION_LIMIT = 5000

_PERIOD = r"\s*(?:/\s*)?(?:month|mo|week|wk|per month)"

# Most to least specific; the first hit wins.
PRICE_PATTERNS = [
    re.compile(r"\$\d{1,3},\d{3}(?:\.\d{2})?" + _PERIOD, re.I),
    re.compile(r"\$\d{3,5}(?:\.\d{2})?" + _PERIOD, re.I),
    re.compile(r"\$\d{1,5}" + _PERIOD, re.I),
    re.compile(r"\$\d{1,3},\d{3}(?:\.\d{2})?"),
    re.compile(r"\$\d{3,5}(?:\.\d{2})?"),
]

LOCATION_PATTERNS = [
    re.compile(r"[A-Z][a-z]+,\s*[A-Z]{2}"),
    re.compile(r"[A-Z][a-z]+(?:\s+[A-Z][a-z]+)*,\s*[A-Z]{2}"),
]

SQFT_RE = re.compile(r"(\d{1,4})\s*(?:sq\.?\s*ft|sqft|square feet)", re.I)
DIMENSIONS_RE = re.compile(r"(\d{1,2})\s*[xX×]\s*(\d{1,2})\s*(?:ft|feet|')?")
BEDROOMS_RE = re.compile(r"(\d+)\s*(?:bed|bedroom|br|bd)", re.I)
AMOUNT_RE = re.compile(r"\$?([\d,]+)")

STUDIO_SQFT = 450
ROOM_SQFT = 150
BASE_SQFT = 400
PER_BEDROOM_SQFT = 300

RENTAL_KEYWORDS = ("rent", "lease", "apartment", "room", "housing", "bedroom", "studio")
LISTING_URL_MARKERS = ("/marketplace/item/", "/marketplace/product/")


def extract_title(headings: Iterable[Optional[str]]) -> str:
    for h in headings:
        if h and h.strip():
            return h.strip()
    return ""


def extract_price(text: str) -> Optional[str]:
    for pattern in PRICE_PATTERNS:
        m = pattern.search(text)
        if m:
            return m.group(0)
    return None


def parse_price_amount(price: Optional[str]) -> Optional[int]:
    """Return the whole-dollar amount of a matched price token.

    ``"$1,150 / Month"`` -> 1150, ``"$45"`` -> 45. Cents are not part of the
    amount.
    """
    if not price:
        return None
    m = AMOUNT_RE.search(price)
    if not m:
        return None
    digits = re.sub(r"\D", "", m.group(1))
    return int(digits) if digits else None


def extract_location(text: str) -> Optional[str]:
    for pattern in LOCATION_PATTERNS:
        m = pattern.search(text)
        if m:
            return m.group(0)
    return None


def extract_bedrooms(text: str) -> Optional[int]:
    m = BEDROOMS_RE.search(text)
    return int(m.group(1)) if m else None


def extract_square_footage(text: str, bedrooms: Optional[int] = None) -> Tuple[Optional[int], SqftSource]:
    # A stated size of zero counts as not stated.
    m = SQFT_RE.search(text)
    if m and int(m.group(1)) > 0:
        return int(m.group(1)), SqftSource.explicit
    m = DIMENSIONS_RE.search(text)
    if m and int(m.group(1)) * int(m.group(2)) > 0:
        return int(m.group(1)) * int(m.group(2)), SqftSource.dimensions
    lower = text.lower()
    if "studio" in lower:
        return STUDIO_SQFT, SqftSource.estimated
    if "private room" in lower or "room for rent" in lower:
        return ROOM_SQFT, SqftSource.estimated
    if bedrooms:
        return BASE_SQFT + PER_BEDROOM_SQFT * bedrooms, SqftSource.estimated
    return None, SqftSource.absent


def extract_listing(text: Optional[str], headings: Iterable[Optional[str]] = ()) -> ListingRecord:
    """Build a listing record from page text and heading candidates.

    Missing fields are left empty; this never raises on odd input.
    """
    text = text or ""
    if isinstance(headings, str):
        headings = [headings]
    price = extract_price(text)
    bedrooms = extract_bedrooms(text)
    sqft, source = extract_square_footage(text, bedrooms)
    return ListingRecord(
        title=extract_title(headings),
        price=price,
        price_amount=parse_price_amount(price),
        location=extract_location(text),
        square_footage=sqft,
        sqft_source=source,
        bedrooms=bedrooms,
        description=text[:DESCRIPTION_LIMIT],
    )


def is_rental_listing(url: Optional[str], text: Optional[str]) -> bool:
    """True for marketplace item pages whose text reads like a rental."""
    if not url or not any(marker in url for marker in LISTING_URL_MARKERS):
        return False
    lower = (text or "").lower()
    return any(kw in lower for kw in RENTAL_KEYWORDS)

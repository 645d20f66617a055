from __future__ import annotations

import re
from typing import Callable, Iterable, List, Optional, Sequence

from rental_safety.models import Finding, ListingRecord, Severity

from .regions import RegionTable


PAYMENT_KEYWORDS = [
    "wire transfer",
    "zelle",
    "venmo",
    "cashapp",
    "western union",
    "moneygram",
    "bitcoin",
    "deposit before viewing",
]
REMOTE_LANDLORD_KEYWORDS = ["overseas", "out of country", "missionary", "military deployment", "work overseas"]
URGENCY_KEYWORDS = ["act fast", "won't last", "many interested", "first come", "limited time"]
OFF_PLATFORM_KEYWORDS = ["text me", "email me", "whatsapp", "contact me directly"]
PAY_BEFORE_VIEWING_KEYWORDS = [
    "send deposit first",
    "pay before viewing",
    "send money before",
    "keys after payment",
    "payment before viewing",
    "money first",
]
NEGATION_PREFIXES = ["do not ", "never ", "don't ", "avoid ", "warning: "]
STOLEN_LISTING_KEYWORDS = [
    "google voice",
    "verification code",
    "just move in",
    "no background check",
    "no credit check",
]
SLANG_RE = re.compile(r"\b(?:ur|u|pls|plz|gud|grt)\b")
SLANG_THRESHOLD = 2

IMPOSSIBLE_PRICE = 10
SCAM_PRICE = 100


Detector = Callable[[ListingRecord], List[Finding]]


def _keyword_hits(text: str, keywords: Iterable[str]) -> List[str]:
    return [kw for kw in keywords if kw in text]


class DetectorEngine:
    """Evaluate the ordered detector catalog against a listing.

    Findings come back in detector order; the order only matters for display.
    """

    def __init__(self, regions: Optional[RegionTable] = None) -> None:
        self.regions = regions or RegionTable.builtin()
        self.detectors: Sequence[Detector] = (
            self.payment_methods,
            self.remote_landlord,
            self.price_floor,
            self.urgency,
            self.off_platform,
            self.grammar,
            self.pay_before_viewing,
            self.stolen_listing,
            self.refundable_fee,
            self.price_per_sqft,
        )

    def evaluate(self, listing: ListingRecord) -> List[Finding]:
        findings: List[Finding] = []
        for detector in self.detectors:
            findings.extend(detector(listing))
        return findings

    # Keyword detectors

    def payment_methods(self, listing: ListingRecord) -> List[Finding]:
        return [
            Finding(
                severity=Severity.high,
                message=f'Mentions "{kw}" - common scam payment method',
                category="payment",
            )
            for kw in _keyword_hits(listing.description_lower, PAYMENT_KEYWORDS)
        ]

    def remote_landlord(self, listing: ListingRecord) -> List[Finding]:
        return [
            Finding(
                severity=Severity.high,
                message="Landlord claims to be overseas - very common scam",
                category="landlord",
            )
            for _ in _keyword_hits(listing.description_lower, REMOTE_LANDLORD_KEYWORDS)
        ]

    def urgency(self, listing: ListingRecord) -> List[Finding]:
        return [
            Finding(severity=Severity.medium, message="Creates false urgency - pressure tactic", category="tactics")
            for _ in _keyword_hits(listing.description_lower, URGENCY_KEYWORDS)
        ]

    def off_platform(self, listing: ListingRecord) -> List[Finding]:
        return [
            Finding(
                severity=Severity.medium,
                message="Wants to move the conversation off-platform - suspicious",
                category="communication",
            )
            for _ in _keyword_hits(listing.description_lower, OFF_PLATFORM_KEYWORDS)
        ]

    def grammar(self, listing: ListingRecord) -> List[Finding]:
        if len(SLANG_RE.findall(listing.description_lower)) <= SLANG_THRESHOLD:
            return []
        return [
            Finding(
                severity=Severity.low,
                message="Poor grammar - possible automated/overseas scam",
                category="language",
            )
        ]

    def pay_before_viewing(self, listing: ListingRecord) -> List[Finding]:
        text = listing.description_lower
        for kw in _keyword_hits(text, PAY_BEFORE_VIEWING_KEYWORDS):
            # Landlords sometimes warn against this; only the literal
            # "<negation><phrase>" form counts as a warning.
            if any(prefix + kw in text for prefix in NEGATION_PREFIXES):
                continue
            return [
                Finding(
                    severity=Severity.critical,
                    message="Demands payment before viewing - major scam red flag",
                    category="payment",
                )
            ]
        return []

    def stolen_listing(self, listing: ListingRecord) -> List[Finding]:
        return [
            Finding(
                severity=Severity.high,
                message="Suspicious terms often used in fake listings",
                category="tactics",
            )
            for _ in _keyword_hits(listing.description_lower, STOLEN_LISTING_KEYWORDS)
        ]

    def refundable_fee(self, listing: ListingRecord) -> List[Finding]:
        text = listing.description_lower
        if "application fee" in text and "refundable" in text:
            return [
                Finding(
                    severity=Severity.medium,
                    message='"Refundable application fee" - often not actually refunded',
                    category="payment",
                )
            ]
        return []

    # Price detectors

    def price_floor(self, listing: ListingRecord) -> List[Finding]:
        price = listing.price_amount
        if price is None:
            return []
        if price <= IMPOSSIBLE_PRICE:
            return [
                Finding(
                    severity=Severity.critical,
                    message=f"EXTREME SCAM ALERT: ${price}/month is impossible - DO NOT CONTACT",
                    category="price",
                ),
                Finding(
                    severity=Severity.critical,
                    message=f"No legitimate rental costs ${price} - this will steal your money/identity",
                    category="price",
                ),
            ]
        if price < SCAM_PRICE:
            return [
                Finding(
                    severity=Severity.critical,
                    message=f"Price is ${price} - this is almost certainly a SCAM",
                    category="price",
                )
            ]
        floor = self.regions.lookup(listing.location, listing.description_lower).price_floor
        if price < floor * 0.5:
            return [
                Finding(
                    severity=Severity.high,
                    message=f"Price (${price}) is far below market rate for this area - likely fake",
                    category="price",
                )
            ]
        if price < floor * 0.7:
            return [
                Finding(
                    severity=Severity.medium,
                    message=f"Price (${price}) seems unusually low for this area - verify carefully",
                    category="price",
                )
            ]
        return []

    def price_per_sqft(self, listing: ListingRecord) -> List[Finding]:
        rent = listing.price_amount
        sqft = listing.square_footage
        if rent is None or not sqft:
            return []
        band = self.regions.lookup(listing.location, listing.description_lower).band
        per_sqft = rent / sqft
        note = " (estimated)" if listing.sqft_is_estimated else ""
        market = f"${band.min:.2f}-${band.max:.2f}"

        if per_sqft < band.min * 0.3:
            severity, category = Severity.critical, "price"
            message = (
                f"${rent}/{sqft}{note} sq ft = ${per_sqft:.2f}/sq ft - impossibly low "
                f"(market: {market}) - SCAM"
            )
        elif per_sqft < band.min * 0.6:
            severity, category = Severity.high, "price"
            message = f"${per_sqft:.2f}/sq ft{note} is extremely low for {band.area_name} (market: {market})"
        elif per_sqft < band.min:
            severity, category = Severity.low, "deal"
            message = (
                f"Great deal! ${per_sqft:.2f}/sq ft{note} is below market "
                f"({band.area_name} avg: ${band.avg:.2f}) - verify before paying"
            )
        elif per_sqft <= band.avg:
            severity, category = Severity.info, "deal"
            message = f"Good price: ${per_sqft:.2f}/sq ft{note} ({band.area_name} avg: ${band.avg:.2f})"
        elif per_sqft <= band.max:
            severity, category = Severity.info, "deal"
            message = f"Fair price: ${per_sqft:.2f}/sq ft{note} (market: {market})"
        else:
            severity, category = Severity.low, "deal"
            message = f"Overpriced: ${per_sqft:.2f}/sq ft{note} is above {band.area_name} market (max: ${band.max:.2f})"
        return [Finding(severity=severity, message=message, category=category)]

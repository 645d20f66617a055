"""Regional rent expectations used by the price detectors.

A ``RegionTable`` maps free text (location + description) to a minimum
realistic monthly rent and a price-per-square-foot band. Regions are matched by
plain substring search, in table order.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field


class MarketBand(BaseModel):
    min: float
    max: float
    avg: float
    area_name: str = "this area"


class PricePolicy(BaseModel):
    """What a matched area expects: a rent floor and a $/sq ft band."""

    price_floor: int
    band: MarketBand


class AreaTier(BaseModel):
    areas: List[str]
    policy: PricePolicy


class Region(BaseModel):
    name: str
    # Matched against the location only.
    markers: List[str] = Field(default_factory=list)
    # Checked in order; first tier with a hit wins.
    tiers: List[AreaTier] = Field(default_factory=list)
    fallback: PricePolicy

    def engaged(self, location: str, text: str) -> bool:
        if any(m in location for m in self.markers):
            return True
        return any(area in text for tier in self.tiers for area in tier.areas)

    def policy_for(self, location: str, text: str) -> PricePolicy:
        for tier in self.tiers:
            if any(area in location or area in text for area in tier.areas):
                return tier.policy
        return self.fallback


DEFAULT_POLICY = PricePolicy(
    price_floor=400,
    band=MarketBand(min=1.00, max=2.50, avg=1.75, area_name="this area"),
)

VIRGINIA = Region(
    name="virginia",
    markers=["va", "virginia"],
    tiers=[
        AreaTier(
            areas=["arlington", "fairfax", "alexandria", "reston", "falls church", "mclean", "vienna", "tysons"],
            policy=PricePolicy(
                price_floor=800,
                band=MarketBand(min=2.00, max=3.50, avg=2.70, area_name="Northern Virginia"),
            ),
        ),
        AreaTier(
            areas=["richmond", "virginia beach", "norfolk", "chesapeake", "newport news", "hampton"],
            policy=PricePolicy(
                price_floor=600,
                band=MarketBand(min=1.50, max=2.50, avg=2.00, area_name="this Virginia area"),
            ),
        ),
    ],
    fallback=PricePolicy(
        price_floor=500,
        band=MarketBand(min=1.25, max=2.25, avg=1.75, area_name="Virginia"),
    ),
)


class RegionTable(BaseModel):
    regions: List[Region] = Field(default_factory=list)
    default: PricePolicy = DEFAULT_POLICY

    @classmethod
    def builtin(cls) -> "RegionTable":
        return cls(regions=[VIRGINIA])

    @classmethod
    def from_file(cls, path: str | Path) -> "RegionTable":
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        return cls.model_validate(data)

    def lookup(self, location: Optional[str], text: Optional[str]) -> PricePolicy:
        """Return the policy for a listing; ``text`` is expected lowercased."""
        loc = (location or "").lower()
        t = (text or "").lower()
        for region in self.regions:
            if region.engaged(loc, t):
                return region.policy_for(loc, t)
        return self.default

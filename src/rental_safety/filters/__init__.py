from .engine import DetectorEngine
from .regions import MarketBand, PricePolicy, RegionTable
from .scoring import reduce_score, risk_label

__all__ = ["DetectorEngine", "MarketBand", "PricePolicy", "RegionTable", "reduce_score", "risk_label"]

"""
Sparkline statistics — summary metrics from a plain price list.

Same spirit as the indicator helpers: plain Python lists in, plain dict out.
"""
import math
from typing import Dict, List

import config
from errors import NoDataError


def change_pct(prices: List[float]) -> float:
    """Percent move from the first to the last price (0 when first is 0)."""
    first, last = prices[0], prices[-1]
    if not first:
        return 0.0
    return (last - first) / first * 100


def classify_trend(pct: float, threshold: float = config.TREND_THRESHOLD_PCT) -> str:
    if pct > threshold:
        return "up"
    if pct < -threshold:
        return "down"
    return "flat"


def volatility(prices: List[float], mean: float) -> float:
    """Population standard deviation around *mean*."""
    variance = sum((p - mean) ** 2 for p in prices) / len(prices)
    return math.sqrt(variance)


def analyze(prices: List[float]) -> Dict:
    """min / max / avg / trend / volatility / data_points for a series."""
    if not prices:
        raise NoDataError("No price data available for analysis")

    avg = sum(prices) / len(prices)
    return {
        "min": round(min(prices), 2),
        "max": round(max(prices), 2),
        "avg": round(avg, 2),
        "trend": classify_trend(change_pct(prices)),
        "volatility": round(volatility(prices, avg), 2),
        "data_points": len(prices),
    }

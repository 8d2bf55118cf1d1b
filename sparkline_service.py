"""
Sparkline service — BTC price series with tiered fallback and caching.

Acquisition tiers, cheapest and most faithful first:
  1. 7d only: the ``sparkline_7d`` array embedded in CoinGecko coin data
  2. generic market chart across CoinGecko and the ccxt exchanges
  3. synthetic series around a current-price snapshot

Each tier returns a ``TierResult``; a skipped tier keeps its error so the
final message can say what actually went wrong.
"""
import logging
import math
import random
from typing import Awaitable, Callable, Dict, List, Optional, Tuple

import config
from cache_manager import CacheManager
from errors import NoDataError, UpstreamFailure
from fetch_client import FallbackFetchClient
from models import PriceSeries, TierResult
from sparkline_renderer import render_sparkline
from sparkline_stats import analyze

logger = logging.getLogger(__name__)

SPARKLINE_ERROR_PREFIX = "Failed to fetch sparkline data: "
MARKET_CHART_ERROR_PREFIX = "Failed to fetch market chart data: "


def timeframe_to_days(timeframe: str) -> float:
    return config.TIMEFRAME_DAYS.get(timeframe, config.DEFAULT_DAYS)


def cache_key(currency: str, timeframe: str, width: int, height: int) -> str:
    return f"{currency}-{timeframe}-{width}x{height}"


def _dig(data, *keys):
    """Walk nested dicts; None as soon as a level is missing or not a dict."""
    for key in keys:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


def synthetic_prices(price: float, days: float, rng: random.Random) -> List[float]:
    """Gentle sine wave plus ±0.5% jitter around *price*."""
    points = max(config.SYNTHETIC_MIN_POINTS, math.ceil(days * 24))
    variation = price * config.SYNTHETIC_VARIATION
    out: List[float] = []
    for i in range(points):
        jitter = rng.uniform(-1, 1)
        wave = math.sin(2 * math.pi * i / points) * 0.5
        out.append(price + variation * jitter * 0.5 + variation * wave)
    return out


class SparklineService:
    def __init__(self, client: Optional[FallbackFetchClient] = None,
                 cache: Optional[CacheManager] = None,
                 rng: Optional[random.Random] = None):
        self._client = client or FallbackFetchClient()
        self._cache = cache or CacheManager(ttl_seconds=config.SPARKLINE_CACHE_TTL_SECONDS)
        self._rng = rng or random.Random()

    # ── Core ──────────────────────────────────────────────────────────────

    async def get_sparkline_data(self, currency: str = config.DEFAULT_CURRENCY,
                                 timeframe: str = config.DEFAULT_TIMEFRAME,
                                 width: int = config.DEFAULT_WIDTH,
                                 height: int = config.DEFAULT_HEIGHT) -> PriceSeries:
        key = cache_key(currency, timeframe, width, height)
        cached = self._cache.get(key)
        if cached is not None:
            logger.debug("Cache hit: %s", key)
            return cached

        days = timeframe_to_days(timeframe)
        tiers: List[Tuple[str, Callable[[], Awaitable[TierResult]]]] = []
        if timeframe == "7d":
            tiers.append(("sparkline_7d", self._embedded_sparkline))
        tiers.append(("market_chart", lambda: self._market_chart(currency, days)))
        tiers.append(("synthetic", lambda: self._synthetic(currency, days)))

        skipped: List[TierResult] = []
        prices: List[float] = []
        for tier_name, tier in tiers:
            result = await tier()
            if result.ok:
                prices = result.prices
                if skipped:
                    logger.info("Sparkline %s served by %s tier", key, tier_name)
                break
            logger.info("Tier %s skipped for %s: %s", tier_name, key, result.error)
            skipped.append(result)

        if not prices:
            raise self._final_error(skipped)

        series = PriceSeries(
            prices=prices,
            timeframe="30d" if timeframe == "1y" else timeframe,
            currency=currency,
            width=width,
            height=height,
        )
        self._cache.set(key, series)
        return series

    async def generate_ascii_sparkline(self, currency: str = config.DEFAULT_CURRENCY,
                                       timeframe: str = config.DEFAULT_TIMEFRAME,
                                       width: int = config.DEFAULT_WIDTH,
                                       height: int = config.ASCII_HEIGHT) -> str:
        series = await self.get_sparkline_data(currency, timeframe, width, height)
        return render_sparkline(series.prices, width, height)

    async def get_sparkline_stats(self, currency: str = config.DEFAULT_CURRENCY,
                                  timeframe: str = config.DEFAULT_TIMEFRAME) -> Dict:
        series = await self.get_sparkline_data(currency, timeframe)
        return analyze(series.prices)

    # ── Tiers ─────────────────────────────────────────────────────────────

    async def _embedded_sparkline(self) -> TierResult:
        try:
            data = await self._client.fetch_with_fallback(
                config.COIN_ENDPOINT,
                {
                    "localization": False,
                    "tickers": False,
                    "market_data": True,
                    "community_data": False,
                    "developer_data": False,
                    "sparkline": True,
                },
                providers=config.SPARKLINE_PROVIDERS,
            )
        except UpstreamFailure as e:
            return TierResult.skip("sparkline_7d", e)

        points = _dig(data, "market_data", "sparkline_7d", "price")
        if not isinstance(points, list) or not points:
            return TierResult.skip("sparkline_7d", NoDataError("sparkline_7d.price missing from coin data"))
        try:
            prices = [float(p) for p in points]
        except (TypeError, ValueError) as e:
            return TierResult.skip("sparkline_7d", NoDataError(f"malformed sparkline_7d: {e}"))
        return TierResult.success("sparkline_7d", prices)

    async def _market_chart(self, currency: str, days: float) -> TierResult:
        try:
            data = await self._client.fetch_with_fallback(
                config.MARKET_CHART_ENDPOINT,
                {
                    "vs_currency": currency,
                    "days": str(days),
                    "interval": "hourly" if days <= 1 else "daily",
                },
                providers=config.MARKET_CHART_PROVIDERS,
            )
        except UpstreamFailure as e:
            return TierResult.skip("market_chart", e)

        pairs = _dig(data, "prices")
        if not isinstance(pairs, list) or not pairs:
            return TierResult.skip("market_chart", NoDataError("market chart returned no prices"))
        try:
            prices = [float(price) for _, price in pairs]
        except (TypeError, ValueError) as e:
            return TierResult.skip("market_chart", NoDataError(f"malformed market chart: {e}"))
        return TierResult.success("market_chart", prices)

    async def _synthetic(self, currency: str, days: float) -> TierResult:
        try:
            data = await self._client.fetch_with_fallback(
                config.SIMPLE_PRICE_ENDPOINT,
                {"ids": "bitcoin", "vs_currencies": currency},
                providers=config.SIMPLE_PRICE_PROVIDERS,
            )
        except UpstreamFailure as e:
            return TierResult.skip("synthetic", e)

        price = _dig(data, "bitcoin", currency) or _dig(data, "bitcoin", "usd")
        try:
            price = float(price) if price else 0.0
        except (TypeError, ValueError):
            price = 0.0
        if not price:
            return TierResult.skip("synthetic", NoDataError(f"no {currency} price in snapshot"))

        logger.warning("Using synthetic %s series around %.2f", currency, price)
        return TierResult.success("synthetic", synthetic_prices(price, days, self._rng))

    @staticmethod
    def _final_error(skipped: List[TierResult]) -> Exception:
        chart = next((r for r in skipped if r.tier == "market_chart"), None)
        if chart is not None and isinstance(chart.error, UpstreamFailure):
            return UpstreamFailure(
                f"{SPARKLINE_ERROR_PREFIX}{MARKET_CHART_ERROR_PREFIX}{chart.error}"
            )
        return NoDataError(f"{SPARKLINE_ERROR_PREFIX}No price data available for sparkline")

    # ── Utility ───────────────────────────────────────────────────────────

    async def healthcheck(self) -> bool:
        try:
            await self.get_sparkline_data("usd", "7d")
            return True
        except Exception as e:
            logger.warning("Sparkline healthcheck failed: %s", e)
            return False

    def clear_cache(self):
        self._cache.clear()

    def get_cache_stats(self) -> Dict:
        return self._cache.get_stats()

"""
Main sparkline pipeline.

Orchestrates data fetching → ASCII chart → stats → formatting.
"""
import asyncio
import logging
from typing import Dict, Optional

import config
from crypto_analyzer import get_sparkline_service
from sparkline_renderer import format_sparkline_message, render_sparkline
from sparkline_service import SparklineService
from sparkline_stats import analyze

logger = logging.getLogger(__name__)


async def sparkline_report_raw(currency: str = config.DEFAULT_CURRENCY,
                               timeframe: str = config.DEFAULT_TIMEFRAME,
                               width: int = config.TELEGRAM_CHART_WIDTH,
                               height: int = config.ASCII_HEIGHT,
                               service: Optional[SparklineService] = None) -> Dict:
    """Return series, chart and stats (for programmatic use)."""
    service = service or get_sparkline_service()

    # 1 — Data (cached per currency/timeframe/size)
    series = await service.get_sparkline_data(currency, timeframe, width, height)

    # 2 — Chart
    chart = render_sparkline(series.prices, width, height)

    # 3 — Stats
    stats = analyze(series.prices)

    return {"series": series, "chart": chart, "stats": stats}


async def sparkline_report(currency: str = config.DEFAULT_CURRENCY,
                           timeframe: str = config.DEFAULT_TIMEFRAME,
                           service: Optional[SparklineService] = None) -> str:
    """Full sparkline message (Telegram HTML) for BTC in *currency*."""
    raw = await sparkline_report_raw(currency, timeframe, service=service)
    return format_sparkline_message(raw["series"], raw["stats"], raw["chart"])


if __name__ == "__main__":
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging.INFO,
    )
    service = get_sparkline_service()
    print(asyncio.run(service.generate_ascii_sparkline("usd", "7d")))

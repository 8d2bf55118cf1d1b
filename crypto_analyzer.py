"""
Convenience layer over the sparkline service.

Holds the process-wide service instance (built on first use, swappable for
tests) and exposes the failure-as-data entry point used by the bot and the
dashboard.
"""
import time
from datetime import datetime, timezone
from typing import Optional

import config
from models import CommandResult
from sparkline_service import SparklineService

_service: Optional[SparklineService] = None


def get_sparkline_service() -> SparklineService:
    global _service
    if _service is None:
        _service = SparklineService()
    return _service


def set_sparkline_service(service: Optional[SparklineService]):
    """Install *service* as the shared instance (``None`` resets it)."""
    global _service
    _service = service


async def get_bitcoin_sparkline(currency: str = config.DEFAULT_CURRENCY,
                                timeframe: str = config.DEFAULT_TIMEFRAME,
                                service: Optional[SparklineService] = None) -> CommandResult:
    """Fetch a BTC series and wrap the outcome; never raises."""
    start = time.monotonic()
    service = service or get_sparkline_service()
    try:
        series = await service.get_sparkline_data(currency, timeframe)
        return CommandResult(
            success=True,
            data=series,
            timestamp=datetime.now(timezone.utc),
            execution_time=int((time.monotonic() - start) * 1000),
        )
    except Exception as e:
        return CommandResult(
            success=False,
            error=e,
            timestamp=datetime.now(timezone.utc),
            execution_time=int((time.monotonic() - start) * 1000),
        )


async def healthcheck(service: Optional[SparklineService] = None) -> bool:
    return await (service or get_sparkline_service()).healthcheck()

"""
Sparkline rendering — character-grid chart + Telegram message.

``render_sparkline`` is pure: prices in, multi-line text out.
``format_sparkline_message`` wraps a chart and its stats in Telegram HTML
(chart inside <pre> so the monospace grid keeps its shape).
"""
import math
from typing import Dict, List

from models import PriceSeries

RISE = "▲"
FALL = "▼"
FLAT = "●"
HLINE = "─"


# ── Tiny helpers ──────────────────────────────────────────────────────────

def _direction_char(prices: List[float], index: int) -> str:
    if index == 0:
        return FLAT
    current, previous = prices[index], prices[index - 1]
    if current > previous:
        return RISE
    if current < previous:
        return FALL
    return FLAT


def _flat_chart(width: int, height: int) -> str:
    mid = height // 2
    return "\n".join(
        HLINE * width if row == mid else " " * width
        for row in range(height)
    )


def _trend_arrow(trend: str) -> str:
    return {"up": "🟢↗", "down": "🔴↘"}.get(trend, "🟡➡️")


def _divider() -> str:
    return "─ ─ ─ ─ ─ ─ ─ ─ ─ ─ ─ ─ ─ ─"


def escape_html(text: str) -> str:
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


# ── Chart ─────────────────────────────────────────────────────────────────

def render_sparkline(prices: List[float], width: int = 80, height: int = 8) -> str:
    """Rasterize *prices* into ``height`` rows of ``width`` characters.

    Each column samples ``prices[floor(i * len / width)]``; the marker shows
    whether that sample rose or fell against its predecessor in the full
    series.  A constant series collapses to a single horizontal line.
    """
    if not prices:
        return ""

    lo, hi = min(prices), max(prices)
    span = hi - lo
    if span == 0:
        return _flat_chart(width, height)

    levels = [math.floor((p - lo) / span * (height - 1)) for p in prices]
    grid: List[List[str]] = [[" "] * width for _ in range(height)]

    n = len(prices)
    for col in range(width):
        idx = col * n // width
        row = height - 1 - levels[idx]  # top row = highest price
        grid[row][col] = _direction_char(prices, idx)

    return "\n".join("".join(row) for row in grid)


# ── Message ───────────────────────────────────────────────────────────────

def format_sparkline_message(series: PriceSeries, stats: Dict, chart: str) -> str:
    """Build the sparkline message (HTML)."""
    cur = series.currency.upper()
    L: List[str] = []

    L.append(f"📈 <b>BTC/{cur}</b>  ·  {series.timeframe}")
    L.append(f"💲 <b>{series.prices[-1]:,.2f}</b>  {_trend_arrow(stats['trend'])} {stats['trend']}")
    L.append("")
    L.append(f"<pre>{escape_html(chart)}</pre>")
    L.append("")
    L.append(_divider())
    L.append("")
    L.append("📊 <b>Stats</b>")
    L.append(f"  High: <b>{stats['max']:,.2f}</b>")
    L.append(f"  Low:  <b>{stats['min']:,.2f}</b>")
    L.append(f"  Avg:  <b>{stats['avg']:,.2f}</b>")
    L.append(f"  Volatility (σ): {stats['volatility']:,.2f}")
    L.append(f"  Points: {stats['data_points']}")
    L.append("")
    L.append("<i>⚠️ Not financial advice. DYOR.</i>")

    return "\n".join(L)

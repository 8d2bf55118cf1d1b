"""Configuration — loads secrets from environment variables."""
import os
from dotenv import load_dotenv

load_dotenv()

# ── Secrets (never hardcode) ──────────────────────────────────────────────
TELEGRAM_BOT_TOKEN = os.getenv("TELEGRAM_BOT_TOKEN", "")

# ── Upstream endpoints ───────────────────────────────────────────────────
COINGECKO_BASE_URL = os.getenv("COINGECKO_BASE_URL", "https://api.coingecko.com/api/v3")
HTTP_TIMEOUT_SECONDS = 10

COIN_ENDPOINT = "/coins/bitcoin"
MARKET_CHART_ENDPOINT = "/coins/bitcoin/market_chart"
SIMPLE_PRICE_ENDPOINT = "/simple/price"

# ── Provider order per acquisition tier ──────────────────────────────────
SPARKLINE_PROVIDERS = ["coingecko"]  # only CoinGecko embeds sparkline_7d
MARKET_CHART_PROVIDERS = ["coingecko", "binance", "kraken", "coinbase"]
SIMPLE_PRICE_PROVIDERS = ["coingecko", "binance", "coinbase", "kraken"]

# ccxt exchange id + BTC quote symbol per currency
EXCHANGES = {
    "binance": {"id": "binance", "quotes": {"usd": "USDT", "eur": "EUR", "gbp": "GBP"}},
    "kraken": {"id": "kraken", "quotes": {"usd": "USD", "eur": "EUR", "gbp": "GBP"}},
    "coinbase": {"id": "coinbaseexchange", "quotes": {"usd": "USD", "eur": "EUR", "gbp": "GBP"}},
}

# ── Sparkline defaults ───────────────────────────────────────────────────
CURRENCIES = ["usd", "eur", "gbp"]
TIMEFRAMES = ["1h", "24h", "7d", "30d", "1y"]
TIMEFRAME_DAYS = {
    "1h": 1 / 24,
    "24h": 1,
    "7d": 7,
    "30d": 30,
    "1y": 365,
}
DEFAULT_DAYS = 7

DEFAULT_CURRENCY = "usd"
DEFAULT_TIMEFRAME = "7d"
DEFAULT_WIDTH = 80
DEFAULT_HEIGHT = 20
ASCII_HEIGHT = 8
TELEGRAM_CHART_WIDTH = 32  # fits a phone screen inside <pre>

# Synthetic fallback
SYNTHETIC_MIN_POINTS = 10
SYNTHETIC_VARIATION = 0.01  # 1% of the snapshot price

# Stats
TREND_THRESHOLD_PCT = 1.0

# Cache
SPARKLINE_CACHE_TTL_SECONDS = 120

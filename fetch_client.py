"""
Fallback fetch client — tries upstream providers in order.

CoinGecko is queried over its public REST API (sync ``requests`` pushed to a
worker thread).  Binance, Kraken and Coinbase are reached through
``ccxt.async_support`` and their OHLCV / ticker answers are reshaped into the
CoinGecko response layout, so callers only ever see one shape per endpoint.
"""
import asyncio
import logging
import math
from typing import Callable, Dict, List, Mapping, Optional, Union

import ccxt.async_support as ccxt
import requests

import config
from errors import UpstreamFailure

logger = logging.getLogger(__name__)

Params = Mapping[str, Union[str, bool]]


def _encode_params(params: Params) -> Dict[str, str]:
    """CoinGecko wants lowercase ``true``/``false`` for flags."""
    out: Dict[str, str] = {}
    for key, value in params.items():
        if isinstance(value, bool):
            out[key] = "true" if value else "false"
        else:
            out[key] = str(value)
    return out


# ═══════════════════════════════════════════════════════════════════════════
# Providers
# ═══════════════════════════════════════════════════════════════════════════

class CoinGeckoProvider:
    """Public CoinGecko REST API (no key)."""

    name = "coingecko"

    def __init__(self, base_url: str = config.COINGECKO_BASE_URL,
                 timeout: float = config.HTTP_TIMEOUT_SECONDS):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _get(self, endpoint: str, params: Params) -> Dict:
        try:
            r = requests.get(
                f"{self.base_url}{endpoint}",
                params=_encode_params(params), timeout=self.timeout,
            )
            if r.status_code != 200:
                raise UpstreamFailure(f"HTTP {r.status_code}: {r.text[:200]}")
            return r.json()
        except UpstreamFailure:
            raise
        except requests.RequestException as e:
            raise UpstreamFailure(f"request error: {e}") from e
        except Exception as e:
            raise UpstreamFailure(f"API error: {type(e).__name__}: {e}") from e

    async def fetch(self, endpoint: str, params: Params) -> Dict:
        return await asyncio.to_thread(self._get, endpoint, params)


class ExchangeProvider:
    """A ccxt spot exchange answering market-chart and simple-price requests."""

    def __init__(self, name: str, exchange_id: str, quotes: Dict[str, str],
                 factory: Optional[Callable[[], object]] = None):
        self.name = name
        self.exchange_id = exchange_id
        self.quotes = quotes
        self._factory = factory or self._default_factory

    def _default_factory(self):
        return getattr(ccxt, self.exchange_id)({
            "enableRateLimit": True,
            "timeout": int(config.HTTP_TIMEOUT_SECONDS * 1000),
            "options": {"defaultType": "spot"},
        })

    def _symbol(self, currency: str) -> str:
        quote = self.quotes.get(currency.lower())
        if quote is None:
            raise UpstreamFailure(f"no BTC market for {currency}")
        return f"BTC/{quote}"

    async def fetch(self, endpoint: str, params: Params) -> Dict:
        if endpoint == config.MARKET_CHART_ENDPOINT:
            handler = self._market_chart
        elif endpoint == config.SIMPLE_PRICE_ENDPOINT:
            handler = self._simple_price
        else:
            raise UpstreamFailure(f"endpoint {endpoint} not supported")

        # One instance per call: its HTTP session is bound to the running loop.
        exchange = None
        try:
            exchange = self._factory()
            return await handler(exchange, params)
        except UpstreamFailure:
            raise
        except ccxt.BaseError as e:
            raise UpstreamFailure(f"{type(e).__name__}: {e}") from e
        except Exception as e:
            raise UpstreamFailure(f"API error: {type(e).__name__}: {e}") from e
        finally:
            if exchange is not None:
                await exchange.close()

    async def _market_chart(self, exchange, params: Params) -> Dict:
        symbol = self._symbol(str(params.get("vs_currency", "usd")))
        days = float(params.get("days", config.DEFAULT_DAYS))
        if params.get("interval") == "hourly":
            timeframe, limit = "1h", math.ceil(days * 24)
        else:
            timeframe, limit = "1d", math.ceil(days)
        ohlcv = await exchange.fetch_ohlcv(symbol, timeframe, limit=max(1, limit))
        if not ohlcv:
            raise UpstreamFailure(f"no candles for {symbol}")
        return {"prices": [[candle[0], candle[4]] for candle in ohlcv]}

    async def _simple_price(self, exchange, params: Params) -> Dict:
        currencies = [c.strip().lower() for c in str(params.get("vs_currencies", "usd")).split(",")]
        prices: Dict[str, float] = {}
        for currency in currencies:
            ticker = await exchange.fetch_ticker(self._symbol(currency))
            if ticker.get("last") is not None:
                prices[currency] = ticker["last"]
        if not prices:
            raise UpstreamFailure("ticker returned no last price")
        return {"bitcoin": prices}


def default_providers() -> Dict[str, object]:
    providers: Dict[str, object] = {"coingecko": CoinGeckoProvider()}
    for name, settings in config.EXCHANGES.items():
        providers[name] = ExchangeProvider(name, settings["id"], settings["quotes"])
    return providers


# ═══════════════════════════════════════════════════════════════════════════
# Ordered fallback
# ═══════════════════════════════════════════════════════════════════════════

class FallbackFetchClient:
    """Attempt providers in order, return the first success, else raise."""

    def __init__(self, providers: Optional[Dict[str, object]] = None):
        self._providers = providers if providers is not None else default_providers()

    async def fetch_with_fallback(self, endpoint: str, params: Params,
                                  providers: List[str]) -> Dict:
        failures: List[str] = []
        for name in providers:
            provider = self._providers.get(name)
            if provider is None:
                logger.warning("Provider %s is not configured, skipping", name)
                failures.append(f"{name}: not configured")
                continue
            try:
                data = await provider.fetch(endpoint, params)
                logger.debug("%s answered %s", name, endpoint)
                return data
            except UpstreamFailure as e:
                logger.warning("%s failed for %s: %s", name, endpoint, e)
                failures.append(f"{name}: {e}")
            except Exception as e:
                logger.exception("%s crashed on %s", name, endpoint)
                failures.append(f"{name}: {type(e).__name__}: {e}")

        raise UpstreamFailure(
            f"All providers failed for {endpoint} ({'; '.join(failures) or 'no providers'})"
        )

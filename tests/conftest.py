import random

import pytest

import config
from cache_manager import CacheManager
from crypto_analyzer import set_sparkline_service
from errors import UpstreamFailure
from sparkline_service import SparklineService


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class FakeFetchClient:
    """Scripted fetch_with_fallback: one canned answer (or error) per endpoint."""

    def __init__(self):
        self.responses = {}
        self.calls = []

    async def fetch_with_fallback(self, endpoint, params, providers):
        self.calls.append((endpoint, dict(params), list(providers)))
        outcome = self.responses.get(
            endpoint, UpstreamFailure(f"All providers failed for {endpoint}")
        )
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def endpoints_called(self):
        return [endpoint for endpoint, _, _ in self.calls]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_client() -> FakeFetchClient:
    return FakeFetchClient()


@pytest.fixture
def service(fake_client, clock) -> SparklineService:
    cache = CacheManager(ttl_seconds=config.SPARKLINE_CACHE_TTL_SECONDS, clock=clock)
    return SparklineService(client=fake_client, cache=cache, rng=random.Random(42))


@pytest.fixture
def shared_service(service):
    """Install the fake-backed service as the process-wide instance."""
    set_sparkline_service(service)
    yield service
    set_sparkline_service(None)


@pytest.fixture
def market_chart():
    """Build a CoinGecko-shaped market_chart payload from a price list."""
    def build(prices):
        return {"prices": [[1_700_000_000_000 + i * 3_600_000, p] for i, p in enumerate(prices)]}
    return build

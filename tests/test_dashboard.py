import pytest

import config
from dashboard import app


@pytest.fixture
def http(shared_service):
    app.config["TESTING"] = True
    with app.test_client() as client:
        yield client


class TestSparklineEndpoints:
    def test_sparkline_json(self, http, fake_client, market_chart):
        fake_client.responses[config.MARKET_CHART_ENDPOINT] = market_chart([1.0, 2.0])

        r = http.get("/api/sparkline?currency=eur&timeframe=30d")

        assert r.status_code == 200
        body = r.get_json()
        assert body["success"] is True
        assert body["data"]["prices"] == [1.0, 2.0]
        assert body["data"]["currency"] == "eur"

    def test_sparkline_failure_is_an_envelope(self, http):
        r = http.get("/api/sparkline")

        assert r.status_code == 502
        body = r.get_json()
        assert body["success"] is False
        assert body["data"] is None
        assert body["error"].startswith("Failed to fetch sparkline data: ")

    @pytest.mark.parametrize("query", ["timeframe=2w", "currency=doge"])
    def test_rejects_unknown_options(self, http, query):
        assert http.get(f"/api/sparkline?{query}").status_code == 400

    def test_ascii(self, http, fake_client, market_chart):
        fake_client.responses[config.MARKET_CHART_ENDPOINT] = market_chart([1.0, 2.0, 3.0])

        r = http.get("/api/sparkline/ascii?timeframe=30d&width=3&height=3")

        assert r.status_code == 200
        assert r.mimetype == "text/plain"
        assert r.get_data(as_text=True) == "  ▲\n ▲ \n●  \n"

    def test_ascii_rejects_bad_size(self, http):
        assert http.get("/api/sparkline/ascii?width=0").status_code == 400

    def test_stats(self, http, fake_client, market_chart):
        fake_client.responses[config.MARKET_CHART_ENDPOINT] = market_chart([100.0, 98.0])

        body = http.get("/api/sparkline/stats?timeframe=24h").get_json()

        assert body["trend"] == "down"
        assert body["timeframe"] == "24h"
        assert body["data_points"] == 2

    def test_stats_upstream_failure(self, http):
        r = http.get("/api/sparkline/stats")
        assert r.status_code == 502
        assert "error" in r.get_json()


class TestCacheEndpoints:
    def test_cache_listing_and_clear(self, http, fake_client, market_chart):
        fake_client.responses[config.MARKET_CHART_ENDPOINT] = market_chart([1.0])
        http.get("/api/sparkline?timeframe=30d")

        assert http.get("/api/cache").get_json() == {"size": 1, "keys": ["usd-30d-80x20"]}

        assert http.post("/api/cache/clear").status_code == 200
        assert http.get("/api/cache").get_json() == {"size": 0, "keys": []}


class TestHealth:
    def test_degraded(self, http):
        r = http.get("/health")
        assert r.status_code == 503
        assert r.get_json() == {"status": "degraded"}

    def test_ok(self, http, fake_client):
        fake_client.responses[config.COIN_ENDPOINT] = {
            "market_data": {"sparkline_7d": {"price": [1.0]}}
        }
        assert http.get("/health").status_code == 200

    def test_ping(self, http):
        assert http.get("/api/ping").get_json() == {"status": "ok"}

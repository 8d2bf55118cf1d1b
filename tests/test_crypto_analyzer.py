import asyncio

import config
import crypto_analyzer
from crypto_analyzer import (
    get_bitcoin_sparkline,
    get_sparkline_service,
    healthcheck,
    set_sparkline_service,
)
from errors import UpstreamFailure
from main import sparkline_report, sparkline_report_raw
from sparkline_service import SparklineService


class TestServiceInstance:
    def test_built_once_and_reused(self):
        set_sparkline_service(None)
        try:
            first = get_sparkline_service()
            assert isinstance(first, SparklineService)
            assert get_sparkline_service() is first
        finally:
            set_sparkline_service(None)

    def test_injected_instance_is_returned(self, shared_service):
        assert get_sparkline_service() is shared_service
        assert crypto_analyzer._service is shared_service


class TestBitcoinSparkline:
    def test_success_envelope(self, shared_service, fake_client, market_chart):
        fake_client.responses[config.MARKET_CHART_ENDPOINT] = market_chart([1.0, 2.0])

        result = asyncio.run(get_bitcoin_sparkline("usd", "30d"))

        assert result.success is True
        assert result.data.prices == [1.0, 2.0]
        assert result.error is None
        assert result.execution_time >= 0
        assert result.to_dict()["data"]["timeframe"] == "30d"

    def test_failure_is_captured(self, service):
        result = asyncio.run(get_bitcoin_sparkline("usd", "7d", service=service))

        assert result.success is False
        assert result.data is None
        assert isinstance(result.error, UpstreamFailure)
        assert result.to_dict()["error"].startswith("Failed to fetch sparkline data: ")

    def test_unexpected_errors_are_captured_too(self):
        class Exploding:
            async def get_sparkline_data(self, currency, timeframe):
                raise RuntimeError("boom")

        result = asyncio.run(get_bitcoin_sparkline(service=Exploding()))

        assert result.success is False
        assert str(result.error) == "boom"

    def test_1y_label(self, service, fake_client, market_chart):
        fake_client.responses[config.MARKET_CHART_ENDPOINT] = market_chart([1.0])

        result = asyncio.run(get_bitcoin_sparkline("usd", "1y", service=service))

        assert result.data.timeframe == "30d"


class TestHealthcheck:
    def test_reports_failure_as_false(self, shared_service):
        assert asyncio.run(healthcheck()) is False

    def test_reports_success(self, shared_service, fake_client):
        fake_client.responses[config.COIN_ENDPOINT] = {
            "market_data": {"sparkline_7d": {"price": [1.0, 2.0]}}
        }
        assert asyncio.run(healthcheck()) is True


class TestReport:
    def test_raw_report(self, service, fake_client, market_chart):
        fake_client.responses[config.MARKET_CHART_ENDPOINT] = market_chart([100.0, 98.0])

        raw = asyncio.run(sparkline_report_raw("usd", "30d", width=4, height=3, service=service))

        assert raw["stats"]["trend"] == "down"
        assert raw["series"].width == 4
        assert len(raw["chart"].split("\n")) == 3

    def test_html_report(self, service, fake_client, market_chart):
        fake_client.responses[config.MARKET_CHART_ENDPOINT] = market_chart([100.0, 102.0, 104.0])

        text = asyncio.run(sparkline_report("gbp", "30d", service=service))

        assert "BTC/GBP" in text
        assert "<pre>" in text
        assert "Points: 3" in text

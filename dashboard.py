"""
Sparkline dashboard — Flask web server with REST API.

Serves BTC sparkline data, ASCII charts, stats and cache state as JSON.
Designed to run alongside the Telegram bot (in its own thread, so each
request drives the async service with ``asyncio.run``).
"""
import asyncio
import logging
from flask import Flask, Response, jsonify, request
import config
from crypto_analyzer import get_bitcoin_sparkline, get_sparkline_service, healthcheck
from errors import NoDataError

logger = logging.getLogger(__name__)

app = Flask(__name__)
app.json.sort_keys = False


def _query():
    currency = request.args.get("currency", config.DEFAULT_CURRENCY).lower()
    timeframe = request.args.get("timeframe", config.DEFAULT_TIMEFRAME).lower()
    return currency, timeframe


def _bad_query(currency: str, timeframe: str):
    if currency not in config.CURRENCIES:
        return jsonify({"error": f"unknown currency {currency}"}), 400
    if timeframe not in config.TIMEFRAMES:
        return jsonify({"error": f"unknown timeframe {timeframe}"}), 400
    return None


def _upstream_error(e: Exception):
    logger.warning("Dashboard request failed: %s", e)
    status = 404 if isinstance(e, NoDataError) else 502
    return jsonify({"error": str(e)}), status


# ═══════════════════════════════════════════════════════════════════════════
# API endpoints
# ═══════════════════════════════════════════════════════════════════════════

@app.route("/api/sparkline")
def api_sparkline():
    currency, timeframe = _query()
    bad = _bad_query(currency, timeframe)
    if bad:
        return bad
    result = asyncio.run(get_bitcoin_sparkline(currency, timeframe))
    return jsonify(result.to_dict()), (200 if result.success else 502)


@app.route("/api/sparkline/ascii")
def api_sparkline_ascii():
    currency, timeframe = _query()
    bad = _bad_query(currency, timeframe)
    if bad:
        return bad
    width = request.args.get("width", config.DEFAULT_WIDTH, type=int)
    height = request.args.get("height", config.ASCII_HEIGHT, type=int)
    if width < 1 or height < 1:
        return jsonify({"error": "width and height must be positive"}), 400
    try:
        chart = asyncio.run(
            get_sparkline_service().generate_ascii_sparkline(currency, timeframe, width, height)
        )
    except Exception as e:
        return _upstream_error(e)
    return Response(chart + "\n", mimetype="text/plain")


@app.route("/api/sparkline/stats")
def api_sparkline_stats():
    currency, timeframe = _query()
    bad = _bad_query(currency, timeframe)
    if bad:
        return bad
    try:
        stats = asyncio.run(get_sparkline_service().get_sparkline_stats(currency, timeframe))
    except Exception as e:
        return _upstream_error(e)
    return jsonify({"currency": currency, "timeframe": timeframe, **stats})


@app.route("/api/cache")
def api_cache():
    return jsonify(get_sparkline_service().get_cache_stats())


@app.route("/api/cache/clear", methods=["POST"])
def api_cache_clear():
    get_sparkline_service().clear_cache()
    return jsonify({"status": "cleared"})


@app.route("/health")
def health():
    """Health check — runs a default usd/7d acquisition."""
    ok = asyncio.run(healthcheck())
    return jsonify({"status": "ok" if ok else "degraded"}), (200 if ok else 503)


@app.route("/api/ping")
def ping():
    """Uptime check — no upstream calls."""
    return jsonify({"status": "ok"})


def run_dashboard(port: int = 5000):
    """Run the Flask dashboard (call from a thread)."""
    logger.info("Dashboard starting on port %d", port)
    app.run(host="0.0.0.0", port=port, debug=False, use_reloader=False)

"""
Entry point — runs Telegram bot + Flask sparkline dashboard together.

• Upstream probe (usd/7d) logged once at startup, also warms the cache
• Flask dashboard runs in a background thread (DASHBOARD_ENABLED=0 to skip)
• Telegram bot runs on the main asyncio loop
"""
import asyncio
import logging
import os
import threading

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=logging.INFO,
)
logger = logging.getLogger(__name__)


def probe_upstream() -> bool:
    from crypto_analyzer import healthcheck
    ok = asyncio.run(healthcheck())
    if ok:
        logger.info("Upstream probe ok")
    else:
        logger.warning("Upstream probe failed, serving will rely on fallbacks")
    return ok


def start_dashboard():
    """Launch Flask dashboard in a daemon thread."""
    from dashboard import run_dashboard
    port = int(os.environ.get("DASHBOARD_PORT", os.environ.get("PORT", 5000)))
    thread = threading.Thread(target=run_dashboard, args=(port,), daemon=True)
    thread.start()
    logger.info("Dashboard thread started on port %d", port)


def main():
    probe_upstream()

    dashboard_enabled = os.environ.get("DASHBOARD_ENABLED", "1") != "0"
    if dashboard_enabled:
        start_dashboard()

    # Bot blocks on its own event loop; Flask already owns the web port
    from telegram_bot import main as bot_main
    bot_main(skip_health_server=dashboard_enabled)


if __name__ == "__main__":
    main()

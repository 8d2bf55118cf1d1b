"""
Telegram bot — BTC sparkline interface.

Features:
  • /spark [CURRENCY] [TF] direct command
  • Inline timeframe picker
  • /cache cache inspection
  • Rich HTML-formatted output
  • Proper error handling with retry buttons
"""
import logging
import os
import threading
from http.server import HTTPServer, BaseHTTPRequestHandler
from typing import Optional, Tuple
from telegram import Update, InlineKeyboardButton, InlineKeyboardMarkup
from telegram.ext import Application, CommandHandler, CallbackQueryHandler, ContextTypes
import config
from crypto_analyzer import get_sparkline_service
from main import sparkline_report
from sparkline_renderer import escape_html

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=logging.INFO,
)
logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# Display helpers
# ═══════════════════════════════════════════════════════════════════════════

def _timeframe_keyboard(currency: str) -> InlineKeyboardMarkup:
    row = [InlineKeyboardButton(tf, callback_data=f"tf_{currency}_{tf}") for tf in config.TIMEFRAMES]
    currencies = [
        InlineKeyboardButton(c.upper(), callback_data=f"cur_{c}")
        for c in config.CURRENCIES if c != currency
    ]
    return InlineKeyboardMarkup([row, currencies])


def _result_keyboard(currency: str, timeframe: str) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup([
        [InlineKeyboardButton("🔄 Refresh", callback_data=f"tf_{currency}_{timeframe}")],
        [InlineKeyboardButton("⏱ Other Timeframe", callback_data=f"cur_{currency}")],
    ])


def parse_spark_args(args) -> Tuple[str, str, Optional[str]]:
    """Pick currency / timeframe out of ``/spark`` args, in either order.

    Returns ``(currency, timeframe, error)``; *error* is set for an unknown token.
    """
    currency, timeframe = config.DEFAULT_CURRENCY, config.DEFAULT_TIMEFRAME
    for raw in args or []:
        token = raw.strip().lower()
        if token in config.CURRENCIES:
            currency = token
        elif token in config.TIMEFRAMES:
            timeframe = token
        else:
            return currency, timeframe, f"Unknown option <b>{escape_html(raw)}</b>"
    return currency, timeframe, None


# ═══════════════════════════════════════════════════════════════════════════
# Command handlers
# ═══════════════════════════════════════════════════════════════════════════

async def cmd_start(update: Update, context: ContextTypes.DEFAULT_TYPE):
    await update.message.reply_text(
        "<b>📈 BTC Sparkline Bot</b>\n\n"
        "Bitcoin price charts right in the chat.\n\n"
        "<b>What you get:</b>\n"
        "• Compact ▲▼ sparkline chart\n"
        "• High / low / average\n"
        "• Trend and volatility\n"
        "• Data from CoinGecko with exchange fallback\n\n"
        "Pick a timeframe to start 👇",
        reply_markup=_timeframe_keyboard(config.DEFAULT_CURRENCY),
        parse_mode="HTML",
    )


async def cmd_help(update: Update, context: ContextTypes.DEFAULT_TYPE):
    await update.message.reply_text(
        "<b>📖 Commands</b>\n\n"
        "/start — Main menu\n"
        "/spark <code>[CURRENCY] [TF]</code> — BTC sparkline\n"
        "  e.g. <code>/spark</code>\n"
        "  e.g. <code>/spark eur 30d</code>\n\n"
        "/cache — Cached series\n"
        "/help — This message\n\n"
        f"<b>Timeframes:</b> {', '.join(config.TIMEFRAMES)}\n"
        f"<b>Currencies:</b> {', '.join(c.upper() for c in config.CURRENCIES)}",
        parse_mode="HTML",
    )


async def cmd_spark(update: Update, context: ContextTypes.DEFAULT_TYPE):
    currency, timeframe, error = parse_spark_args(context.args)
    if error:
        await update.message.reply_text(f"❌ {error}. See /help.", parse_mode="HTML")
        return

    await update.message.reply_text(
        f"⏳ Loading <b>BTC/{currency.upper()}</b> · {timeframe}…",
        parse_mode="HTML",
    )
    try:
        result = await sparkline_report(currency, timeframe)
        await update.message.reply_text(
            result, parse_mode="HTML", reply_markup=_result_keyboard(currency, timeframe),
        )
    except Exception as e:
        logger.exception("Sparkline error for %s %s", currency, timeframe)
        kb = InlineKeyboardMarkup([[
            InlineKeyboardButton("🔄 Try Again", callback_data=f"tf_{currency}_{timeframe}"),
        ]])
        await update.message.reply_text(f"❌ <b>Error:</b> {escape_html(str(e))}", parse_mode="HTML", reply_markup=kb)


async def cmd_cache(update: Update, context: ContextTypes.DEFAULT_TYPE):
    stats = get_sparkline_service().get_cache_stats()
    keys = "\n".join(f"  • <code>{k}</code>" for k in stats["keys"]) or "  (empty)"
    await update.message.reply_text(
        f"🗄 <b>Cache</b>  ·  {stats['size']} entries\n{keys}",
        parse_mode="HTML",
    )


# ═══════════════════════════════════════════════════════════════════════════
# Callback handler (button presses)
# ═══════════════════════════════════════════════════════════════════════════

async def button_callback(update: Update, context: ContextTypes.DEFAULT_TYPE):
    query = update.callback_query
    await query.answer()
    data = query.data

    # ── Currency selected → timeframe picker for that currency ──
    if data.startswith("cur_"):
        currency = data.replace("cur_", "")
        try:
            await query.edit_message_reply_markup(reply_markup=None)
        except Exception:
            pass
        await query.message.chat.send_message(
            f"<b>BTC/{currency.upper()}</b>  ·  pick a timeframe ⏱",
            reply_markup=_timeframe_keyboard(currency),
            parse_mode="HTML",
        )
        return

    # ── Timeframe selected → loading, then result ──
    if data.startswith("tf_"):
        _, currency, timeframe = data.split("_", 2)
        try:
            await query.edit_message_reply_markup(reply_markup=None)
        except Exception:
            pass
        msg = await query.message.chat.send_message(
            f"⏳ <b>BTC/{currency.upper()}</b> · {timeframe}  —  loading…", parse_mode="HTML",
        )
        try:
            result = await sparkline_report(currency, timeframe)
            try:
                await msg.edit_text(result, parse_mode="HTML", reply_markup=_result_keyboard(currency, timeframe))
            except Exception:
                await query.message.chat.send_message(
                    result, parse_mode="HTML", reply_markup=_result_keyboard(currency, timeframe),
                )
        except Exception as e:
            logger.exception("Sparkline error for %s %s", currency, timeframe)
            kb = InlineKeyboardMarkup([
                [InlineKeyboardButton("🔄 Try Again", callback_data=data)],
            ])
            await msg.edit_text(f"❌ <b>Error:</b> {escape_html(str(e))}", parse_mode="HTML", reply_markup=kb)


# ═══════════════════════════════════════════════════════════════════════════
# Health-check server (keeps Render free tier happy)
# ═══════════════════════════════════════════════════════════════════════════

class _HealthHandler(BaseHTTPRequestHandler):
    def do_GET(self):
        self.send_response(200)
        self.send_header("Content-Type", "text/plain")
        self.end_headers()
        self.wfile.write(b"OK")
    def log_message(self, *args):
        pass  # Silence health-check logs


def _start_health_server():
    port = int(os.environ.get("PORT", 10000))
    server = HTTPServer(("0.0.0.0", port), _HealthHandler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    logger.info("Health server on port %d", port)


# ═══════════════════════════════════════════════════════════════════════════
# Entry point
# ═══════════════════════════════════════════════════════════════════════════

def main(skip_health_server: bool = False):
    if not config.TELEGRAM_BOT_TOKEN:
        print("ERROR: Set TELEGRAM_BOT_TOKEN in your .env file.")
        return

    if not skip_health_server:
        _start_health_server()

    application = Application.builder().token(config.TELEGRAM_BOT_TOKEN).build()

    application.add_handler(CommandHandler("start", cmd_start))
    application.add_handler(CommandHandler("help", cmd_help))
    application.add_handler(CommandHandler("spark", cmd_spark))
    application.add_handler(CommandHandler("cache", cmd_cache))
    application.add_handler(CallbackQueryHandler(button_callback))

    logger.info("Bot started.")
    application.run_polling(
        allowed_updates=Update.ALL_TYPES,
        drop_pending_updates=True,
    )


if __name__ == "__main__":
    main()

import asyncio
import logging
import threading
from typing import Optional

from telegram import Update, error
from telegram.ext import Application, ContextTypes, MessageHandler, filters

from app.core.config import settings
from app.db.session import SessionLocal
from app.services.admin_sessions import SessionStore
from app.services.notifier import TelegramNotifier
from app.telegram.handlers import handle_document, handle_message

logger = logging.getLogger(__name__)

_bot_app: Optional[Application] = None
_bot_loop: Optional[asyncio.AbstractEventLoop] = None
_bot_thread: Optional[threading.Thread] = None


async def _on_error(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    logger.error("[Telegram] Unhandled error while processing update", exc_info=context.error)
    if isinstance(update, Update) and update.effective_message:
        try:
            await update.effective_message.reply_text("❌ Xatolik yuz berdi, keyinroq urinib ko'ring")
        except error.TelegramError as e:
            logger.warning(f"[Telegram] Could not report error to user: {e}")


def build_application(token: str) -> Application:
    """Application with handlers and injected collaborators in bot_data."""
    app = Application.builder().token(token).build()
    app.bot_data["session_factory"] = SessionLocal
    app.bot_data["sessions"] = SessionStore(SessionLocal)
    app.bot_data["notifier"] = TelegramNotifier(token)
    app.bot_data["upload_locks"] = {}

    app.add_handler(MessageHandler(filters.Document.ALL, handle_document))
    app.add_handler(MessageHandler(filters.TEXT, handle_message))
    app.add_error_handler(_on_error)
    return app


async def _start_polling_with_retry(app, max_retries=3, initial_backoff=2):
    for attempt in range(max_retries):
        try:
            logger.info(f"[Telegram] Starting polling (attempt {attempt + 1}/{max_retries})...")
            await app.updater.start_polling(drop_pending_updates=True)
            logger.info("[Telegram] Polling started")
            return True
        except error.Conflict as e:
            if attempt < max_retries - 1:
                backoff = initial_backoff * (2 ** attempt)
                logger.warning(f"[Telegram] Conflict detected: {e}. Retrying in {backoff}s...")
                await asyncio.sleep(backoff)
            else:
                logger.error(f"[Telegram] Failed after {max_retries} retries. Bot disabled. Error: {e}")
                return False
        except error.TelegramError as e:
            logger.error(f"[Telegram] Unexpected error: {e}")
            return False
    return False


def _run_bot():
    global _bot_app, _bot_loop
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    _bot_loop = loop

    try:
        _bot_app = build_application(settings.TELEGRAM_BOT_TOKEN)
        loop.run_until_complete(_bot_app.initialize())
        loop.run_until_complete(_bot_app.start())
        if loop.run_until_complete(_start_polling_with_retry(_bot_app)):
            me = _bot_app.bot.username
            logger.info(f"[Telegram] Bot @{me} running; super admin {settings.SUPER_ADMIN_ID}")
            for admin_id, pharmacy_id in settings.BRANCH_ADMINS.items():
                logger.info(f"[Telegram]   admin {admin_id} -> Dorixona {pharmacy_id}")
            loop.run_forever()
    except error.TelegramError as e:
        logger.error(f"Telegram bot error: {e}")
    finally:
        if _bot_app:
            try:
                if _bot_app.updater and _bot_app.updater.running:
                    loop.run_until_complete(_bot_app.updater.stop())
                if _bot_app.running:
                    loop.run_until_complete(_bot_app.stop())
                loop.run_until_complete(_bot_app.shutdown())
            except error.TelegramError as e:
                logger.warning(f"[Telegram] Shutdown error: {e}")
        loop.close()
        _bot_loop = None
        logger.info("[Telegram] Bot stopped")


def start_bot_background():
    global _bot_thread
    if not settings.TELEGRAM_BOT_TOKEN:
        return
    _bot_thread = threading.Thread(target=_run_bot, name="telegram-bot", daemon=True)
    _bot_thread.start()


def stop_bot_background(timeout: float = 10.0):
    """Stop polling and wait for the bot thread. Called on FastAPI shutdown."""
    loop = _bot_loop
    if loop is not None and loop.is_running():
        loop.call_soon_threadsafe(loop.stop)
    if _bot_thread is not None:
        _bot_thread.join(timeout=timeout)

"""
Pharmacy Network Bot: process entry point.

ARCHITECTURE:
- Telegram Bot: search for customers, settings and Excel uploads for admins
- FastAPI: health check endpoint for the hosting platform
- PostgreSQL (SQLite locally): medicines and per-branch settings

The bot polls on a background thread started from the lifespan handler.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.core.config import settings
from app.core.log_config import setup_logging
from app.db.init_db import init_db
from app.telegram.bot import start_bot_background, stop_bot_background

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup:
    1. Configure logging
    2. Initialize database tables
    3. Start Telegram bot polling (if token provided)

    Shutdown:
    1. Stop Telegram bot gracefully
    """
    setup_logging()
    logger.info("Initializing database...")
    init_db()

    if settings.TELEGRAM_BOT_TOKEN:
        logger.info("Starting Telegram bot...")
        start_bot_background()
    else:
        logger.warning("Telegram bot disabled (no token)")

    yield

    if settings.TELEGRAM_BOT_TOKEN:
        logger.info("Stopping Telegram bot...")
        stop_bot_background()
        logger.info("Bot stopped")


app = FastAPI(
    title="Pharmacy Network Bot",
    description="Medicine search and Excel stock uploads over Telegram.",
    version="0.1.0",
    lifespan=lifespan,
)


@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/")
def root():
    return {"service": "Pharmacy Bot is running"}

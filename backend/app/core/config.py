"""Application configuration.

Environment variables override all defaults. A local `.env` next to the
backend directory is loaded first for development.
"""

import os
from pathlib import Path
from typing import Dict, List

from dotenv import load_dotenv

_BACKEND_DIR = Path(__file__).resolve().parents[2]
load_dotenv(dotenv_path=_BACKEND_DIR / ".env", override=False)


def _int_env(name: str, default: int = 0) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _compose_database_url() -> str:
    """DATABASE_URL wins (hosted deployments); otherwise build from DB_* parts."""
    url = os.getenv("DATABASE_URL", "").strip()
    if url:
        # Hosted providers still hand out the legacy scheme
        if url.startswith("postgres://"):
            url = "postgresql://" + url[len("postgres://"):]
        return url

    host = os.getenv("DB_HOST", "").strip()
    if not host:
        return "sqlite:///./pharmacy_bot.db"

    user = os.getenv("DB_USER", "")
    password = os.getenv("DB_PASSWORD", "")
    port = os.getenv("DB_PORT", "5432")
    name = os.getenv("DB_NAME", "")
    sslmode = os.getenv("DB_SSLMODE", "")
    url = f"postgresql://{user}:{password}@{host}:{port}/{name}"
    if sslmode:
        url += f"?sslmode={sslmode}"
    return url


class Settings:
    # Database Configuration
    DATABASE_URL: str = _compose_database_url()
    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 20  # 25 open connections at most
    DB_POOL_RECYCLE_SECONDS: int = 300

    # Telegram Bot (Must be set via .env, never in code)
    TELEGRAM_BOT_TOKEN: str = os.getenv("TELEGRAM_BOT_TOKEN", "") or os.getenv("BOT_TOKEN", "")

    # Admins: ADMIN_ID_1 is the super admin, ADMIN_ID_2..4 own branches 1..3
    SUPER_ADMIN_ID: int = _int_env("ADMIN_ID_1")
    BRANCH_ADMINS: Dict[int, int] = {
        admin_id: branch_id
        for branch_id, admin_id in enumerate(
            (_int_env("ADMIN_ID_2"), _int_env("ADMIN_ID_3"), _int_env("ADMIN_ID_4")),
            start=1,
        )
        if admin_id
    }
    BRANCH_COUNT: int = _int_env("BRANCH_COUNT", 3)

    # Ingestion
    UPLOAD_CHUNK_SIZE: int = _int_env("UPLOAD_CHUNK_SIZE", 100)
    FAILED_ROW_SAMPLE: int = _int_env("FAILED_ROW_SAMPLE", 10)
    ALLOWED_UPLOAD_EXTENSIONS: List[str] = [".xlsx", ".xlsm"]

    # Search
    SEARCH_RESULT_LIMIT: int = _int_env("SEARCH_RESULT_LIMIT", 30)

    # Health check server
    PORT: int = _int_env("PORT", 8080)

    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    DEBUG: bool = ENVIRONMENT == "development"


settings = Settings()

# backend/barpos/config.py
from __future__ import annotations
import os


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Config:
    ENV = os.environ.get("ENV", os.environ.get("FLASK_ENV", "dev"))

    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/barpos.sqlite3 unless DATABASE_URL points elsewhere
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///barpos.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Connection pool (ignored for SQLite)
    DB_POOL_SIZE = int(os.environ.get("DB_POOL_SIZE", "6"))
    DB_MAX_OVERFLOW = int(os.environ.get("DB_MAX_OVERFLOW", "0"))
    DB_POOL_TIMEOUT = int(os.environ.get("DB_POOL_TIMEOUT", "3"))
    DB_POOL_RECYCLE = int(os.environ.get("DB_POOL_RECYCLE", "300"))

    # Startup connectivity check (wsgi.py)
    DB_CONNECT_ATTEMPTS = int(os.environ.get("DB_CONNECT_ATTEMPTS", "5"))
    DB_CONNECT_DELAY = float(os.environ.get("DB_CONNECT_DELAY", "2"))

    # Login session cookie
    AUTH_COOKIE_NAME = os.environ.get("AUTH_COOKIE_NAME", "barpos_session")
    AUTH_COOKIE_SECURE = _env_bool("AUTH_COOKIE_SECURE", False)
    SESSION_LIFETIME_HOURS = int(os.environ.get("SESSION_LIFETIME_HOURS", "8"))
    SESSION_IDLE_HOURS = int(os.environ.get("SESSION_IDLE_HOURS", "2"))
    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))

    HOST = os.environ.get("HOST", "0.0.0.0")
    PORT = int(os.environ.get("PORT", "3000"))
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    CORS_ORIGINS = [
        o.strip()
        for o in os.environ.get(
            "CORS_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173",
        ).split(",")
        if o.strip()
    ]


def engine_options_for(uri: str, config: dict) -> dict:
    """Pool options only make sense for server databases."""
    if uri.startswith("sqlite"):
        return {}
    return {
        "pool_size": config["DB_POOL_SIZE"],
        "max_overflow": config["DB_MAX_OVERFLOW"],
        "pool_timeout": config["DB_POOL_TIMEOUT"],
        "pool_recycle": config["DB_POOL_RECYCLE"],
        "pool_pre_ping": True,
    }

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


def _get_env(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value


def _get_env_bool(name: str, default: bool) -> bool:
    raw = _get_env(name, None)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _get_env_int(name: str, default: int) -> int:
    raw = _get_env(name, None)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _get_env_list(name: str, default: list[str]) -> tuple[str, ...]:
    raw = _get_env(name, None)
    if raw is None:
        return tuple(default)
    values = [item.strip() for item in raw.split(",")]
    clean = [item for item in values if item]
    return tuple(clean) if clean else tuple(default)


@dataclass(frozen=True)
class Settings:
    api_key: str | None
    admin_api_key: str | None
    rate_limit: str
    ai_rate_limit: str
    rate_limit_enabled: bool
    log_level: str
    sentry_dsn: str | None
    cors_allowed_origins: tuple[str, ...]
    cors_allow_credentials: bool
    db_path: str
    feedback_queue_size: int
    feedback_workers: int
    feedback_months_window: int


settings = Settings(
    api_key=_get_env("API_KEY"),
    admin_api_key=_get_env("ADMIN_API_KEY"),
    rate_limit=_get_env("RATE_LIMIT", "100/15minutes") or "100/15minutes",
    ai_rate_limit=_get_env("AI_RATE_LIMIT", "10/minute") or "10/minute",
    rate_limit_enabled=_get_env_bool("RATE_LIMIT_ENABLED", True),
    log_level=_get_env("LOG_LEVEL", "INFO") or "INFO",
    sentry_dsn=_get_env("SENTRY_DSN"),
    cors_allowed_origins=_get_env_list(
        "CORS_ALLOWED_ORIGINS",
        [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
            "http://localhost:5173",
        ],
    ),
    cors_allow_credentials=_get_env_bool("CORS_ALLOW_CREDENTIALS", True),
    db_path=_get_env("WORKIFY_DB_PATH", "data/workify.db") or "data/workify.db",
    feedback_queue_size=_get_env_int("FEEDBACK_QUEUE_SIZE", 100),
    feedback_workers=_get_env_int("FEEDBACK_WORKERS", 1),
    feedback_months_window=_get_env_int("FEEDBACK_MONTHS_WINDOW", 3),
)

if settings.feedback_queue_size <= 0:
    raise RuntimeError("FEEDBACK_QUEUE_SIZE must be greater than 0.")

if settings.feedback_workers <= 0:
    raise RuntimeError("FEEDBACK_WORKERS must be greater than 0.")

import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Settings:
    mongo_url: str
    mongo_db: str
    tz: str
    store_backend: str
    attempt_rate_limit: int
    attempt_rate_window_seconds: int
    log_level: str


def _int_env(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(f"Env var {name} must be an integer, got {raw!r}") from exc


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    tz = (os.getenv("TZ") or "UTC").strip() or "UTC"
    backend = (os.getenv("STORE_BACKEND") or "mongo").strip().lower() or "mongo"
    return Settings(
        mongo_url=(os.getenv("MONGO_URL") or "").strip(),
        mongo_db=(os.getenv("MONGO_DB") or "").strip(),
        tz=tz,
        store_backend=backend,
        attempt_rate_limit=_int_env("ATTEMPT_RATE_LIMIT", 120),
        attempt_rate_window_seconds=_int_env("ATTEMPT_RATE_WINDOW_SECONDS", 60),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").strip().upper() or "INFO",
    )


def validate_mongo_settings(settings: Settings | None = None) -> Settings:
    cfg = settings or get_settings()
    if not cfg.mongo_url or not cfg.mongo_db:
        raise RuntimeError(
            "Missing required env vars: MONGO_URL and MONGO_DB. "
            "Copy .env.example to .env and set both values, or set STORE_BACKEND=memory."
        )
    return cfg

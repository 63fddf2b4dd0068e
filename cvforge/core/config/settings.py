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


def _get_env_float(name: str, default: float | None) -> float | None:
    raw = _get_env(name, None)
    if raw is None:
        return default
    try:
        return float(raw)
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
    log_level: str
    cors_allowed_origins: tuple[str, ...]
    rate_limit: str
    rate_limit_enabled: bool
    store_db_path: str
    device_store_db_path: str
    max_upload_bytes: int
    provider_timeout_s: float | None
    provider_max_retries: int
    provider_max_tokens: int
    job_fetch_timeout_s: float
    pipeline_config_path: str | None


settings = Settings(
    log_level=_get_env("LOG_LEVEL", "INFO") or "INFO",
    cors_allowed_origins=_get_env_list(
        "CORS_ALLOWED_ORIGINS",
        [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ],
    ),
    rate_limit=_get_env("RATE_LIMIT", "30/minute") or "30/minute",
    rate_limit_enabled=_get_env_bool("RATE_LIMIT_ENABLED", True),
    store_db_path=_get_env("STORE_DB_PATH", "data/cvforge.db") or "data/cvforge.db",
    device_store_db_path=_get_env("DEVICE_STORE_DB_PATH", "data/device.db") or "data/device.db",
    max_upload_bytes=_get_env_int("MAX_UPLOAD_BYTES", 10 * 1024 * 1024),
    provider_timeout_s=_get_env_float("PROVIDER_TIMEOUT_S", None),
    provider_max_retries=_get_env_int("PROVIDER_MAX_RETRIES", 0),
    provider_max_tokens=_get_env_int("PROVIDER_MAX_TOKENS", 4096),
    job_fetch_timeout_s=_get_env_float("JOB_FETCH_TIMEOUT_S", 12.0) or 12.0,
    pipeline_config_path=_get_env("PIPELINE_CONFIG_PATH", None),
)

if settings.max_upload_bytes <= 0:
    raise RuntimeError("MAX_UPLOAD_BYTES must be a positive integer.")

if settings.provider_max_retries < 0:
    raise RuntimeError("PROVIDER_MAX_RETRIES cannot be negative.")

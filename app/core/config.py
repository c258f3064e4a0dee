from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

ESCAPE_MODES = ("uniform", "preserve_unicode_escapes")


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


def _get_env_float(name: str, default: float) -> float:
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
    api_key: str | None
    rate_limit: str
    rate_limit_enabled: bool
    log_level: str
    sentry_dsn: str | None
    log_text_preview_chars: int
    cors_allowed_origins: tuple[str, ...]
    cors_allow_origin_regex: str | None
    cors_allow_credentials: bool
    trust_x_forwarded_for: bool
    ai_api_key: str | None
    ai_base_url: str | None
    ai_model: str
    ai_timeout_s: float
    ai_max_retries: int
    ai_temperature: float
    max_upload_bytes: int
    sanitizer_escape_mode: str


settings = Settings(
    api_key=_get_env("API_KEY"),
    rate_limit=_get_env("RATE_LIMIT", "30/minute") or "30/minute",
    rate_limit_enabled=_get_env_bool("RATE_LIMIT_ENABLED", True),
    log_level=_get_env("LOG_LEVEL", "INFO") or "INFO",
    sentry_dsn=_get_env("SENTRY_DSN"),
    log_text_preview_chars=_get_env_int("LOG_TEXT_PREVIEW_CHARS", 0),
    cors_allowed_origins=_get_env_list(
        "CORS_ALLOWED_ORIGINS",
        [
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://localhost:8080",
            "http://localhost:3000",
        ],
    ),
    cors_allow_origin_regex=_get_env("CORS_ALLOW_ORIGIN_REGEX"),
    cors_allow_credentials=_get_env_bool("CORS_ALLOW_CREDENTIALS", False),
    trust_x_forwarded_for=_get_env_bool("TRUST_X_FORWARDED_FOR", False),
    ai_api_key=_get_env("AI_API_KEY") or _get_env("OPENAI_API_KEY"),
    ai_base_url=_get_env("AI_BASE_URL") or _get_env("OPENAI_BASE_URL"),
    ai_model=(_get_env("AI_MODEL", "gpt-4o-mini") or "gpt-4o-mini").strip(),
    ai_timeout_s=_get_env_float("AI_TIMEOUT_S", 30.0),
    ai_max_retries=_get_env_int("AI_MAX_RETRIES", 2),
    ai_temperature=_get_env_float("AI_TEMPERATURE", 0.2),
    max_upload_bytes=_get_env_int("MAX_UPLOAD_BYTES", 10 * 1024 * 1024),
    sanitizer_escape_mode=(_get_env("SANITIZER_ESCAPE_MODE", "uniform") or "uniform").strip().lower(),
)

if settings.sanitizer_escape_mode not in ESCAPE_MODES:
    raise RuntimeError(
        "SANITIZER_ESCAPE_MODE must be either 'uniform' or 'preserve_unicode_escapes'."
    )

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


DEFAULT_MODEL_CHAIN = [
    "gemini-1.5-flash",
    "gemini-2.0-flash-001",
    "gemini-2.5-pro",
]


@dataclass(frozen=True)
class Settings:
    log_level: str
    sentry_dsn: str | None
    rate_limit: str
    rate_limit_enabled: bool
    cors_allowed_origins: tuple[str, ...]
    ai_provider: str
    ai_models: tuple[str, ...]
    openai_api_key: str | None
    openai_base_url: str | None
    ai_temperature: float
    ai_resume_temperature: float
    ai_max_output_tokens: int
    ai_top_p: float
    ai_parsing_timeout_ms: int
    quota_max_requests_per_min: int
    quota_max_tokens_per_day: int
    quota_db_path: str | None
    job_description_max_chars: int
    summary_guard_enabled: bool
    expose_error_details: bool
    host: str
    port: int


settings = Settings(
    log_level=_get_env("LOG_LEVEL", "INFO") or "INFO",
    sentry_dsn=_get_env("SENTRY_DSN"),
    rate_limit=_get_env("RATE_LIMIT", "30/minute") or "30/minute",
    rate_limit_enabled=_get_env_bool("RATE_LIMIT_ENABLED", True),
    cors_allowed_origins=_get_env_list(
        "CORS_ALLOWED_ORIGINS",
        [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ],
    ),
    ai_provider=(_get_env("AI_PROVIDER", "openai") or "openai").strip().lower(),
    ai_models=_get_env_list("AI_MODELS", DEFAULT_MODEL_CHAIN),
    openai_api_key=_get_env("OPENAI_API_KEY"),
    openai_base_url=_get_env("OPENAI_BASE_URL"),
    ai_temperature=_get_env_float("AI_TEMPERATURE", 0.1),
    ai_resume_temperature=_get_env_float("AI_RESUME_TEMPERATURE", 0.3),
    ai_max_output_tokens=_get_env_int("AI_MAX_OUTPUT_TOKENS", 8192),
    ai_top_p=_get_env_float("AI_TOP_P", 0.95),
    ai_parsing_timeout_ms=_get_env_int("AI_PARSING_TIMEOUT_MS", 30000),
    quota_max_requests_per_min=_get_env_int("QUOTA_MAX_REQUESTS_PER_MIN", 15),
    quota_max_tokens_per_day=_get_env_int("QUOTA_MAX_TOKENS_PER_DAY", 1_000_000),
    quota_db_path=_get_env("QUOTA_DB_PATH"),
    job_description_max_chars=_get_env_int("JOB_DESCRIPTION_MAX_CHARS", 10000),
    summary_guard_enabled=_get_env_bool("SUMMARY_GUARD_ENABLED", False),
    expose_error_details=_get_env_bool("EXPOSE_ERROR_DETAILS", False),
    host=_get_env("HOST", "127.0.0.1") or "127.0.0.1",
    port=_get_env_int("PORT", 8000),
)

if not settings.ai_models:
    raise RuntimeError("AI_MODELS must name at least one model.")

__all__ = ["Settings", "settings", "DEFAULT_MODEL_CHAIN"]

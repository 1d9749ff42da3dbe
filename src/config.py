"""Process configuration, read once from the environment at startup."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

DEFAULT_OPENAI_MODEL = "gpt-4o-mini-2024-07-18"
DEFAULT_OPENAI_BASE_URL = "https://api.openai.com/v1"
DEFAULT_TELEGRAM_API_BASE = "https://api.telegram.org"
DEFAULT_TIMEOUT_SECONDS = 15.0
DEFAULT_MAX_BODY_BYTES = 1024 * 1024
DEFAULT_AUDIT_LOG_MAX_BYTES = 10 * 1024 * 1024
DEFAULT_AUDIT_LOG_BACKUP_COUNT = 5

_TRUTHY = {"1", "true", "yes", "on"}


def _get(env: Mapping[str, str], name: str) -> str | None:
    """Return a stripped env value, treating empty strings as unset."""
    value = env.get(name, "").strip()
    return value or None


@dataclass(frozen=True)
class GatewayConfig:
    """Server-held credentials and knobs for both handlers.

    Credentials are optional here: a missing key is reported per request
    as a 500 rather than preventing the process from starting.
    """

    openai_api_key: str | None = None
    openai_model: str = DEFAULT_OPENAI_MODEL
    openai_base_url: str = DEFAULT_OPENAI_BASE_URL
    telegram_bot_token: str | None = None
    telegram_chat_id: str | None = None
    telegram_api_base: str = DEFAULT_TELEGRAM_API_BASE
    webhook_secret: str | None = None
    require_webhook_secret: bool = False
    upstream_timeout: float = DEFAULT_TIMEOUT_SECONDS
    max_body_bytes: int = DEFAULT_MAX_BODY_BYTES
    audit_log_path: str | None = None
    audit_log_max_bytes: int = DEFAULT_AUDIT_LOG_MAX_BYTES
    audit_log_backup_count: int = DEFAULT_AUDIT_LOG_BACKUP_COUNT
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> GatewayConfig:
        env = os.environ if env is None else env
        return cls(
            openai_api_key=_get(env, "OPENAI_API_KEY"),
            openai_model=_get(env, "OPENAI_MODEL") or DEFAULT_OPENAI_MODEL,
            openai_base_url=_get(env, "OPENAI_BASE_URL") or DEFAULT_OPENAI_BASE_URL,
            telegram_bot_token=_get(env, "TELEGRAM_BOT_TOKEN"),
            telegram_chat_id=_get(env, "TELEGRAM_CHAT_ID"),
            telegram_api_base=_get(env, "TELEGRAM_API_BASE") or DEFAULT_TELEGRAM_API_BASE,
            webhook_secret=_get(env, "SUPABASE_WEBHOOK_SECRET"),
            require_webhook_secret=(_get(env, "WEBHOOK_REQUIRE_SECRET") or "").lower() in _TRUTHY,
            upstream_timeout=float(
                _get(env, "UPSTREAM_TIMEOUT_SECONDS") or DEFAULT_TIMEOUT_SECONDS,
            ),
            max_body_bytes=int(_get(env, "MAX_BODY_BYTES") or DEFAULT_MAX_BODY_BYTES),
            audit_log_path=_get(env, "AUDIT_LOG_PATH"),
            audit_log_max_bytes=int(
                _get(env, "AUDIT_LOG_MAX_BYTES") or DEFAULT_AUDIT_LOG_MAX_BYTES,
            ),
            audit_log_backup_count=int(
                _get(env, "AUDIT_LOG_BACKUP_COUNT") or DEFAULT_AUDIT_LOG_BACKUP_COUNT,
            ),
            log_level=(_get(env, "LOG_LEVEL") or "INFO").upper(),
        )

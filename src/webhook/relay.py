"""Webhook relay: database-change notification -> Telegram message.

Pipeline stages:
1. Shared-secret check (when a secret is configured)
2. Bot credential and chat id check (server config)
3. Tolerant body parse
4. Record extraction and field normalization
5. HTML formatting
6. Single send via the Telegram Bot API
"""

from __future__ import annotations

import hmac
import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

import httpx

from src.errors import ConfigurationError, UnauthorizedError, UpstreamError, UpstreamTimeoutError
from src.models import AuditEvent, AuditEventType, RiskLevel
from src.payload import parse_json_body
from src.webhook.message import base_url_from_headers, format_notification
from src.webhook.models import TelegramTarget
from src.webhook.records import normalize_record
from src.webhook.telegram import TelegramNotifier, TelegramSendError, TelegramTimeoutError

if TYPE_CHECKING:
    from src.audit.logger import AuditLogger
    from src.config import GatewayConfig

logger = logging.getLogger(__name__)

SECRET_HEADER = "x-webhook-secret"


class WebhookRelay:
    """Relays one webhook delivery to the configured Telegram chat."""

    def __init__(
        self,
        config: GatewayConfig,
        audit_logger: AuditLogger | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._audit = audit_logger
        self._transport = transport

    def verify_secret(self, headers: Mapping[str, str]) -> bool:
        """Constant-time check of the shared-secret header.

        Returns True when no secret is configured (open relay).
        """
        expected = self._config.webhook_secret
        if not expected:
            return True
        provided = headers.get(SECRET_HEADER, "")
        return hmac.compare_digest(provided.encode(), expected.encode())

    def _target(self) -> TelegramTarget:
        if self._config.require_webhook_secret and not self._config.webhook_secret:
            raise ConfigurationError("Missing SUPABASE_WEBHOOK_SECRET")
        if not self._config.telegram_bot_token:
            raise ConfigurationError("Missing TELEGRAM_BOT_TOKEN")
        if not self._config.telegram_chat_id:
            raise ConfigurationError("Missing TELEGRAM_CHAT_ID")
        return TelegramTarget(
            bot_token=self._config.telegram_bot_token,
            chat_id=self._config.telegram_chat_id,
        )

    async def relay(
        self,
        raw_body: Any,
        headers: Mapping[str, str],
        source_ip: str | None = None,
    ) -> dict[str, Any]:
        """Return ``{"ok": True}`` or raise a GatewayError."""
        if not self.verify_secret(headers):
            self._log(AuditEventType.WEBHOOK_AUTH_FAILURE, source_ip, "failure",
                      RiskLevel.HIGH, {"reason": "secret_mismatch"})
            raise UnauthorizedError("Unauthorized")

        target = self._target()
        payload = parse_json_body(raw_body)
        record = normalize_record(payload)
        text = format_notification(record, base_url_from_headers(headers))

        notifier = TelegramNotifier(
            target,
            api_base=self._config.telegram_api_base,
            timeout=self._config.upstream_timeout,
            transport=self._transport,
        )
        try:
            await notifier.send_message(text)
        except TelegramTimeoutError as exc:
            self._log_send_failure(source_ip, exc)
            raise UpstreamTimeoutError("Telegram API timed out", detail=str(exc)) from exc
        except TelegramSendError as exc:
            self._log_send_failure(source_ip, exc)
            raise UpstreamError("Failed to send Telegram message", detail=str(exc)) from exc

        logger.info("Relayed webhook notification to Telegram chat")
        self._log(AuditEventType.WEBHOOK_RELAY, source_ip, "success", RiskLevel.INFO,
                  {"has_details": bool(record.details)})
        return {"ok": True}

    def _log_send_failure(self, source_ip: str | None, exc: TelegramSendError) -> None:
        logger.warning("Telegram relay failed: %s", exc)
        self._log(AuditEventType.WEBHOOK_RELAY, source_ip, "failure", RiskLevel.MEDIUM,
                  {"upstream_status": exc.status_code})

    def _log(
        self,
        event_type: AuditEventType,
        source_ip: str | None,
        result: str,
        risk_level: RiskLevel,
        details: dict[str, object],
    ) -> None:
        if self._audit:
            self._audit.log(AuditEvent(
                event_type=event_type,
                source_ip=source_ip,
                action="webhook_relay",
                result=result,
                risk_level=risk_level,
                details=details,
            ))

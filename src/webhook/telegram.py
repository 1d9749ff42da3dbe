"""Telegram Bot API sender for webhook notifications.

One ``sendMessage`` call per notification with HTML parse mode and link
previews disabled. Failures raise; retrying is left to the caller.
"""

from __future__ import annotations

import logging

import httpx

from src.webhook.models import TelegramTarget

logger = logging.getLogger(__name__)

_ERROR_BODY_CHARS = 600


class TelegramSendError(Exception):
    """Raised when Telegram cannot be reached or rejects the message."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class TelegramTimeoutError(TelegramSendError):
    """Raised when Telegram does not answer within the configured timeout."""


class TelegramNotifier:
    """Sends HTML messages to a single chat via the Bot API."""

    def __init__(
        self,
        target: TelegramTarget,
        api_base: str = "https://api.telegram.org",
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._target = target
        self._api_base = api_base.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    @property
    def send_url(self) -> str:
        return f"{self._api_base}/bot{self._target.bot_token}/sendMessage"

    def build_payload(self, text: str) -> dict[str, object]:
        return {
            "chat_id": self._target.chat_id,
            "text": text,
            "parse_mode": "HTML",
            "disable_web_page_preview": True,
        }

    async def send_message(self, text: str) -> str:
        """Send ``text`` and return Telegram's raw response body.

        TLS certificate verification stays on and the timeout is explicit.
        """
        try:
            async with httpx.AsyncClient(
                verify=True, timeout=self._timeout, transport=self._transport,
            ) as client:
                resp = await client.post(self.send_url, json=self.build_payload(text))
        except httpx.TimeoutException as exc:
            raise TelegramTimeoutError(f"Telegram API timed out: {exc}") from exc
        except httpx.HTTPError as exc:
            # The URL carries the bot token; keep it out of the message
            raise TelegramSendError(f"Telegram API unreachable: {type(exc).__name__}") from exc

        body = resp.text
        if not resp.is_success:
            logger.warning("Telegram sendMessage returned %s", resp.status_code)
            raise TelegramSendError(
                f"Telegram API error {resp.status_code}: {body[:_ERROR_BODY_CHARS]}",
                status_code=resp.status_code,
            )
        return body

"""Chat Completions transport for the estimate gateway."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from src.errors import UpstreamError, UpstreamTimeoutError, excerpt
from src.payload import JSON_DECODE_ERRORS, loads_json

logger = logging.getLogger(__name__)


class OpenAIChatClient:
    """Posts one chat-completion request and returns the decoded envelope.

    A single attempt is made; no retries.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str,
        timeout: float,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._url = f"{base_url.rstrip('/')}/chat/completions"
        self._timeout = timeout
        self._transport = transport

    async def complete(self, payload: dict[str, Any]) -> dict[str, Any]:
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport,
            ) as client:
                resp = await client.post(self._url, json=payload, headers=headers)
        except httpx.TimeoutException as exc:
            logger.warning("OpenAI request timed out after %ss", self._timeout)
            raise UpstreamTimeoutError("OpenAI API timed out", detail=str(exc)) from exc
        except httpx.HTTPError as exc:
            logger.warning("OpenAI request failed: %s", exc)
            raise UpstreamError("Failed to reach OpenAI API", detail=str(exc)) from exc

        text = resp.text
        if not resp.is_success:
            logger.warning("OpenAI API returned %s", resp.status_code)
            raise UpstreamError(
                "OpenAI API error", status=resp.status_code, body=excerpt(text),
            )

        try:
            data = loads_json(text)
        except JSON_DECODE_ERRORS as exc:
            raise UpstreamError("Bad JSON from OpenAI", body=excerpt(text)) from exc
        if not isinstance(data, dict):
            raise UpstreamError("Bad JSON from OpenAI", body=excerpt(text))
        return data

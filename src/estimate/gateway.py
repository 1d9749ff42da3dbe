"""Estimate gateway: validate an inquiry, ask the model, unwrap the answer.

Pipeline stages:
1. Credential check (server config)
2. Tolerant body parse and field clamping
3. Prompt + strict JSON schema payload
4. Forward to the chat-completion API
5. Unwrap ``choices[0].message.content`` and parse it as JSON
6. Re-validate the parsed object against EstimateResult
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx
from pydantic import ValidationError

from src.errors import ClientInputError, ConfigurationError, GatewayError, UpstreamError, excerpt
from src.estimate.openai_client import OpenAIChatClient
from src.estimate.prompt import (
    BUDGET_MAX_CHARS,
    CATEGORY_MAX_CHARS,
    DETAILS_MAX_CHARS,
    build_payload,
    clamp,
)
from src.models import AuditEvent, AuditEventType, EstimateRequest, EstimateResult, RiskLevel
from src.payload import JSON_DECODE_ERRORS, as_mapping, loads_json, parse_json_body

if TYPE_CHECKING:
    from src.audit.logger import AuditLogger
    from src.config import GatewayConfig

logger = logging.getLogger(__name__)


def parse_estimate_request(body: Any) -> EstimateRequest:
    """Clamp the three inquiry fields and enforce the required ones."""
    data = as_mapping(body)
    category = clamp(data.get("category"), CATEGORY_MAX_CHARS)
    budget = clamp(data.get("budget"), BUDGET_MAX_CHARS)
    details = clamp(data.get("details"), DETAILS_MAX_CHARS)

    if not category:
        raise ClientInputError("Missing category")
    if not details:
        raise ClientInputError("Missing details")
    return EstimateRequest(category=category, budget=budget, details=details)


def extract_content(envelope: dict[str, Any]) -> str:
    """Pull the first choice's message content out of the envelope."""
    try:
        content = envelope["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        content = None
    if not content:
        raise UpstreamError("Empty model response", raw=envelope)
    return str(content)


def parse_estimate_content(content: str) -> dict[str, Any]:
    """Decode the nested structured output, retrying once after trimming."""
    try:
        parsed = loads_json(content)
    except JSON_DECODE_ERRORS:
        try:
            parsed = loads_json(content.strip())
        except JSON_DECODE_ERRORS as exc:
            raise UpstreamError(
                "Failed to parse model JSON", content=excerpt(content),
            ) from exc

    try:
        EstimateResult.model_validate(parsed)
    except ValidationError as exc:
        raise UpstreamError(
            "Model JSON failed validation",
            detail=exc.errors(include_url=False, include_context=False, include_input=False),
            content=excerpt(content),
        ) from exc
    return parsed


class EstimateGateway:
    """Turns one pricing inquiry into one structured estimate."""

    def __init__(
        self,
        config: GatewayConfig,
        audit_logger: AuditLogger | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._audit = audit_logger
        self._transport = transport

    async def estimate(self, raw_body: Any, source_ip: str | None = None) -> dict[str, Any]:
        """Return ``{"estimate": ...}`` or raise a GatewayError."""
        api_key = self._config.openai_api_key
        if not api_key:
            raise ConfigurationError("Missing server env OPENAI_API_KEY")

        request = parse_estimate_request(parse_json_body(raw_body))
        payload = build_payload(request, self._config.openai_model)
        client = OpenAIChatClient(
            api_key=api_key,
            base_url=self._config.openai_base_url,
            timeout=self._config.upstream_timeout,
            transport=self._transport,
        )

        try:
            envelope = await client.complete(payload)
            estimate = parse_estimate_content(extract_content(envelope))
        except GatewayError as exc:
            self._log(source_ip, request, "failure", {"error": exc.error})
            raise

        logger.info(
            "Estimate produced: category=%r package=%s",
            request.category, estimate.get("recommended_package"),
        )
        self._log(
            source_ip, request, "success",
            {"recommended_package": estimate.get("recommended_package")},
        )
        return {"estimate": estimate}

    def _log(
        self,
        source_ip: str | None,
        request: EstimateRequest,
        result: str,
        details: dict[str, object],
    ) -> None:
        if not self._audit:
            return
        self._audit.log(AuditEvent(
            event_type=AuditEventType.ESTIMATE,
            source_ip=source_ip,
            action="estimate",
            result=result,
            risk_level=RiskLevel.INFO if result == "success" else RiskLevel.MEDIUM,
            details={"category": request.category, **details},
        ))

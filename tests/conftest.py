"""Shared test fixtures for studio-gateway."""

from __future__ import annotations

import json
from typing import Any
from unittest.mock import MagicMock

import pytest

from src.audit.logger import AuditLogger
from src.config import GatewayConfig
from src.models import AuditEvent, AuditEventType, RiskLevel


@pytest.fixture
def mock_audit_logger() -> MagicMock:
    return MagicMock(spec=AuditLogger)


# --- Factory functions for test data ---


def make_config(**kwargs: Any) -> GatewayConfig:
    """GatewayConfig with every credential set and no webhook secret."""
    defaults: dict[str, Any] = {
        "openai_api_key": "sk-test",
        "openai_model": "gpt-test",
        "openai_base_url": "https://openai.test/v1",
        "telegram_bot_token": "123:ABC",
        "telegram_chat_id": "-100500",
        "telegram_api_base": "https://telegram.test",
        "webhook_secret": None,
        "upstream_timeout": 5.0,
    }
    defaults.update(kwargs)
    return GatewayConfig(**defaults)


def make_estimate(**kwargs: Any) -> dict[str, Any]:
    """Estimate object that satisfies the structured-output schema."""
    defaults: dict[str, Any] = {
        "recommended_package": "GROW",
        "package_base_uah": 24000,
        "estimated_total_uah": 30000,
        "range_uah": {"min": 27000, "max": 36000},
        "timeline_days": {"min": 14, "max": 21},
        "included": ["До 5 сторінок", "Форма заявки"],
        "additional_costs": [
            {"item": "Інтеграція з CRM", "uah": 6000, "notes": "Залежить від API"},
        ],
        "why_this_package": "Кілька сторінок та інтеграції",
        "assumptions": ["Контент надає клієнт"],
        "questions": ["Чи є готовий дизайн?"],
        "confidence": 0.6,
    }
    defaults.update(kwargs)
    return defaults


def make_openai_envelope(content: str | None) -> dict[str, Any]:
    return {
        "id": "chatcmpl-test",
        "object": "chat.completion",
        "choices": [
            {"index": 0, "message": {"role": "assistant", "content": content}},
        ],
    }


def make_openai_body(estimate: dict[str, Any] | None = None) -> str:
    return json.dumps(make_openai_envelope(json.dumps(estimate or make_estimate())))


def make_audit_event(**kwargs: Any) -> AuditEvent:
    """Factory for AuditEvent with sensible defaults."""
    defaults: dict[str, Any] = {
        "event_type": AuditEventType.WEBHOOK_RELAY,
        "action": "webhook_relay",
        "result": "success",
        "risk_level": RiskLevel.INFO,
    }
    defaults.update(kwargs)
    return AuditEvent(**defaults)

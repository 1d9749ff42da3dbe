"""Prompt and structured-output schema for the estimate gateway."""

from __future__ import annotations

from typing import Any

from src.models import EstimateRequest, PackageTier

TEMPERATURE = 0.2
MAX_OUTPUT_TOKENS = 900

CATEGORY_MAX_CHARS = 80
BUDGET_MAX_CHARS = 40
DETAILS_MAX_CHARS = 2500

SCHEMA_NAME = "website_cost_estimate"

PACKAGE_TIERS = [tier.value for tier in PackageTier]


def clamp(value: object, max_len: int) -> str:
    """Trim a string and cut it to ``max_len``; non-strings become ''."""
    if not isinstance(value, str):
        return ""
    value = value.strip()
    return value[:max_len]


def _number(minimum: float, maximum: float | None = None) -> dict[str, Any]:
    prop: dict[str, Any] = {"type": "number", "minimum": minimum}
    if maximum is not None:
        prop["maximum"] = maximum
    return prop


def _pair(minimum: float) -> dict[str, Any]:
    return {
        "type": "object",
        "additionalProperties": False,
        "properties": {"min": _number(minimum), "max": _number(minimum)},
        "required": ["min", "max"],
    }


def _strings(max_items: int) -> dict[str, Any]:
    return {"type": "array", "maxItems": max_items, "items": {"type": "string"}}


def build_schema() -> dict[str, Any]:
    """JSON schema for the model's answer; kept in step with EstimateResult."""
    properties: dict[str, Any] = {
        "recommended_package": {"type": "string", "enum": list(PACKAGE_TIERS)},
        "package_base_uah": _number(0),
        "estimated_total_uah": _number(0),
        "range_uah": _pair(0),
        "timeline_days": _pair(1),
        "included": _strings(12),
        "additional_costs": {
            "type": "array",
            "maxItems": 10,
            "items": {
                "type": "object",
                "additionalProperties": False,
                "properties": {
                    "item": {"type": "string", "minLength": 1},
                    "uah": _number(0),
                    "notes": {"type": "string"},
                },
                "required": ["item", "uah", "notes"],
            },
        },
        "why_this_package": {"type": "string"},
        "assumptions": _strings(8),
        "questions": _strings(8),
        "confidence": _number(0, 1),
    }
    return {
        "name": SCHEMA_NAME,
        "strict": True,
        "schema": {
            "type": "object",
            "additionalProperties": False,
            "properties": properties,
            "required": list(properties),
        },
    }


SYSTEM_PROMPT = "\n".join([
    "Ти досвідчений проджект-менеджер веб-студії.",
    "Мета: дати орієнтовну оцінку вартості та термінів у гривнях (UAH) для запиту клієнта.",
    "Повертай ЛИШЕ JSON, що відповідає наданій схемі.",
    "Базові пакети (орієнтири, коригуй під обсяг):",
    "- START: від 12 000 грн (1 сторінка, адаптив, форма заявки, базове SEO), 5-10 днів.",
    "- GROW: від 24 000 грн (до 5 сторінок, інтеграції, UX), 10-20 днів.",
    "- SCALE: від 36 000 грн (до 10 сторінок, складніша логіка, пріоритет), 20-35 днів.",
    "- CUSTOM: від 50 000 грн (SaaS, веб-застосунки, кабінети, нестандартна логіка).",
    "Алгоритм:",
    "1. Обери найменший пакет, що покриває запит, і вкажи його базову ціну.",
    "2. Усе, що виходить за межі пакета, винеси в additional_costs з сумою та поясненням.",
    "3. estimated_total_uah = базова ціна + додаткові витрати; range_uah охоплює реалістичний розкид.",
    "4. Якщо бюджет клієнта нижчий за оцінку, не занижуй ціну: поясни це в assumptions.",
    "5. Будь консервативним: перелічи припущення та питання до клієнта, confidence від 0 до 1.",
    "Відповідай українською.",
])


def build_user_message(request: EstimateRequest) -> str:
    budget = f"Budget hint: {request.budget}" if request.budget else "Budget hint: (not provided)"
    return "\n".join([
        f"Category: {request.category}",
        budget,
        "Details (verbatim):",
        request.details,
    ])


def build_payload(request: EstimateRequest, model: str) -> dict[str, Any]:
    """Chat-completion request body asking for schema-constrained JSON."""
    return {
        "model": model,
        "temperature": TEMPERATURE,
        "max_tokens": MAX_OUTPUT_TOKENS,
        "response_format": {"type": "json_schema", "json_schema": build_schema()},
        "messages": [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": build_user_message(request)},
        ],
    }

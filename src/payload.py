"""Tolerant JSON body parsing shared by both handlers."""

from __future__ import annotations

import json
import math
from collections.abc import Mapping
from typing import Any

from src.errors import ClientInputError

# Errors json.loads can raise on hostile input: JSONDecodeError and
# UnicodeDecodeError are ValueErrors, deep nesting is a RecursionError.
JSON_DECODE_ERRORS = (ValueError, RecursionError)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Non-finite JSON number: {name}")


def _finite_float(literal: str) -> float:
    value = float(literal)
    if not math.isfinite(value):
        raise ValueError(f"Non-finite JSON number: {literal}")
    return value


def loads_json(text: str | bytes) -> Any:
    """``json.loads`` that rejects NaN, Infinity and overflowing floats.

    Anything decoded here must be renderable again by a JSON response,
    which refuses non-finite floats.
    """
    return json.loads(text, parse_constant=_reject_constant, parse_float=_finite_float)


def parse_json_body(raw: bytes | str | Mapping[str, Any] | None) -> Any:
    """Decode a request body that may already be parsed.

    Accepts a mapping (returned as-is), a JSON string, or raw bytes. An
    empty body decodes to ``{}``. Anything undecodable raises a 400.
    """
    if raw is None:
        return {}
    if isinstance(raw, Mapping):
        return raw
    try:
        text = raw.decode("utf-8") if isinstance(raw, bytes) else raw
        text = text.strip()
        if not text:
            return {}
        return loads_json(text)
    except JSON_DECODE_ERRORS as exc:
        raise ClientInputError("Invalid JSON body") from exc


def as_mapping(value: Any) -> Mapping[str, Any]:
    """Return ``value`` if it is a JSON object, else an empty mapping."""
    return value if isinstance(value, Mapping) else {}

"""Record extraction for database-change webhooks.

Supabase-style webhooks nest the changed row differently depending on
configuration and version. The accessors below are tried in order and the
first one that yields an object wins.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from src.webhook.models import NotificationRecord

logger = logging.getLogger(__name__)

Record = Mapping[str, Any]


def _child(value: Any, key: str) -> Record | None:
    if not isinstance(value, Mapping):
        return None
    child = value.get(key)
    return child if isinstance(child, Mapping) else None


RECORD_ACCESSORS: list[tuple[str, Callable[[Any], Record | None]]] = [
    ("record", lambda p: _child(p, "record")),
    ("new", lambda p: _child(p, "new")),
    ("data.record", lambda p: _child(_child(p, "data"), "record")),
    ("data.new", lambda p: _child(_child(p, "data"), "new")),
]

# field -> (synonymous source keys, max chars)
FIELD_SOURCES: dict[str, tuple[tuple[str, ...], int]] = {
    "name": (("name", "owner_name"), 120),
    "email": (("email", "owner_email"), 160),
    "category": (("category",), 80),
    "budget": (("budget",), 80),
    "telegram": (("telegram",), 80),
    "details": (("details", "description", "message"), 900),
    "created_at": (("created_at",), 80),
}

ELLIPSIS = "…"


def pick_record(payload: Any) -> Record:
    """Return the first nested record found, or an empty mapping."""
    for path, accessor in RECORD_ACCESSORS:
        record = accessor(payload)
        if record is not None:
            logger.debug("Webhook record found at %s", path)
            return record
    logger.debug("No known record shape in webhook payload")
    return {}


def truncate(value: str, max_len: int) -> str:
    """Trim and cap ``value``; an over-long value ends with an ellipsis."""
    value = value.strip()
    if len(value) > max_len:
        return value[: max_len - 1] + ELLIPSIS
    return value


def _as_text(value: Any) -> str:
    if value is None or isinstance(value, (Mapping, list)):
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _first(sources: Mapping[str, Any], keys: tuple[str, ...]) -> str:
    for key in keys:
        text = _as_text(sources.get(key)).strip()
        if text:
            return text
    return ""


def normalize_record(payload: Any) -> NotificationRecord:
    """Build a NotificationRecord from any supported envelope shape."""
    record = pick_record(payload)
    values: dict[str, str] = {}
    for field_name, (keys, max_len) in FIELD_SOURCES.items():
        values[field_name] = truncate(_first(record, keys), max_len)

    # created_at also appears on some envelopes rather than on the row
    if not values["created_at"] and isinstance(payload, Mapping):
        values["created_at"] = truncate(_first(payload, ("created_at",)), 80)

    return NotificationRecord(**values)

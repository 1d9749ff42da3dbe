"""Data models for the webhook relay."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class NotificationRecord:
    """Normalized row from a database-change webhook.

    Every field is optional; an empty string means absent.
    """

    name: str = ""
    email: str = ""
    category: str = ""
    budget: str = ""
    telegram: str = ""
    details: str = ""
    created_at: str = ""


@dataclass(frozen=True)
class TelegramTarget:
    """Bot credential and destination chat for outbound notifications."""

    bot_token: str
    chat_id: str

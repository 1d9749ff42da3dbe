"""HTML notification formatting for Telegram."""

from __future__ import annotations

from collections.abc import Mapping

from src.webhook.models import NotificationRecord

TITLE = "<b>Нова заявка</b>"
DETAILS_LABEL = "<b>Деталі:</b>"
ADMIN_LINK_LABEL = "Відкрити адмінку"
ADMIN_PATH = "/profile"


def escape_html(value: str) -> str:
    return value.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def base_url_from_headers(headers: Mapping[str, str]) -> str:
    """Derive ``proto://host`` from proxy headers; '' when no host is known."""
    proto = headers.get("x-forwarded-proto") or "https"
    host = headers.get("x-forwarded-host") or headers.get("host")
    if not host:
        return ""
    # Proxies may append a chain: "https,http" / "a.example, b.example"
    proto = proto.split(",")[0].strip()
    host = host.split(",")[0].strip()
    return f"{proto}://{host}"


def format_notification(record: NotificationRecord, base_url: str = "") -> str:
    summary = [
        ("👤", record.name),
        ("✉️", record.email),
        ("💬", record.telegram),
        ("🧩", record.category),
        ("💰", record.budget),
        ("🕒", record.created_at),
    ]
    lines = [TITLE]
    for icon, value in summary:
        if value:
            lines.append(f"{icon} {escape_html(value)}")

    if record.details:
        lines.append(f"\n{DETAILS_LABEL}\n{escape_html(record.details)}")

    if base_url:
        href = escape_html(base_url + ADMIN_PATH).replace('"', "&quot;")
        lines.append(f'\n<a href="{href}">{ADMIN_LINK_LABEL}</a>')

    return "\n".join(lines)

"""Shared sanitisation helpers for log output."""

from __future__ import annotations

import re

_EMAIL_RE = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")
_SECRET_QUERY_RE = re.compile(r"(?i)(password|username|token)=([^&\s]+)")
_COOKIE_RE = re.compile(r"(?i)\b(PHPSESSID|session[a-z_]*)=([^;\s]+)")


def redact_text(value: str | None) -> str:
    """Return ``value`` with emails, form secrets and session cookies removed."""

    if not value:
        return ""
    text = str(value)
    if not text:
        return ""
    redacted = _COOKIE_RE.sub(lambda match: f"{match.group(1)}=***", text)
    redacted = _SECRET_QUERY_RE.sub(lambda match: f"{match.group(1)}=***", redacted)
    return _EMAIL_RE.sub("***@***", redacted)


def mask_identifier(value: str | int | None) -> str:
    """Return a masked identifier suitable for log output."""

    if value is None:
        return ""
    trimmed = str(value).strip()
    if not trimmed:
        return ""
    if len(trimmed) <= 4:
        return "***"
    if len(trimmed) <= 8:
        return f"{trimmed[:2]}...{trimmed[-2:]}"
    return f"{trimmed[:6]}...{trimmed[-4:]}"


def preview(value: str | None, limit: int = 200) -> str:
    """Return a redacted, truncated preview of a response body."""

    text = redact_text(value)
    if len(text) > limit:
        return f"{text[: limit - 3]}..."
    return text


__all__ = ["mask_identifier", "preview", "redact_text"]

"""Redaction of account secrets in debug output.

Login probing logs every candidate payload and position requests carry the
session token in a header; neither may reach a log unmasked.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pywhatsgps._constants import LOGIN_PASSWORD_FIELDS

SECRET_KEYS: frozenset[str] = frozenset(
    {*(name.lower() for name in LOGIN_PASSWORD_FIELDS), "token", "apikey", "authorization", "cookie"}
)
MAX_DEPTH = 20


def mask(value: Any) -> str:
    """Placeholder that keeps only the length of a secret."""
    return f"<redacted:{len(str(value))}>" if value not in (None, "") else "<redacted>"


def _clip(text: str, limit: int) -> str:
    return text if len(text) <= limit else f"{text[:limit]}…<truncated>"


def redact_for_log(value: Any, *, max_string: int = 512, _depth: int = 0) -> Any:
    """Copy of *value* with secret-named keys masked and long strings clipped."""
    if _depth > MAX_DEPTH:
        return "<max-depth>"
    if value is None or isinstance(value, (bool, int, float)):
        return value
    if isinstance(value, str):
        return _clip(value, max_string)
    if isinstance(value, (bytes, bytearray)):
        return f"<bytes:{len(value)}b>"
    child_depth = _depth + 1
    if isinstance(value, Mapping):
        return {
            str(key): mask(item)
            if str(key).lower() in SECRET_KEYS
            else redact_for_log(item, max_string=max_string, _depth=child_depth)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple, set, frozenset)):
        return [redact_for_log(item, max_string=max_string, _depth=child_depth) for item in value]
    return _clip(repr(value), max_string)


def redact_headers(headers: Mapping[str, str] | None) -> dict[str, str]:
    """Header mapping safe to log."""
    return {key: mask(val) if key.lower() in SECRET_KEYS else val for key, val in (headers or {}).items()}

"""Field sanitisation applied once at parse time."""

from __future__ import annotations

import unicodedata


def strip_control_chars(value: str) -> str:
    return "".join(ch for ch in value if unicodedata.category(ch) != "Cc")


def sanitize(raw: str | None) -> str:
    if raw is None:
        return ""
    return strip_control_chars(raw).strip()

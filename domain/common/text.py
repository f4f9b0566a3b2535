"""Text normalization rules shared by every topic."""
from __future__ import annotations

from typing import Any

from domain.common.exceptions import ValidationError


def clean_text(value: Any, *, field: str = "text") -> str:
    """Return ``value`` trimmed, or raise ``ValidationError`` if nothing is left."""
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string", field=field)
    text = value.strip()
    if not text:
        raise ValidationError(f"{field} must not be empty", field=field)
    return text

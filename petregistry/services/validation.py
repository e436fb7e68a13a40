from __future__ import annotations

from typing import Optional

from loguru import logger

from ..errors import ValidationError


def require_id(value, what: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
        logger.warning("Rejected {} id {!r}", what, value)
        raise ValidationError(f"The {what} id must be greater than 0.")
    return value


def require_text(value, label: str, max_length: Optional[int] = None) -> str:
    """Return ``value`` trimmed, or raise if it is missing, blank or too long."""
    if not isinstance(value, str) or not value.strip():
        logger.warning("Rejected empty {}", label.lower())
        raise ValidationError(f"{label} must not be empty.")
    cleaned = value.strip()
    if max_length is not None and len(cleaned) > max_length:
        logger.warning("Rejected {} longer than {} characters", label.lower(), max_length)
        raise ValidationError(f"{label} must be at most {max_length} characters.")
    return cleaned

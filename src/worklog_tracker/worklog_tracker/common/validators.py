from __future__ import annotations

import re
from typing import Any

from ..core.constants import MIN_PASSWORD_LENGTH
from ..core.exceptions import ValidationError

_EMAIL = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_TIME = re.compile(r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$")


def require_non_empty(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_min_length(value: Any, field_name: str, min_len: int) -> str:
    if not isinstance(value, str) or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value


def require_email(value: Any) -> str:
    if not isinstance(value, str) or not _EMAIL.match(value.strip()):
        raise ValidationError("Invalid email address")
    return value.strip().lower()


def require_password(value: Any, *, field_name: str = "Password") -> str:
    return require_min_length(value, field_name, MIN_PASSWORD_LENGTH)


def require_matching_passwords(password: str, confirm: Any) -> None:
    if password != confirm:
        raise ValidationError("Passwords don't match")


def normalize_hhmm(value: Any) -> str:
    """Validate an H:MM / HH:MM string and zero-pad it."""
    if not isinstance(value, str) or not _TIME.match(value.strip()):
        raise ValidationError("Invalid time format. Use HH:MM format (e.g., 08:00)")
    hours, minutes = value.strip().split(":")
    return f"{int(hours):02d}:{minutes}"


def optional_bool(value: Any, field_name: str) -> bool:
    if not isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a boolean")
    return value


def parse_positive_int(value: Any, default: int, *, maximum: int | None = None) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    if number < 1:
        return default
    if maximum is not None:
        number = min(number, maximum)
    return number

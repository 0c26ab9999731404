from __future__ import annotations

from typing import Optional

from ..core.constants import MINUTES_PER_DAY
from ..core.exceptions import ValidationError


def require_non_empty(value: Optional[str], field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_min_length(value: Optional[str], field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value


def require_non_negative(value, field_name: str) -> float:
    if value is None:
        raise ValidationError(f"{field_name} is required")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if number < 0:
        raise ValidationError(f"{field_name} must not be negative")
    return number


def require_minute_of_day(value, field_name: str) -> int:
    """Shift bounds are minutes from midnight, 0..1439."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field_name} must be whole minutes from midnight")
    if not 0 <= value < MINUTES_PER_DAY:
        raise ValidationError(f"{field_name} must be between 0 and {MINUTES_PER_DAY - 1}")
    return value


def require_pin(value: Optional[str], length: int) -> str:
    if not value or not value.isdigit() or len(value) != length:
        raise ValidationError(f"Manager PIN must be exactly {length} digits")
    return value

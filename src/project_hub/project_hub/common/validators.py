from __future__ import annotations

import re
from datetime import date, datetime, time
from typing import Optional

from ..core.exceptions import ValidationError

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_COLOR_RE = re.compile(r"^#[0-9a-fA-F]{6}$")


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value


def require_length_between(value: str, field_name: str, min_len: int, max_len: int) -> str:
    value = require_non_empty(value, field_name)
    if len(value) < min_len or len(value) > max_len:
        raise ValidationError(f"{field_name} must be between {min_len} and {max_len} characters")
    return value


def require_email(value: str) -> str:
    value = require_non_empty(value, "Email").lower()
    if not _EMAIL_RE.match(value):
        raise ValidationError("Email is not valid")
    return value


def require_color(value: Optional[str], default: str) -> str:
    v = (value or "").strip()
    if not v:
        return default
    if not _COLOR_RE.match(v):
        raise ValidationError("Color must be a hex value like #3498db")
    return v


def optional_int(value, field_name: str) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")


def positive_int(value, field_name: str, default: int) -> int:
    parsed = optional_int(value, field_name)
    if parsed is None:
        return default
    if parsed < 1:
        raise ValidationError(f"{field_name} must be at least 1")
    return parsed


def optional_float(value, field_name: str) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")


def optional_date(value, field_name: str) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value)[:10], "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(f"{field_name} must be a date (YYYY-MM-DD)")


def optional_datetime(value, field_name: str) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    raw = str(value).strip().replace("Z", "")
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        raise ValidationError(f"{field_name} must be an ISO datetime")
    return parsed.replace(tzinfo=None)


def optional_hhmm(value, field_name: str) -> Optional[str]:
    v = (value or "").strip() if isinstance(value, str) or value is None else str(value)
    if not v:
        return None
    try:
        parsed: time = datetime.strptime(v, "%H:%M").time()
    except ValueError:
        raise ValidationError(f"{field_name} must be HH:MM")
    return parsed.strftime("%H:%M")

"""
Scalar value helpers.

Parsed cells are normalised to a closed set of Python scalars:
``str``, ``int``, ``float``, ``bool``, ``datetime`` or ``None``. Every helper
here is total: bad input yields ``None`` (or pass-through), never an exception.
"""

import math
from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import Any, Optional, Union

Scalar = Union[str, int, float, bool, datetime, None]

# Layouts tried after ISO-8601, optionally followed by a time of day
DATE_FORMATS = [
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%d-%m-%Y",
    "%d-%b-%Y",
    "%b %d, %Y",
    "%B %d, %Y",
    "%d %b %Y",
    "%d %B %Y",
]
TIME_SUFFIXES = ["", " %H:%M", " %H:%M:%S"]


def is_null(value: Any) -> bool:
    """True for ``None`` and the empty string."""
    return value is None or (isinstance(value, str) and value == "")


def to_iso_utc(value: datetime) -> Optional[str]:
    """
    Render a datetime as ``YYYY-MM-DDTHH:MM:SS.mmmZ``.

    Returns ``None`` when the UTC instant falls outside the calendar range,
    e.g. ``0001-01-01T00:00:00+05:00``.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    try:
        value = value.astimezone(timezone.utc)
    except (OverflowError, ValueError):
        return None
    return f"{value:%Y-%m-%dT%H:%M:%S}.{value.microsecond // 1000:03d}Z"


def to_text(value: Any) -> str:
    """Coerce a scalar to its text form (``None`` becomes ``""``)."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return str(int(value))
    if isinstance(value, datetime):
        return to_iso_utc(value) or value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def parse_number(value: Any) -> Optional[Union[int, float]]:
    """Parse a value as a finite number, or return ``None``."""
    if value is None:
        return None
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, Decimal):
        return parse_number(str(value))
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text or "_" in text:
        return None

    try:
        return int(text)
    except ValueError:
        pass

    try:
        number = float(text)
    except ValueError:
        return None

    return number if math.isfinite(number) else None


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse a value as a calendar date/time (UTC-aware), or return ``None``."""
    if value is None or isinstance(value, (bool, int, float, Decimal)):
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    parsed = _parse_iso(text)
    if parsed is None:
        parsed = _parse_formats(text)
    if parsed is None:
        return None

    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def _parse_iso(text: str) -> Optional[datetime]:
    """Parse ISO-8601 text, accepting a trailing ``Z``."""
    if text[-1] in "zZ":
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except (ValueError, OverflowError):
        return None


def _parse_formats(text: str) -> Optional[datetime]:
    """Try the common non-ISO layouts."""
    for date_format in DATE_FORMATS:
        for suffix in TIME_SUFFIXES:
            try:
                return datetime.strptime(text, date_format + suffix)
            except ValueError:
                continue
    return None


def normalize_cell(value: Any) -> Scalar:
    """Normalise a raw parser cell into the closed scalar set."""
    if value is None or isinstance(value, (str, bool, int, datetime)):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, Decimal):
        return parse_number(str(value))
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, time):
        return value.isoformat()
    return str(value)

# app/report/formatting.py
from datetime import datetime, tzinfo

from app.core.database import as_utc

MESI = [
    "gennaio", "febbraio", "marzo", "aprile", "maggio", "giugno",
    "luglio", "agosto", "settembre", "ottobre", "novembre", "dicembre",
]
MESI_BREVI = [m[:3] for m in MESI]


def _local(value: datetime, tz: tzinfo | None) -> datetime:
    if value.tzinfo is None:
        value = as_utc(value)
    return value.astimezone(tz) if tz is not None else value


def long_date(value: datetime, tz: tzinfo | None = None) -> str:
    """``d MMMM yyyy``, e.g. ``5 marzo 2025``."""
    value = _local(value, tz)
    return f"{value.day} {MESI[value.month - 1]} {value.year}"


def long_datetime(value: datetime, tz: tzinfo | None = None) -> str:
    value = _local(value, tz)
    return f"{long_date(value)}, {value:%H:%M}"


def medium_datetime(value: datetime, tz: tzinfo | None = None) -> str:
    """``d MMM yyyy, HH:mm`` as shown in the dashboard table."""
    value = _local(value, tz)
    return f"{value.day} {MESI_BREVI[value.month - 1]} {value.year}, {value:%H:%M}"


def short_date(value: datetime, tz: tzinfo | None = None) -> str:
    value = _local(value, tz)
    return f"{value.day}/{value.month}/{value:%y}"


def table_datetime(value: datetime | None, tz: tzinfo | None = None, placeholder: str = "-") -> str:
    """``d/MM/yy HH:mm`` or the placeholder when unset."""
    if value is None:
        return placeholder
    value = _local(value, tz)
    return f"{value.day}/{value:%m/%y %H:%M}"


def truncate(text: str, limit: int) -> str:
    return text[:limit] + "..." if len(text) > limit else text

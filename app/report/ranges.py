# app/report/ranges.py
import calendar
from datetime import date, datetime, time, timedelta, tzinfo
from enum import Enum
from zoneinfo import ZoneInfo

from app.core.config import get_settings


class DateRange(str, Enum):
    TODAY = "today"
    YESTERDAY = "yesterday"
    THIS_WEEK = "thisWeek"
    LAST_WEEK = "lastWeek"
    THIS_MONTH = "thisMonth"
    LAST_MONTH = "lastMonth"
    THIS_YEAR = "thisYear"
    LAST_YEAR = "lastYear"


DATE_RANGE_LABELS = {
    DateRange.TODAY: "Oggi",
    DateRange.YESTERDAY: "Ieri",
    DateRange.THIS_WEEK: "Questa settimana",
    DateRange.LAST_WEEK: "Settimana scorsa",
    DateRange.THIS_MONTH: "Questo mese",
    DateRange.LAST_MONTH: "Mese scorso",
    DateRange.THIS_YEAR: "Quest'anno",
    DateRange.LAST_YEAR: "Anno scorso",
}

DEFAULT_RANGE = DateRange.THIS_MONTH


def local_zone() -> ZoneInfo:
    return ZoneInfo(get_settings().TIMEZONE)


def _month_bounds(day: date) -> tuple[date, date]:
    last = calendar.monthrange(day.year, day.month)[1]
    return day.replace(day=1), day.replace(day=last)


def _period(date_range: DateRange, today: date) -> tuple[date, date]:
    if date_range == DateRange.TODAY:
        return today, today
    if date_range == DateRange.YESTERDAY:
        yesterday = today - timedelta(days=1)
        return yesterday, yesterday
    if date_range in (DateRange.THIS_WEEK, DateRange.LAST_WEEK):
        monday = today - timedelta(days=today.weekday())
        if date_range == DateRange.LAST_WEEK:
            monday -= timedelta(days=7)
        return monday, monday + timedelta(days=6)
    if date_range == DateRange.THIS_MONTH:
        return _month_bounds(today)
    if date_range == DateRange.LAST_MONTH:
        return _month_bounds(today.replace(day=1) - timedelta(days=1))
    if date_range == DateRange.THIS_YEAR:
        return date(today.year, 1, 1), date(today.year, 12, 31)
    if date_range == DateRange.LAST_YEAR:
        return date(today.year - 1, 1, 1), date(today.year - 1, 12, 31)
    raise ValueError(f"Unknown date range: {date_range!r}")


def resolve_range(date_range: DateRange | str, now: datetime | None = None, tz: tzinfo | None = None) -> tuple[datetime, datetime]:
    """Map a named range to its first and last instant around ``now``.

    Both bounds are inclusive and expressed in ``tz`` (the configured
    timezone by default); weeks start on Monday.
    """
    tz = tz or local_zone()
    if now is None:
        now = datetime.now(tz)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=tz)
    else:
        now = now.astimezone(tz)

    first, last = _period(DateRange(date_range), now.date())
    return datetime.combine(first, time.min, tzinfo=tz), datetime.combine(last, time.max, tzinfo=tz)

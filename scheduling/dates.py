"""
Calendar-date and time-of-day arithmetic on plain strings.

Dates are ``YYYY-MM-DD`` and times are ``HH:MM`` in the calendar's local
clock; no timezone conversion happens here.

Two families of helpers live in this module:

* strict parsers (``parse_date``, ``parse_time``) that return ``None`` on
  malformed input. Anything that makes a booking decision goes through these.
* fail-soft arithmetic/formatting helpers that fall back to a deterministic
  default (the epoch ``1970-01-01``, ``0`` minutes, or the input unchanged)
  instead of raising. They are only safe on values that were already
  validated, or for display.
"""
import re
from datetime import date, datetime, timedelta
from typing import Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

EPOCH = (1970, 1, 1)
MINUTES_PER_DAY = 24 * 60

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})$")
_DATE_RE = re.compile(r"([0-9]{4})-([0-9]{2})-([0-9]{2})")

_MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)
_DAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")


def parse_date(value: str) -> Optional[Tuple[int, int, int]]:
    """
    Strict YYYY-MM-DD parser. Returns (year, month, day) or None.
    """
    m = _DATE_RE.fullmatch(value or "")
    if not m:
        return None
    year, month, day = (int(g) for g in m.groups())
    try:
        date(year, month, day)
    except ValueError:
        return None
    return year, month, day


def parse_time(value: str) -> Optional[int]:
    """
    Strict HH:MM parser. Returns minutes since midnight or None.
    """
    m = _TIME_RE.match((value or "").strip())
    if not m:
        return None
    hour, minute = int(m.group(1)), int(m.group(2))
    if hour > 23 or minute > 59:
        return None
    return hour * 60 + minute


def format_date(year: int, month: int, day: int) -> str:
    return f"{year:04d}-{month:02d}-{day:02d}"


def day_of_week(value: str) -> Optional[int]:
    """
    0=Sunday .. 6=Saturday, via Zeller's congruence.
    """
    parsed = parse_date(value)
    if parsed is None:
        return None
    year, month, day = parsed

    m = month + 12 if month < 3 else month
    y = year - 1 if month < 3 else year
    k = y % 100
    j = y // 100

    h = (day + (13 * (m + 1)) // 5 + k + k // 4 + j // 4 + 5 * j) % 7
    # Zeller counts from Saturday
    return (h + 6) % 7


def add_days(value: str, days: int) -> str:
    year, month, day = parse_date(value) or EPOCH
    shifted = date(year, month, day) + timedelta(days=days)
    return shifted.isoformat()


def start_of_week(value: str) -> str:
    """Monday of the week containing ``value``."""
    dow = day_of_week(value)
    if dow is None:
        dow = 0
    days_since_monday = 6 if dow == 0 else dow - 1
    return add_days(value, -days_since_monday)


def start_of_month(value: str) -> str:
    year, month, _ = parse_date(value) or EPOCH
    return format_date(year, month, 1)


def end_of_month(value: str) -> str:
    year, month, _ = parse_date(value) or EPOCH
    next_month = 1 if month == 12 else month + 1
    next_year = year + 1 if month == 12 else year
    return add_days(format_date(next_year, next_month, 1), -1)


def time_to_minutes(value: str) -> int:
    parts = (value or "").split(":")
    if len(parts) < 2:
        return 0
    hour = _int_or_zero(parts[0])
    minute = _int_or_zero(parts[1])
    return hour * 60 + minute


def add_minutes(value: str, minutes: int) -> str:
    """
    Shift an HH:MM clock value. Wraps modulo 24h without touching the date.
    """
    parts = (value or "").split(":")
    if len(parts) < 2:
        return value
    total = (_int_or_zero(parts[0]) * 60 + _int_or_zero(parts[1]) + minutes) % MINUTES_PER_DAY
    return f"{total // 60:02d}:{total % 60:02d}"


def minutes_to_time(minutes: int) -> str:
    minutes %= MINUTES_PER_DAY
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def format_time(value: str) -> str:
    """'13:45' -> '1:45 PM'. Unparseable input is returned unchanged."""
    parts = (value or "").split(":")
    if len(parts) < 2:
        return value
    hour = _int_or_zero(parts[0])
    minute = _int_or_zero(parts[1])
    period = "PM" if hour >= 12 else "AM"
    display_hour = 12 if hour == 0 else (hour - 12 if hour > 12 else hour)
    return f"{display_hour}:{minute:02d} {period}"


def month_name(month: int) -> str:
    if 1 <= month <= 12:
        return _MONTH_NAMES[month - 1]
    return "Unknown"


def day_name(dow: int) -> str:
    if 0 <= dow <= 6:
        return _DAY_NAMES[dow]
    return "Unknown"


def today_in(tz_name: str, now: Optional[datetime] = None) -> str:
    try:
        tz = ZoneInfo(tz_name or "UTC")
    except (ZoneInfoNotFoundError, ValueError):
        tz = ZoneInfo("UTC")
    current = now.astimezone(tz) if now is not None else datetime.now(tz)
    return current.date().isoformat()


def _int_or_zero(text: str) -> int:
    try:
        return int(text)
    except ValueError:
        return 0

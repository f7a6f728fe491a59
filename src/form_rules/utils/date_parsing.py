"""Date parsing for date operators.

Accepts the shapes form values actually arrive in: date/datetime objects,
epoch milliseconds, ISO 8601 strings, and common European formats
(DD.MM.YYYY, DD/MM/YYYY, "20. Januar 2026", "27 janvier 2026").
Everything is normalized to a naive datetime so values compare safely.
"""

import re
from datetime import date, datetime, timezone
from typing import Any, Optional

# German month names (lowercase) -> month number
_GERMAN_MONTHS = {
    "januar": 1, "februar": 2, "märz": 3, "maerz": 3,
    "april": 4, "mai": 5, "juni": 6,
    "juli": 7, "august": 8, "september": 9,
    "oktober": 10, "november": 11, "dezember": 12,
}

# French month names (lowercase) -> month number
_FRENCH_MONTHS = {
    "janvier": 1, "février": 2, "fevrier": 2,
    "mars": 3, "avril": 4, "mai": 5, "juin": 6,
    "juillet": 7, "août": 8, "aout": 8,
    "septembre": 9, "octobre": 10, "novembre": 11, "décembre": 12, "decembre": 12,
}

_ENGLISH_MONTHS = {
    "january": 1, "february": 2, "march": 3, "april": 4, "may": 5, "june": 6,
    "july": 7, "august": 8, "september": 9, "october": 10, "november": 11, "december": 12,
}

_MONTH_NAMES = {**_ENGLISH_MONTHS, **_GERMAN_MONTHS, **_FRENCH_MONTHS}

# Named month: "20. Januar 2026", "27 janvier 2026", "3 March 2026"
_RE_NAMED_MONTH = re.compile(
    r"^(\d{1,2})\.?\s+([A-Za-zà-ü]+)\s+(\d{4})$"
)

# Numeric with separators: DD.MM.YYYY, DD/MM/YYYY, DD-MM-YYYY
_RE_NUMERIC = re.compile(
    r"^(\d{1,2})[./\-](\d{1,2})[./\-](\d{4})$"
)


def _to_naive(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _build(year: int, month: int, day: int) -> Optional[datetime]:
    try:
        return datetime(year, month, day)
    except ValueError:
        return None


def _parse_raw(value: Any) -> Optional[datetime]:
    """Parse a form value, keeping any timezone it carries."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    # 1. ISO 8601
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        pass

    # 2. Numeric day-first
    m = _RE_NUMERIC.match(text)
    if m:
        return _build(int(m.group(3)), int(m.group(2)), int(m.group(1)))

    # 3. Named month
    m = _RE_NAMED_MONTH.match(text)
    if m:
        month_num = _MONTH_NAMES.get(m.group(2).lower())
        if month_num is not None:
            return _build(int(m.group(3)), month_num, int(m.group(1)))

    return None


def parse_date(value: Any) -> Optional[datetime]:
    """Parse a form value into a naive datetime for ordering.

    Supported inputs:
    - datetime (timezone-aware values are converted to UTC)
    - date
    - int/float epoch milliseconds
    - ISO strings: 2026-01-23, 2026-01-23T10:00:00Z
    - European numeric: 23.01.2026, 23/01/2026, 23-01-2026 (day first)
    - Named month: "20. Januar 2026", "27 janvier 2026", "3 March 2026"

    Args:
        value: Value to parse.

    Returns:
        Naive datetime, or None if the value is not a recognizable date.
    """
    parsed = _parse_raw(value)
    return None if parsed is None else _to_naive(parsed)


def calendar_date(value: Any) -> Optional[date]:
    """Calendar day of a form value as written.

    Timezone-aware values keep their own wall-clock date:
    "2024-06-03T01:00:00+02:00" is June 3rd, not the UTC day.
    """
    parsed = _parse_raw(value)
    return None if parsed is None else parsed.date()


def is_weekend(value: Any) -> bool:
    """True if the value parses to a Saturday or Sunday."""
    day = calendar_date(value)
    return day is not None and day.weekday() >= 5


def is_business_day(value: Any) -> bool:
    """True if the value parses to Monday through Friday."""
    day = calendar_date(value)
    return day is not None and day.weekday() < 5

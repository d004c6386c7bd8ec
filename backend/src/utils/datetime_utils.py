"""
Datetime utilities for the spreadsheet date/time formats.

All business logic runs in Japan timezone (UTC+9). The appointment sheet stores
dates as "yyyy/M/d" (e.g. "2026/1/27") and times as "H:mm" (e.g. "9:30"):
no zero padding on month, day or hour, zero-padded minutes. Every value read
from or written to the sheet goes through the parse/format pairs below so the
formats round-trip exactly.
"""

import logging
from datetime import datetime, timezone, timedelta, date, time
from typing import Optional

logger = logging.getLogger(__name__)

# Japan timezone constant (UTC+9)
JAPAN_TZ = timezone(timedelta(hours=9))

# Weekday glyphs indexed by Python's weekday() (0=Monday ... 6=Sunday)
WEEKDAY_CHARS = ('月', '火', '水', '木', '金', '土', '日')


def japan_now() -> datetime:
    """
    Get current Japan datetime (UTC+9).

    Returns:
        Current datetime with Japan timezone (UTC+9)
    """
    return datetime.now(JAPAN_TZ)


def ensure_japan(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Ensure a datetime is timezone-aware with Japan timezone.

    Args:
        dt: Datetime to ensure is Japan timezone-aware

    Returns:
        Timezone-aware datetime in Japan timezone, or None if input is None
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        # If naive, assume it's already in Japan time and localize it
        return dt.replace(tzinfo=JAPAN_TZ)
    else:
        return dt.astimezone(JAPAN_TZ)


def parse_sheet_date(date_str: str) -> date:
    """
    Parse a date string in yyyy/M/d or yyyy-MM-dd format.

    Accepts both separators and single- or double-digit months/days:
    "2026/1/27", "2026/01/27", "2026-1-27", "2026-01-27".

    Args:
        date_str: Date string

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    if not date_str or not date_str.strip():
        raise ValueError("Date string cannot be empty")

    date_str = date_str.strip()

    if '/' in date_str:
        parts = date_str.split('/')
    elif '-' in date_str:
        parts = date_str.split('-')
    else:
        raise ValueError(f"Invalid date format (expected yyyy/M/d): {date_str}")

    if len(parts) != 3 or not all(part.isdigit() for part in parts):
        raise ValueError(f"Invalid date format (expected yyyy/M/d): {date_str}")

    try:
        return date(int(parts[0]), int(parts[1]), int(parts[2]))
    except ValueError as e:
        raise ValueError(f"Invalid date format (expected yyyy/M/d): {date_str}") from e


def format_sheet_date(value: date) -> str:
    """Format a date as "yyyy/M/d" (no zero padding)."""
    return f"{value.year}/{value.month}/{value.day}"


def parse_time_string(time_str: str) -> time:
    """
    Parse a time-of-day string.

    Accepts "H:mm", "HH:mm" and "H:mm:ss"; any seconds component is dropped.

    Raises:
        ValueError: If time string cannot be parsed
    """
    if not time_str or not time_str.strip():
        raise ValueError("Time string cannot be empty")

    parts = time_str.strip().split(':')
    if len(parts) not in (2, 3) or not all(part.isdigit() for part in parts):
        raise ValueError(f"Invalid time format (expected H:mm): {time_str}")
    if len(parts[1]) != 2:
        raise ValueError(f"Invalid time format (expected H:mm): {time_str}")

    try:
        return time(int(parts[0]), int(parts[1]))
    except ValueError as e:
        raise ValueError(f"Invalid time format (expected H:mm): {time_str}") from e


def format_sheet_time(value: time) -> str:
    """Format a time as "H:mm" (unpadded hour, zero-padded minute)."""
    return f"{value.hour}:{value.minute:02d}"


def normalize_time_string(time_str: str) -> str:
    """
    Normalize a time cell to "H:mm".

    "09:30" and "9:30:00" both become "9:30". Values that are not times are
    returned stripped but otherwise unchanged.
    """
    try:
        return format_sheet_time(parse_time_string(time_str))
    except ValueError:
        return (time_str or '').strip()


def time_to_minutes(value: time) -> int:
    """Minutes since midnight."""
    return value.hour * 60 + value.minute


def minutes_to_time(minutes: int) -> time:
    """Inverse of time_to_minutes for values within one day."""
    return time(minutes // 60, minutes % 60)


def weekday_char(value: date) -> str:
    """Return the Japanese weekday glyph (日, 月, ...) for a date."""
    return WEEKDAY_CHARS[value.weekday()]


def format_date_with_weekday(value: date) -> str:
    """
    Format a date for user-facing messages.

    Example: "2026/1/27（火）"
    """
    return f"{format_sheet_date(value)}（{weekday_char(value)}）"

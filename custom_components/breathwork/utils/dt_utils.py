# File: utils/dt_utils.py
"""Date and time utilities for Breathwork.

Pure Python date/time functions with ZERO Home Assistant dependencies.
All functions here can be unit tested without Home Assistant mocking.
Uses standard library: datetime, zoneinfo, plus dateutil for ISO parsing.

Unlock and streak arithmetic works on calendar days: an instant is converted
to the configured local timezone and its time-of-day is discarded.

Functions:
    - as_utc / as_local: Timezone conversion
    - start_of_local_day: Midnight of the local day containing an instant
    - dt_parse: Normalize str/date/datetime inputs to an aware datetime
    - dt_to_iso: Serialize an instant as a UTC ISO string
    - calendar_day: Local calendar date of an instant
    - calendar_days_between: Whole calendar days between two instants
    - month_key: "YYYY-MM" key of an instant
"""

from __future__ import annotations

from datetime import UTC, date, datetime
import logging
from zoneinfo import ZoneInfo

from dateutil import parser as dateutil_parser

_LOGGER = logging.getLogger(__name__)

# Default timezone - can be overridden by caller
DEFAULT_TIME_ZONE: ZoneInfo = ZoneInfo("UTC")

MONTH_KEY_FORMAT = "%Y-%m"


# ==============================================================================
# Timezone Configuration
# ==============================================================================


def set_default_timezone(tz: ZoneInfo) -> None:
    """Set the default timezone for all dt_utils functions.

    Call this during integration setup to configure the user's timezone.

    Args:
        tz: ZoneInfo object representing the default timezone
    """
    global DEFAULT_TIME_ZONE  # noqa: PLW0603
    DEFAULT_TIME_ZONE = tz


def get_default_timezone() -> ZoneInfo:
    """Get the current default timezone."""
    return DEFAULT_TIME_ZONE


# ==============================================================================
# Timezone Conversion
# ==============================================================================


def as_utc(dt_obj: datetime) -> datetime:
    """Convert a datetime to UTC timezone.

    Naive datetimes are assumed to be in the default timezone.
    """
    if dt_obj.tzinfo is None:
        dt_obj = dt_obj.replace(tzinfo=DEFAULT_TIME_ZONE)
    return dt_obj.astimezone(UTC)


def as_local(dt_obj: datetime, tz: ZoneInfo | None = None) -> datetime:
    """Convert a datetime to local timezone.

    Args:
        dt_obj: Datetime object (naive values are assumed to be UTC)
        tz: Optional timezone override. Uses DEFAULT_TIME_ZONE if not provided.

    Returns:
        Datetime in local timezone
    """
    tz_info = tz or DEFAULT_TIME_ZONE
    if dt_obj.tzinfo is None:
        dt_obj = dt_obj.replace(tzinfo=UTC)
    return dt_obj.astimezone(tz_info)


def start_of_local_day(dt_obj: datetime, tz: ZoneInfo | None = None) -> datetime:
    """Get the start of day (00:00:00) for a datetime in local timezone.

    Args:
        dt_obj: Datetime object (can be in any timezone)
        tz: Optional timezone override. Uses DEFAULT_TIME_ZONE if not provided.

    Returns:
        Datetime at 00:00:00 in local timezone (timezone-aware)
    """
    local_dt = as_local(dt_obj, tz)
    return local_dt.replace(hour=0, minute=0, second=0, microsecond=0)


# ==============================================================================
# Parsing / Formatting
# ==============================================================================


def dt_parse(dt_input: str | date | datetime | None) -> datetime | None:
    """Normalize a string, date or datetime into a timezone-aware datetime.

    Naive values are interpreted as UTC, which is how every stored instant is
    written. A bare date becomes midnight UTC of that date.

    Returns:
        Aware datetime, or None if the input is empty or cannot be parsed.

    Example:
        "2024-01-01T08:30:00.000Z" → 2024-01-01 08:30 UTC
        "not a date" → None
    """
    if not dt_input:
        return None

    result: datetime
    if isinstance(dt_input, datetime):
        result = dt_input
    elif isinstance(dt_input, date):
        result = datetime.combine(dt_input, datetime.min.time())
    elif isinstance(dt_input, str):
        try:
            # isoparse accepts every ISO 8601 variant other clients write
            # ("Z" suffix, milliseconds, basic format)
            result = dateutil_parser.isoparse(dt_input)
        except (ValueError, OverflowError):
            _LOGGER.debug("Unparseable datetime string: %s", dt_input)
            return None
    else:
        return None

    if result.tzinfo is None:
        result = result.replace(tzinfo=UTC)
    return result


def dt_to_iso(dt_obj: datetime) -> str:
    """Serialize an instant as an ISO 8601 string in UTC."""
    return as_utc(dt_obj).isoformat()


# ==============================================================================
# Calendar Day Arithmetic
# ==============================================================================


def calendar_day(
    dt_input: str | date | datetime | None, tz: ZoneInfo | None = None
) -> date | None:
    """Return the local calendar date of an instant (time-of-day discarded).

    Example:
        "2024-03-10T23:30:00+00:00" in Europe/Berlin → date(2024, 3, 11)
    """
    parsed = dt_parse(dt_input)
    if parsed is None:
        return None
    return start_of_local_day(parsed, tz).date()


def calendar_days_between(
    start: str | date | datetime | None,
    end: str | date | datetime | None,
    tz: ZoneInfo | None = None,
) -> int | None:
    """Return the number of calendar-day rollovers from start to end.

    Two instants on the same local date are 0 days apart regardless of the
    hours between them; 23:59 and 00:01 the next morning are 1 day apart.

    Returns:
        Signed day difference, or None if either input cannot be parsed.
    """
    start_day = calendar_day(start, tz)
    end_day = calendar_day(end, tz)
    if start_day is None or end_day is None:
        return None
    return (end_day - start_day).days


def month_key(dt_input: str | date | datetime, tz: ZoneInfo | None = None) -> str:
    """Return the "YYYY-MM" key of the local month containing an instant.

    Raises:
        ValueError: If the input cannot be parsed.
    """
    local_day = calendar_day(dt_input, tz)
    if local_day is None:
        raise ValueError(f"Cannot derive month key from {dt_input!r}")
    return local_day.strftime(MONTH_KEY_FORMAT)

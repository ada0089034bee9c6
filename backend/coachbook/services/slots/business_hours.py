# backend/coachbook/services/slots/business_hours.py
"""
Effective open/close window for a calendar day.

Precedence:
  1. override.is_blocked          → closed
  2. override custom start/end    → those times (each falls back to the weekday's)
  3. weekday hours                → closed if the weekday is marked closed
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timezone

from .config import BUSINESS_TZ, time_str_to_minutes

DAY_KEYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]


@dataclass(frozen=True)
class DayWindow:
    """Open interval in minutes since midnight, [open_min, close_min)."""
    open_min: int
    close_min: int


def weekday_key(day: date) -> str:
    """
    Weekday name for a calendar day.

    Anchored at 12:00 UTC and converted to the business timezone, so a
    date-only value can never slide into the neighbouring day.
    """
    anchor = datetime.combine(day, time(12, 0), tzinfo=timezone.utc)
    return DAY_KEYS[anchor.astimezone(BUSINESS_TZ).weekday()]


def resolve_day_window(
    business_hours: dict,
    day: date,
    override=None,
) -> DayWindow | None:
    """
    Resolve the open window for `day`.

    Returns None when the day is closed (blocked override, closed weekday
    without override, or an empty window).
    """
    if override is not None and override.is_blocked:
        return None

    day_hours = business_hours.get(weekday_key(day))

    if override is None:
        if day_hours is None or day_hours.closed:
            return None
        open_str, close_str = day_hours.open, day_hours.close
    else:
        open_str = override.start_time or (day_hours.open if day_hours else None)
        close_str = override.end_time or (day_hours.close if day_hours else None)
        if not open_str or not close_str:
            return None

    open_min = time_str_to_minutes(open_str)
    close_min = time_str_to_minutes(close_str)
    if open_min >= close_min:
        return None
    return DayWindow(open_min, close_min)


def is_day_open(business_hours: dict, day: date, override=None) -> bool:
    """
    Cheap date-level check used for the date picker.

    A blocked override closes the day; any other override opens it, even
    on a weekday configured closed.
    """
    if override is not None:
        return not override.is_blocked
    day_hours = business_hours.get(weekday_key(day))
    return day_hours is not None and not day_hours.closed

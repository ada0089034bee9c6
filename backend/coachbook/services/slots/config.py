# backend/coachbook/services/slots/config.py
"""
Booking configuration for slots calculation.

Everything here is static: the fixed slot grid, the business timezone,
session types and the "HH:MM" / calendar-day conversions shared by the
resolver, the generator and the policy engine.
"""

import re
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from functools import lru_cache
from zoneinfo import ZoneInfo

TIMEZONE_NAME = "Africa/Johannesburg"  # SAST, UTC+2, no DST
BUSINESS_TZ = ZoneInfo(TIMEZONE_NAME)

MINUTES_PER_DAY = 24 * 60

_TIME_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")
_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def time_str_to_minutes(value: str) -> int:
    """ "09:30" → 570 """
    match = _TIME_RE.match(value or "")
    if not match:
        raise ValueError(f"Invalid time {value!r}, expected HH:MM")
    return int(match.group(1)) * 60 + int(match.group(2))


def minutes_to_time_str(minutes: int) -> str:
    """ 570 → "09:30" """
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def parse_date_str(value: str) -> date:
    """Parse a "yyyy-MM-dd" calendar day."""
    if not isinstance(value, str) or not _DATE_RE.match(value):
        raise ValueError(f"Invalid date {value!r}, expected yyyy-MM-dd")
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValueError(f"Invalid date {value!r}, expected yyyy-MM-dd")


def to_calendar_day(value: date | datetime | str) -> date:
    """Normalize a stored calendar day (date, UTC-midnight datetime or string)."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    return parse_date_str(value[:10])


def as_utc(value: datetime) -> datetime:
    """Naive datetimes coming back from the database are UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def zoned_to_utc(day: date, time_str: str) -> datetime:
    """Wall-clock time in the business timezone → absolute UTC instant."""
    minutes = time_str_to_minutes(time_str)
    local = datetime.combine(day, time(minutes // 60, minutes % 60), tzinfo=BUSINESS_TZ)
    return local.astimezone(timezone.utc)


def utc_to_zoned(instant: datetime) -> datetime:
    return as_utc(instant).astimezone(BUSINESS_TZ)


def business_today(now: datetime) -> date:
    """Calendar day in the business timezone at instant `now`."""
    return utc_to_zoned(now).date()


def business_day_bounds_utc(day: date) -> tuple[datetime, datetime]:
    """Precise UTC instants for [00:00, next 00:00) of a business-timezone day."""
    start = datetime.combine(day, time.min, tzinfo=BUSINESS_TZ)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=BUSINESS_TZ)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


@dataclass(frozen=True)
class SessionTypeConfig:
    type: str
    label: str
    description: str
    duration_minutes: int
    is_free: bool = False


SESSION_TYPES: tuple[SessionTypeConfig, ...] = (
    SessionTypeConfig(
        type="free_consultation",
        label="Free Consultation",
        description="A no-obligation 30-minute introductory call.",
        duration_minutes=30,
        is_free=True,
    ),
    SessionTypeConfig(
        type="individual",
        label="1:1 Individual Session",
        description="A full 60-minute coaching or counselling session.",
        duration_minutes=60,
    ),
    SessionTypeConfig(
        type="couples",
        label="Couples Session",
        description="A 60-minute couples coaching or counselling session.",
        duration_minutes=60,
    ),
)


def get_session_type_config(session_type: str) -> SessionTypeConfig:
    for config in SESSION_TYPES:
        if config.type == session_type:
            return config
    raise ValueError(f"Unknown session type: {session_type}")


@dataclass(frozen=True)
class BookingConfig:
    """
    Configuration for booking/slots system.

    Attributes:
        slot_starts: Fixed clock starts offered every day, whatever the
            session length. Must be ascending "HH:MM" strings.
    """
    slot_starts: tuple[str, ...] = field(
        default=("09:00", "10:15", "11:30", "13:00", "14:15", "15:30")
    )

    def __post_init__(self):
        """Validate configuration."""
        minutes = [time_str_to_minutes(s) for s in self.slot_starts]
        if minutes != sorted(set(minutes)):
            raise ValueError(f"slot_starts must be unique and ascending, got {self.slot_starts}")

    @property
    def slot_start_minutes(self) -> tuple[int, ...]:
        return tuple(time_str_to_minutes(s) for s in self.slot_starts)


@lru_cache
def get_booking_config() -> BookingConfig:
    """Get booking configuration (singleton)."""
    return BookingConfig()

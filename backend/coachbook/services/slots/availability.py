# backend/coachbook/services/slots/availability.py
"""
Bookable slots for a day and bookable dates in the booking horizon.

Takes into account:
- Weekly business hours and per-date overrides
- The fixed slot grid and the session duration
- Minimum notice (in the business timezone)
- External calendar busy time, padded by the buffer
- Existing pending/confirmed bookings, padded by the buffer

The external calendar is optional: when it errors or times out the day is
computed without it, and existing bookings still prevent double booking.
"""

import asyncio
import logging
import math
import re
from datetime import date, datetime, time, timedelta, timezone
from typing import Callable

from ...models.tables import ACTIVE_BOOKING_STATUSES
from .business_hours import is_day_open, resolve_day_window
from .busy_cache import BusyIntervalCache
from .calculator import (
    BusyInterval,
    TimeSlot,
    expand_by_buffer,
    generate_slots,
    ranges_overlap,
)
from .config import (
    BUSINESS_TZ,
    MINUTES_PER_DAY,
    BookingConfig,
    SessionTypeConfig,
    business_day_bounds_utc,
    business_today,
    get_booking_config,
    get_session_type_config,
    parse_date_str,
    time_str_to_minutes,
    to_calendar_day,
    zoned_to_utc,
)

logger = logging.getLogger(__name__)

DEFAULT_CALENDAR_TIMEOUT = 5.0

_FRACTION_RE = re.compile(r"\.\d+")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_instant(value: str) -> datetime:
    """ISO 8601 instant → aware UTC datetime. Naive values are read as UTC."""
    cleaned = _FRACTION_RE.sub("", value.strip())
    if cleaned.endswith("Z"):
        cleaned = cleaned[:-1] + "+00:00"
    parsed = datetime.fromisoformat(cleaned)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def busy_interval_minutes(interval: BusyInterval, day: date) -> tuple[int, int] | None:
    """
    Minutes-of-day range that `interval` covers on business day `day`.

    Clipped to [00:00, 24:00); None when the interval misses the day.
    """
    day_start = datetime.combine(day, time.min, tzinfo=BUSINESS_TZ)
    start_min = math.floor((parse_instant(interval.start) - day_start).total_seconds() / 60)
    end_min = math.ceil((parse_instant(interval.end) - day_start).total_seconds() / 60)

    start_min = max(0, start_min)
    end_min = min(MINUTES_PER_DAY, end_min)
    if end_min <= start_min:
        return None
    return start_min, end_min


class AvailabilityEngine:
    """
    Availability over the booking stores and the external calendar.

    Store and calendar calls are synchronous; they run in worker threads so
    the calendar fetch and the booking query for a day overlap.
    """

    def __init__(
        self,
        settings_store,
        override_store,
        booking_store,
        calendar=None,
        busy_cache: BusyIntervalCache | None = None,
        config: BookingConfig | None = None,
        calendar_timeout: float = DEFAULT_CALENDAR_TIMEOUT,
        clock: Callable[[], datetime] | None = None,
    ):
        self.settings_store = settings_store
        self.override_store = override_store
        self.booking_store = booking_store
        self.calendar = calendar
        self.busy_cache = busy_cache
        self.config = config or get_booking_config()
        self.calendar_timeout = calendar_timeout
        self.clock = clock or _utcnow

    # ── Slots ────────────────────────────────────────────────────────────

    async def get_available_slots(
        self,
        date_str: str | date,
        session_type: SessionTypeConfig | str,
    ) -> list[TimeSlot]:
        """
        Bookable slots for a "yyyy-MM-dd" day, ascending.

        Raises:
            ValueError: Malformed date or unknown session type
        """
        day = date_str if isinstance(date_str, date) else parse_date_str(date_str)
        if isinstance(session_type, str):
            session_type = get_session_type_config(session_type)

        # Step 1: Effective hours for the day
        settings = await asyncio.to_thread(self.settings_store.get)
        override = await asyncio.to_thread(self.override_store.find_override, day)
        window = resolve_day_window(settings.business_hours, day, override)
        if window is None:
            return []

        # Step 2: Candidates on the fixed grid
        candidates = generate_slots(window, session_type.duration_minutes, self.config)
        if not candidates:
            return []

        # Step 3: Busy time (external calendar) and own bookings, concurrently
        start_utc, end_utc = business_day_bounds_utc(day)
        busy, bookings = await asyncio.gather(
            self._fetch_busy(day, start_utc, end_utc),
            asyncio.to_thread(
                self.booking_store.find_bookings_on_date, day, ACTIVE_BOOKING_STATUSES
            ),
        )

        buffer = settings.booking_buffer_minutes
        blocked: list[tuple[int, int]] = []
        for interval in busy:
            try:
                minutes = busy_interval_minutes(interval, day)
            except ValueError:
                logger.warning(f"Skipping unreadable busy interval {interval}")
                continue
            if minutes is not None:
                blocked.append(expand_by_buffer(*minutes, buffer))
        for booking in bookings:
            blocked.append(expand_by_buffer(
                time_str_to_minutes(booking.start_time),
                time_str_to_minutes(booking.end_time),
                buffer,
            ))

        # Step 4: Filter
        now = self.clock()
        min_notice = timedelta(hours=settings.booking_min_notice_hours)
        available = []
        for slot in candidates:
            if zoned_to_utc(day, slot.start) - now < min_notice:
                continue
            if any(ranges_overlap(slot.start_min, slot.end_min, b0, b1) for b0, b1 in blocked):
                continue
            available.append(slot)

        return available

    async def _fetch_busy(
        self,
        day: date,
        start_utc: datetime,
        end_utc: datetime,
    ) -> list[BusyInterval]:
        if self.calendar is None:
            return []
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self._load_busy, day, start_utc, end_utc),
                timeout=self.calendar_timeout,
            )
        except Exception as e:
            # Fail open: own bookings are still checked
            logger.warning(f"Free/busy unavailable for {day}, continuing without it: {e!r}")
            return []

    def _load_busy(self, day: date, start_utc: datetime, end_utc: datetime) -> list[BusyInterval]:
        if self.busy_cache is not None:
            cached = self.busy_cache.get(day)
            if cached is not None:
                return cached

        intervals = self.calendar.get_free_busy(start_utc, end_utc)

        if self.busy_cache is not None:
            self.busy_cache.store(day, intervals)
        return intervals

    # ── Dates ────────────────────────────────────────────────────────────

    async def get_available_dates(self) -> list[str]:
        """
        Days in the horizon that could have slots ("yyyy-MM-dd").

        Only overrides and weekday hours are consulted; busy time and
        bookings are left to get_available_slots.
        """
        settings = await asyncio.to_thread(self.settings_store.get)
        if not settings.booking_enabled:
            return []

        start = business_today(self.clock()) + timedelta(days=1)
        end = start + timedelta(days=settings.booking_max_advance_days)

        overrides = await asyncio.to_thread(self.override_store.find_overrides_in_range, start, end)
        by_day = {to_calendar_day(o.date): o for o in overrides}

        dates = []
        current = start
        while current <= end:
            if is_day_open(settings.business_hours, current, by_day.get(current)):
                dates.append(current.isoformat())
            current += timedelta(days=1)
        return dates

from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import pytest

from coachbook.schemas.site_settings import BookingSettings
from coachbook.services.slots.availability import (
    AvailabilityEngine,
    busy_interval_minutes,
    parse_instant,
)
from coachbook.services.slots.calculator import BusyInterval
from coachbook.services.slots.config import zoned_to_utc

from .conftest import NOW, SATURDAY, THURSDAY, WEDNESDAY
from .fakes import (
    FakeBookingStore,
    FakeCalendar,
    FakeOverrideStore,
    FakeSettingsStore,
    booked,
    override,
)

FULL_GRID = ["09:00", "10:15", "11:30", "13:00", "14:15", "15:30"]


def make_engine(
    settings=None,
    overrides=None,
    bookings=None,
    calendar=None,
    now=NOW,
    **kwargs,
) -> AvailabilityEngine:
    return AvailabilityEngine(
        settings_store=FakeSettingsStore(settings),
        override_store=FakeOverrideStore(overrides),
        booking_store=FakeBookingStore(bookings),
        calendar=calendar,
        clock=lambda: now,
        **kwargs,
    )


def starts(slots):
    return [s.start for s in slots]


class TestParsing:
    def test_parse_instant_handles_z_and_fractions(self):
        parsed = parse_instant("2026-03-04T08:00:00.123Z")

        assert parsed == datetime(2026, 3, 4, 8, 0, tzinfo=timezone.utc)

    def test_naive_instant_read_as_utc(self):
        assert parse_instant("2026-03-04T08:00:00") == datetime(2026, 3, 4, 8, 0, tzinfo=timezone.utc)

    def test_busy_interval_clipped_to_day(self):
        # 20:00 SAST the evening before until 10:00 SAST
        interval = BusyInterval("2026-03-03T18:00:00Z", "2026-03-04T08:00:00Z")

        assert busy_interval_minutes(interval, WEDNESDAY) == (0, 600)

    def test_busy_interval_outside_day(self):
        interval = BusyInterval("2026-03-05T08:00:00Z", "2026-03-05T09:00:00Z")

        assert busy_interval_minutes(interval, WEDNESDAY) is None

    def test_busy_interval_rounds_outwards(self):
        interval = BusyInterval("2026-03-04T08:00:30Z", "2026-03-04T08:59:30Z")

        assert busy_interval_minutes(interval, WEDNESDAY) == (600, 660)


class TestAvailableSlots:
    async def test_open_day_offers_whole_grid(self):
        engine = make_engine()

        slots = await engine.get_available_slots("2026-03-04", "free_consultation")

        assert [(s.start, s.end) for s in slots] == [
            ("09:00", "09:30"),
            ("10:15", "10:45"),
            ("11:30", "12:00"),
            ("13:00", "13:30"),
            ("14:15", "14:45"),
            ("15:30", "16:00"),
        ]

    async def test_sixty_minute_session(self):
        slots = await make_engine().get_available_slots("2026-03-04", "individual")

        assert starts(slots) == FULL_GRID
        assert slots[-1].end == "16:30"

    async def test_closed_weekday(self):
        assert await make_engine().get_available_slots("2026-03-07", "individual") == []

    async def test_blocked_override(self):
        engine = make_engine(overrides=[override(WEDNESDAY, is_blocked=True)])

        assert await engine.get_available_slots("2026-03-04", "individual") == []

    async def test_override_opens_closed_weekday(self):
        engine = make_engine(overrides=[override(SATURDAY, start_time="10:00", end_time="12:00")])

        assert starts(await engine.get_available_slots("2026-03-07", "individual")) == ["10:15"]
        assert starts(await engine.get_available_slots("2026-03-07", "free_consultation")) == [
            "10:15",
            "11:30",
        ]

    async def test_existing_booking_blocks_its_slot(self):
        engine = make_engine(bookings=[booked(WEDNESDAY, "10:15", "11:15")])

        slots = await engine.get_available_slots("2026-03-04", "individual")

        assert starts(slots) == ["09:00", "11:30", "13:00", "14:15", "15:30"]

    async def test_cancelled_booking_does_not_block(self):
        engine = make_engine(bookings=[booked(WEDNESDAY, "10:15", "11:15", status="cancelled")])

        assert starts(await engine.get_available_slots("2026-03-04", "individual")) == FULL_GRID

    async def test_adjacent_booking_allowed_without_buffer(self):
        settings = BookingSettings(booking_enabled=True, booking_buffer_minutes=0)
        engine = make_engine(settings=settings, bookings=[booked(WEDNESDAY, "09:00", "10:15")])

        slots = await engine.get_available_slots("2026-03-04", "individual")

        assert "10:15" in starts(slots)

    async def test_adjacent_booking_blocked_by_buffer(self):
        settings = BookingSettings(booking_enabled=True, booking_buffer_minutes=15)
        engine = make_engine(settings=settings, bookings=[booked(WEDNESDAY, "09:00", "10:15")])

        slots = await engine.get_available_slots("2026-03-04", "individual")

        assert "10:15" not in starts(slots)

    async def test_calendar_busy_time_padded_by_buffer(self):
        # 10:00-10:50 SAST
        calendar = FakeCalendar(busy=[("2026-03-04T08:00:00Z", "2026-03-04T08:50:00Z")])

        no_buffer = make_engine(
            settings=BookingSettings(booking_enabled=True, booking_buffer_minutes=0),
            calendar=calendar,
        )
        with_buffer = make_engine(
            settings=BookingSettings(booking_enabled=True, booking_buffer_minutes=15),
            calendar=calendar,
        )

        assert starts(await no_buffer.get_available_slots("2026-03-04", "individual")) == [
            "09:00", "11:30", "13:00", "14:15", "15:30",
        ]
        assert starts(await with_buffer.get_available_slots("2026-03-04", "individual")) == [
            "11:30", "13:00", "14:15", "15:30",
        ]

    async def test_calendar_queried_for_precise_day_bounds(self):
        calendar = FakeCalendar()

        await make_engine(calendar=calendar).get_available_slots("2026-03-04", "individual")

        assert calendar.free_busy_calls == [(
            datetime(2026, 3, 3, 22, 0, tzinfo=timezone.utc),
            datetime(2026, 3, 4, 22, 0, tzinfo=timezone.utc),
        )]

    async def test_min_notice_excludes_close_slots(self):
        now = zoned_to_utc(WEDNESDAY, "09:00") - timedelta(hours=23)

        slots = await make_engine(now=now).get_available_slots("2026-03-04", "individual")

        assert starts(slots) == FULL_GRID[1:]

    async def test_min_notice_boundary_is_inclusive(self):
        now = zoned_to_utc(WEDNESDAY, "09:00") - timedelta(hours=24)

        slots = await make_engine(now=now).get_available_slots("2026-03-04", "individual")

        assert starts(slots) == FULL_GRID

    async def test_past_day_has_no_slots(self):
        now = zoned_to_utc(THURSDAY, "08:00")

        assert await make_engine(now=now).get_available_slots("2026-03-04", "individual") == []

    async def test_calendar_failure_fails_open(self):
        calendar = FakeCalendar(error=RuntimeError("calendar down"))
        engine = make_engine(calendar=calendar, bookings=[booked(WEDNESDAY, "13:00", "14:00")])

        slots = await engine.get_available_slots("2026-03-04", "individual")

        assert starts(slots) == ["09:00", "10:15", "11:30", "14:15", "15:30"]

    async def test_calendar_timeout_fails_open(self):
        calendar = FakeCalendar(
            busy=[("2026-03-04T07:00:00Z", "2026-03-04T15:00:00Z")],
            delay=0.5,
        )
        engine = make_engine(calendar=calendar, calendar_timeout=0.05)

        assert starts(await engine.get_available_slots("2026-03-04", "individual")) == FULL_GRID

    async def test_cached_busy_time_skips_calendar(self):
        calendar = FakeCalendar()
        cache = Mock()
        cache.get.return_value = [BusyInterval("2026-03-04T07:00:00Z", "2026-03-04T08:00:00Z")]
        engine = make_engine(calendar=calendar, busy_cache=cache)

        slots = await engine.get_available_slots("2026-03-04", "individual")

        assert "09:00" not in starts(slots)
        assert calendar.free_busy_calls == []
        cache.store.assert_not_called()

    async def test_cache_miss_stores_calendar_result(self):
        calendar = FakeCalendar(busy=[("2026-03-04T07:00:00Z", "2026-03-04T08:00:00Z")])
        cache = Mock()
        cache.get.return_value = None
        engine = make_engine(calendar=calendar, busy_cache=cache)

        await engine.get_available_slots("2026-03-04", "individual")

        cache.store.assert_called_once_with(WEDNESDAY, calendar.busy)

    async def test_unknown_session_type(self):
        with pytest.raises(ValueError, match="Unknown session type"):
            await make_engine().get_available_slots("2026-03-04", "group")

    async def test_malformed_date(self):
        with pytest.raises(ValueError):
            await make_engine().get_available_slots("04-03-2026", "individual")


class TestAvailableDates:
    async def test_booking_disabled(self):
        engine = make_engine(settings=BookingSettings(booking_enabled=False))

        assert await engine.get_available_dates() == []

    async def test_horizon_starts_tomorrow_and_is_inclusive(self):
        settings = BookingSettings(booking_enabled=True, booking_max_advance_days=6)

        dates = await make_engine(settings=settings).get_available_dates()

        # Tue 3 March .. Mon 9 March, weekend closed
        assert dates == ["2026-03-03", "2026-03-04", "2026-03-05", "2026-03-06", "2026-03-09"]

    async def test_overrides_block_and_open_days(self):
        settings = BookingSettings(booking_enabled=True, booking_max_advance_days=6)
        engine = make_engine(
            settings=settings,
            overrides=[
                override(THURSDAY, is_blocked=True),
                override(SATURDAY, start_time="10:00", end_time="12:00"),
            ],
        )

        dates = await engine.get_available_dates()

        assert dates == ["2026-03-03", "2026-03-04", "2026-03-06", "2026-03-07", "2026-03-09"]

    async def test_today_uses_business_timezone(self):
        # 00:30 SAST on Tuesday 3 March, still Monday in UTC
        now = datetime(2026, 3, 2, 22, 30, tzinfo=timezone.utc)
        settings = BookingSettings(booking_enabled=True, booking_max_advance_days=2)

        dates = await make_engine(settings=settings, now=now).get_available_dates()

        assert dates == ["2026-03-04", "2026-03-05", "2026-03-06"]

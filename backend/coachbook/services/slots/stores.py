# backend/coachbook/services/slots/stores.py
"""
Database adapters read by the availability engine.

All methods are synchronous (SQLAlchemy Session); the engine calls them
through asyncio.to_thread.
"""

import json
import logging
from datetime import date, datetime, timezone

from pydantic import ValidationError
from sqlalchemy.orm import Session

from ...models.tables import AvailabilityOverrides, Bookings, SiteSettings
from ...schemas.site_settings import (
    DEFAULT_BUSINESS_HOURS,
    BookingSettings,
    BusinessHoursDay,
)

logger = logging.getLogger(__name__)


def parse_business_hours(raw: str | dict | None) -> dict[str, BusinessHoursDay]:
    """
    Parse stored weekly hours. Missing days come from the defaults; an
    unreadable value falls back to the full default week.
    """
    if not raw:
        return dict(DEFAULT_BUSINESS_HOURS)

    try:
        data = json.loads(raw) if isinstance(raw, str) else raw
        if not isinstance(data, dict):
            raise ValueError("business_hours must be an object")
        hours = dict(DEFAULT_BUSINESS_HOURS)
        for key, value in data.items():
            if key in hours:
                hours[key] = BusinessHoursDay.model_validate(value)
        return hours
    except (ValueError, ValidationError) as e:
        logger.warning(f"Invalid business_hours setting, using defaults: {e}")
        return dict(DEFAULT_BUSINESS_HOURS)


class SiteSettingsStore:
    def __init__(self, db: Session):
        self.db = db

    def get(self) -> BookingSettings:
        row = self.db.query(SiteSettings).order_by(SiteSettings.id).first()
        if row is None:
            return BookingSettings()

        return BookingSettings(
            booking_enabled=bool(row.booking_enabled),
            booking_max_advance_days=row.booking_max_advance_days,
            booking_min_notice_hours=row.booking_min_notice_hours,
            booking_buffer_minutes=row.booking_buffer_minutes,
            business_hours=parse_business_hours(row.business_hours),
        )


class OverrideStore:
    def __init__(self, db: Session):
        self.db = db

    def find_override(self, day: date) -> AvailabilityOverrides | None:
        return (
            self.db.query(AvailabilityOverrides)
            .filter(AvailabilityOverrides.date == day)
            .first()
        )

    def find_overrides_in_range(self, start: date, end: date) -> list[AvailabilityOverrides]:
        """Overrides with start <= date <= end."""
        return (
            self.db.query(AvailabilityOverrides)
            .filter(
                AvailabilityOverrides.date >= start,
                AvailabilityOverrides.date <= end,
            )
            .order_by(AvailabilityOverrides.date)
            .all()
        )


class BookingStore:
    def __init__(self, db: Session):
        self.db = db

    def get(self, booking_id: int) -> Bookings | None:
        return self.db.get(Bookings, booking_id)

    def find_bookings_on_date(self, day: date, statuses) -> list[Bookings]:
        return (
            self.db.query(Bookings)
            .filter(
                Bookings.date == day,
                Bookings.status.in_(list(statuses)),
            )
            .order_by(Bookings.start_time)
            .all()
        )

    def update_booking(self, booking_id: int, patch: dict) -> Bookings:
        booking = self.get(booking_id)
        if booking is None:
            raise LookupError(f"Booking {booking_id} not found")

        for field, value in patch.items():
            if not hasattr(Bookings, field):
                raise ValueError(f"Unknown booking field: {field}")
            setattr(booking, field, value)
        booking.updated_at = datetime.now(timezone.utc).replace(tzinfo=None)

        self.db.commit()
        self.db.refresh(booking)
        return booking

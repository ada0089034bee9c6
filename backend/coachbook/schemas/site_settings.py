# backend/coachbook/schemas/site_settings.py

import re

from pydantic import BaseModel, field_validator, model_validator

_TIME_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")

WEEKDAY_KEYS = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)


class BusinessHoursDay(BaseModel):
    open: str
    close: str
    closed: bool = False

    model_config = {"frozen": True}

    @field_validator("open", "close")
    @classmethod
    def _valid_time(cls, value: str) -> str:
        if not _TIME_RE.match(value):
            raise ValueError(f"invalid time {value!r}, expected HH:MM")
        return value

    @model_validator(mode="after")
    def _open_before_close(self):
        if not self.closed and self.open >= self.close:  # zero-padded HH:MM sorts chronologically
            raise ValueError(f"open ({self.open}) must be before close ({self.close})")
        return self


DEFAULT_BUSINESS_HOURS: dict[str, BusinessHoursDay] = {
    "monday": BusinessHoursDay(open="09:00", close="17:00"),
    "tuesday": BusinessHoursDay(open="09:00", close="17:00"),
    "wednesday": BusinessHoursDay(open="09:00", close="17:00"),
    "thursday": BusinessHoursDay(open="09:00", close="17:00"),
    "friday": BusinessHoursDay(open="09:00", close="17:00"),
    "saturday": BusinessHoursDay(open="09:00", close="13:00", closed=True),
    "sunday": BusinessHoursDay(open="09:00", close="13:00", closed=True),
}


class BookingSettings(BaseModel):
    """Booking-related site settings, with the defaults used when none are stored."""
    booking_enabled: bool = False
    booking_max_advance_days: int = 30
    booking_min_notice_hours: int = 24
    booking_buffer_minutes: int = 15
    business_hours: dict[str, BusinessHoursDay] = dict(DEFAULT_BUSINESS_HOURS)

    model_config = {"from_attributes": True}

# backend/coachbook/schemas/availability_overrides.py

from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, field_validator, model_validator

from .site_settings import _TIME_RE


class AvailabilityOverrideCreate(BaseModel):
    date: date
    is_blocked: bool = False
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    reason: Optional[str] = None

    model_config = {"from_attributes": True}

    @field_validator("start_time", "end_time")
    @classmethod
    def _valid_time(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not _TIME_RE.match(value):
            raise ValueError(f"invalid time {value!r}, expected HH:MM")
        return value

    @model_validator(mode="after")
    def _start_before_end(self):
        if self.start_time and self.end_time and self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        return self


class AvailabilityOverrideRead(BaseModel):
    id: int

    date: date
    is_blocked: bool
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    reason: Optional[str] = None

    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}

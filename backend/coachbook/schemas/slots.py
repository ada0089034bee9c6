"""
Pydantic schemas for slots API.
"""

from pydantic import BaseModel


class TimeSlotRead(BaseModel):
    """One bookable slot, "HH:MM" in SAST."""
    start: str
    end: str

    model_config = {"from_attributes": True}


class AvailableSlotsResponse(BaseModel):
    slots: list[TimeSlotRead]


class AvailableDatesResponse(BaseModel):
    dates: list[str]  # "yyyy-MM-dd"

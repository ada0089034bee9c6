# backend/coachbook/schemas/bookings.py

from datetime import date, datetime
from typing import Literal, Optional
from pydantic import BaseModel


class BookingCreate(BaseModel):
    student_id: Optional[int] = None
    client_name: str
    client_email: str
    session_type: str

    date: date
    start_time: str
    end_time: str

    notes: Optional[str] = None

    model_config = {"from_attributes": True}


class BookingRead(BaseModel):
    id: int

    student_id: Optional[int] = None
    client_name: str
    client_email: str
    session_type: str

    date: date
    start_time: str
    end_time: str
    duration_minutes: int

    status: str
    teams_meeting_url: Optional[str] = None
    is_late_cancel: bool
    credit_refunded: Optional[bool] = None
    cancellation_reason: Optional[str] = None

    reschedule_count: int
    rescheduled_at: Optional[datetime] = None
    original_date: Optional[date] = None
    original_start_time: Optional[str] = None
    policy_override: bool

    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class BookingCancelRequest(BaseModel):
    reason: Optional[str] = None
    cancelled_by: Literal["client", "admin"] = "client"


class BookingCancelResponse(BaseModel):
    booking_id: int
    type: Literal["normal", "late", "anti_abuse"]
    credit_refunded: bool


class BookingRescheduleRequest(BaseModel):
    date: date
    start_time: str
    end_time: str


class PolicyDecision(BaseModel):
    allowed: bool
    type: Optional[str] = None
    credit_refunded: Optional[bool] = None
    reason: Optional[str] = None


class BookingPolicyPreview(BaseModel):
    booking_id: int
    cancel: PolicyDecision
    reschedule: PolicyDecision

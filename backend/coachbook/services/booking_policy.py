# backend/coachbook/services/booking_policy.py
"""
Cancellation and reschedule policy.

Pure decisions, no I/O. Every outcome is a result value:

    CancelApproved(type="normal")      credit refunded
    CancelApproved(type="late")        credit forfeited
    CancelApproved(type="anti_abuse")  credit forfeited
    RescheduleApproved()
    PolicyRejection(reason)

Bookings are read by attribute (ORM rows or any object with the same
fields): status, date, start_time, session_type, reschedule_count,
rescheduled_at, original_date, original_start_time, policy_override.
"""

from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Literal

from .slots.config import as_utc, to_calendar_day, zoned_to_utc

# Cancel with >= 48h notice: credit refunded
CANCEL_NOTICE_HOURS = 48
# Reschedule needs >= 24h notice (free consultations exempt)
RESCHEDULE_NOTICE_HOURS = 24
MAX_RESCHEDULES = 2

ELIGIBLE_STATUSES = ("pending", "confirmed")
NOTICE_EXEMPT_SESSION_TYPES = ("free_consultation",)

CancelType = Literal["normal", "late", "anti_abuse"]


@dataclass(frozen=True)
class PolicyRejection:
    reason: str
    allowed: Literal[False] = False


@dataclass(frozen=True)
class CancelApproved:
    type: CancelType
    allowed: Literal[True] = True

    @property
    def credit_refunded(self) -> bool:
        return self.type == "normal"

    @property
    def is_late(self) -> bool:
        return self.type != "normal"


@dataclass(frozen=True)
class RescheduleApproved:
    allowed: Literal[True] = True


CancelResult = CancelApproved | PolicyRejection
RescheduleResult = RescheduleApproved | PolicyRejection


def session_start(day: date | datetime | str, start_time: str) -> datetime:
    """UTC instant of a session given its calendar day and SAST "HH:MM" start."""
    return zoned_to_utc(to_calendar_day(day), start_time)


def hours_between(earlier: datetime, later: datetime) -> float:
    return (later - earlier).total_seconds() / 3600


def _now(now: datetime | None) -> datetime:
    return datetime.now(timezone.utc) if now is None else as_utc(now)


def _rescheduled_from_late_window(booking) -> bool:
    """
    True when the booking was moved away from a slot that was already
    inside the cancel-notice window at the moment of rescheduling.
    """
    if not (booking.rescheduled_at and booking.original_date and booking.original_start_time):
        return False

    original_start = session_start(booking.original_date, booking.original_start_time)
    rescheduled_at = as_utc(booking.rescheduled_at)
    return hours_between(rescheduled_at, original_start) < CANCEL_NOTICE_HOURS


def evaluate_cancel(booking, now: datetime | None = None) -> CancelResult:
    now = _now(now)

    if booking.status not in ELIGIBLE_STATUSES:
        return PolicyRejection("Only pending or confirmed bookings can be cancelled.")

    start = session_start(booking.date, booking.start_time)
    if start <= now:
        return PolicyRejection("Cannot cancel a session that has already started.")

    if booking.policy_override:
        return CancelApproved("normal")

    if _rescheduled_from_late_window(booking):
        return CancelApproved("anti_abuse")

    if hours_between(now, start) >= CANCEL_NOTICE_HOURS:
        return CancelApproved("normal")
    return CancelApproved("late")


def evaluate_reschedule(booking, now: datetime | None = None) -> RescheduleResult:
    now = _now(now)

    if booking.status not in ELIGIBLE_STATUSES:
        return PolicyRejection("Only pending or confirmed bookings can be rescheduled.")

    start = session_start(booking.date, booking.start_time)
    if start <= now:
        return PolicyRejection("Cannot reschedule a session that has already started.")

    if (booking.reschedule_count or 0) >= MAX_RESCHEDULES and not booking.policy_override:
        return PolicyRejection(
            f"This booking has already been rescheduled {MAX_RESCHEDULES} times."
        )

    exempt = booking.session_type in NOTICE_EXEMPT_SESSION_TYPES
    if (
        not exempt
        and not booking.policy_override
        and hours_between(now, start) < RESCHEDULE_NOTICE_HOURS
    ):
        return PolicyRejection(
            f"Rescheduling requires at least {RESCHEDULE_NOTICE_HOURS} hours notice."
        )

    return RescheduleApproved()

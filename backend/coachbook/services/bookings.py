# backend/coachbook/services/bookings.py
"""
Booking actions: create, cancel, reschedule.

The policy engine decides; this module applies the decision to the
booking row, the credit ledger and (best effort) the external calendar.
"""

import asyncio
import logging
import secrets
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..models.tables import Bookings as DBBooking
from . import credits
from .booking_policy import PolicyRejection, evaluate_cancel, evaluate_reschedule
from .slots.availability import AvailabilityEngine
from .slots.busy_cache import BusyIntervalCache
from .slots.config import as_utc, get_session_type_config, parse_date_str
from .slots.invalidator import invalidate_busy_cache

logger = logging.getLogger(__name__)


class BookingNotFound(LookupError):
    pass


class PolicyViolation(ValueError):
    """A cancel/reschedule request the policy does not allow."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class SlotUnavailable(ValueError):
    pass


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _db_timestamp(value: datetime) -> datetime:
    """Naive UTC for DateTime columns."""
    return as_utc(value).replace(tzinfo=None)


def _get_booking(db: Session, booking_id: int) -> DBBooking:
    booking = db.get(DBBooking, booking_id)
    if not booking:
        raise BookingNotFound(f"Booking {booking_id} not found")
    return booking


async def _ensure_slot_available(
    engine: AvailabilityEngine,
    day: date,
    session_type: str,
    start_time: str,
    end_time: str,
) -> None:
    slots = await engine.get_available_slots(day, session_type)
    if not any(s.start == start_time and s.end == end_time for s in slots):
        raise SlotUnavailable("Selected time slot is no longer available.")


def _sync_calendar(calendar, action: str, *args, **kwargs):
    """Run a calendar call, logging instead of failing the booking action."""
    if calendar is None:
        return None
    try:
        return getattr(calendar, action)(*args, **kwargs)
    except Exception:
        logger.exception(f"Calendar {action} failed")
        return None


# ── Create ───────────────────────────────────────────────────────────────


async def create_booking(
    db: Session,
    engine: AvailabilityEngine,
    data: dict,
    calendar=None,
) -> DBBooking:
    """
    Book a slot for a client.

    Args:
        data: client_name, client_email, session_type, date ("yyyy-MM-dd"),
              start_time, end_time, optional student_id / notes

    Raises:
        ValueError: Unknown session type, malformed date or insufficient session credits
        SlotUnavailable: Slot not offered or taken concurrently
    """
    config = get_session_type_config(data["session_type"])
    day = parse_date_str(data["date"]) if isinstance(data["date"], str) else data["date"]

    await _ensure_slot_available(
        engine, day, config.type, data["start_time"], data["end_time"]
    )

    booking = DBBooking(
        student_id=data.get("student_id"),
        client_name=data["client_name"],
        client_email=data["client_email"],
        session_type=config.type,
        date=day,
        start_time=data["start_time"],
        end_time=data["end_time"],
        duration_minutes=config.duration_minutes,
        status="pending",
        confirmation_token=secrets.token_urlsafe(24),
        notes=data.get("notes"),
    )
    db.add(booking)
    try:
        db.flush()
    except IntegrityError:
        # Lost the race against a concurrent booking for the same slot
        db.rollback()
        raise SlotUnavailable("Selected time slot is no longer available.")

    # Credit use and the booking row commit together
    if not config.is_free and booking.student_id:
        try:
            credits.deduct_credit(
                db, booking.student_id, booking.id, f"Session booking: {config.label}"
            )
        except ValueError:
            db.rollback()
            raise

    db.commit()
    db.refresh(booking)

    event = await asyncio.to_thread(
        _sync_calendar,
        calendar,
        "create_event",
        summary=f"{config.label} - {booking.client_name}",
        day=booking.date,
        start_time=booking.start_time,
        end_time=booking.end_time,
        client_name=booking.client_name,
        client_email=booking.client_email,
    )
    if event:
        booking.calendar_event_id = event.get("event_id")
        booking.teams_meeting_url = event.get("meeting_url")
        db.commit()
        db.refresh(booking)

    logger.info(f"Booking {booking.id} created for {booking.date} {booking.start_time}")
    return booking


# ── Cancel ───────────────────────────────────────────────────────────────


def cancel_booking(
    db: Session,
    booking_id: int,
    reason: Optional[str] = None,
    cancelled_by: str = "client",
    now: Optional[datetime] = None,
    calendar=None,
    busy_cache: BusyIntervalCache | None = None,
) -> dict:
    """
    Cancel a booking according to the cancellation policy.

    Returns:
        {"booking_id", "type", "credit_refunded"}

    Raises:
        BookingNotFound, PolicyViolation
    """
    now = now or _utcnow()
    booking = _get_booking(db, booking_id)

    result = evaluate_cancel(booking, now)
    if isinstance(result, PolicyRejection):
        raise PolicyViolation(result.reason)

    booking.status = "cancelled"
    booking.cancelled_at = _db_timestamp(now)
    booking.cancelled_by = cancelled_by
    booking.cancellation_reason = (reason or "").strip() or None
    booking.is_late_cancel = result.is_late
    booking.credit_refunded = result.credit_refunded
    booking.billing_note = "(late cancel)" if result.is_late else "(cancelled)"
    booking.updated_at = _db_timestamp(now)

    config = get_session_type_config(booking.session_type)
    if not config.is_free and booking.student_id:
        label = f"{config.label} on {booking.date.isoformat()}"
        if result.credit_refunded:
            credits.refund_credit(db, booking.student_id, booking.id, f"Refund: cancelled {label}")
        else:
            kind = "anti-abuse" if result.type == "anti_abuse" else "late cancel"
            credits.forfeit_credit(db, booking.student_id, booking.id, f"Forfeit ({kind}): {label}")

    db.commit()

    if booking.calendar_event_id:
        _sync_calendar(calendar, "delete_event", booking.calendar_event_id)
        invalidate_busy_cache(busy_cache, [booking.date])

    logger.info(f"Booking {booking.id} cancelled by {cancelled_by}: {result.type}")
    return {
        "booking_id": booking.id,
        "type": result.type,
        "credit_refunded": result.credit_refunded,
    }


# ── Reschedule ───────────────────────────────────────────────────────────


async def reschedule_booking(
    db: Session,
    engine: AvailabilityEngine,
    booking_id: int,
    new_date: str | date,
    new_start_time: str,
    new_end_time: str,
    now: Optional[datetime] = None,
    calendar=None,
    busy_cache: BusyIntervalCache | None = None,
) -> DBBooking:
    """
    Move a booking to another slot.

    original_date / original_start_time keep the first-ever slot so the
    anti-abuse check compares against it after several reschedules.

    Raises:
        BookingNotFound, PolicyViolation, SlotUnavailable, ValueError
    """
    now = now or _utcnow()
    booking = _get_booking(db, booking_id)

    result = evaluate_reschedule(booking, now)
    if isinstance(result, PolicyRejection):
        raise PolicyViolation(result.reason)

    day = parse_date_str(new_date) if isinstance(new_date, str) else new_date
    await _ensure_slot_available(engine, day, booking.session_type, new_start_time, new_end_time)

    old_date = booking.date
    if booking.original_date is None:
        booking.original_date = booking.date
    if booking.original_start_time is None:
        booking.original_start_time = booking.start_time
    booking.rescheduled_at = _db_timestamp(now)
    booking.reschedule_count = (booking.reschedule_count or 0) + 1
    booking.billing_note = "(rescheduled)"
    booking.date = day
    booking.start_time = new_start_time
    booking.end_time = new_end_time
    booking.updated_at = _db_timestamp(now)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise SlotUnavailable("Selected time slot is no longer available.")

    if booking.calendar_event_id:
        await asyncio.to_thread(_sync_calendar, calendar, "delete_event", booking.calendar_event_id)
    config = get_session_type_config(booking.session_type)
    event = await asyncio.to_thread(
        _sync_calendar,
        calendar,
        "create_event",
        summary=f"{config.label} - {booking.client_name}",
        day=day,
        start_time=new_start_time,
        end_time=new_end_time,
        client_name=booking.client_name,
        client_email=booking.client_email,
    )
    booking.calendar_event_id = event.get("event_id") if event else None
    if event and event.get("meeting_url"):
        booking.teams_meeting_url = event["meeting_url"]
    db.commit()
    db.refresh(booking)

    invalidate_busy_cache(busy_cache, [old_date, day])

    logger.info(
        f"Booking {booking.id} rescheduled to {booking.date} {booking.start_time} "
        f"(count={booking.reschedule_count})"
    )
    return booking

# backend/coachbook/routers/bookings.py
# PATCH = 405, DELETE = 405: bookings change only through cancel/reschedule

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import get_availability_engine, get_busy_cache, get_calendar, get_now
from ..models.tables import Bookings as DBBookings
from ..schemas.bookings import (
    BookingCancelRequest,
    BookingCancelResponse,
    BookingCreate,
    BookingPolicyPreview,
    BookingRead,
    BookingRescheduleRequest,
    PolicyDecision,
)
from ..services.booking_policy import CancelApproved, evaluate_cancel, evaluate_reschedule
from ..services.bookings import (
    BookingNotFound,
    PolicyViolation,
    SlotUnavailable,
    cancel_booking,
    create_booking,
    reschedule_booking,
)
from ..services.slots import AvailabilityEngine

router = APIRouter(prefix="/bookings", tags=["bookings"])


def _to_http(e: Exception) -> HTTPException:
    if isinstance(e, BookingNotFound):
        return HTTPException(status_code=404, detail="Not found")
    if isinstance(e, SlotUnavailable):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    if isinstance(e, PolicyViolation):
        return HTTPException(status_code=422, detail=e.reason)
    return HTTPException(status_code=400, detail=str(e))


@router.post("/", response_model=BookingRead, status_code=status.HTTP_201_CREATED)
async def create_booking_endpoint(
    data: BookingCreate,
    db: Session = Depends(get_db),
    engine: AvailabilityEngine = Depends(get_availability_engine),
    calendar=Depends(get_calendar),
):
    try:
        return await create_booking(db, engine, data.model_dump(), calendar=calendar)
    except (LookupError, ValueError) as e:
        raise _to_http(e)


@router.get("/{id}", response_model=BookingRead)
def get_booking(id: int, db: Session = Depends(get_db)):
    obj = db.get(DBBookings, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")
    return obj


@router.get("/{id}/policy", response_model=BookingPolicyPreview)
def get_booking_policy(
    id: int,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    obj = db.get(DBBookings, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")

    cancel = evaluate_cancel(obj, now)
    reschedule = evaluate_reschedule(obj, now)

    if isinstance(cancel, CancelApproved):
        cancel_decision = PolicyDecision(
            allowed=True, type=cancel.type, credit_refunded=cancel.credit_refunded
        )
    else:
        cancel_decision = PolicyDecision(allowed=False, reason=cancel.reason)

    return BookingPolicyPreview(
        booking_id=obj.id,
        cancel=cancel_decision,
        reschedule=PolicyDecision(
            allowed=reschedule.allowed,
            reason=getattr(reschedule, "reason", None),
        ),
    )


@router.post("/{id}/cancel", response_model=BookingCancelResponse)
def cancel_booking_endpoint(
    id: int,
    data: BookingCancelRequest,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
    calendar=Depends(get_calendar),
    busy_cache=Depends(get_busy_cache),
):
    try:
        return cancel_booking(
            db,
            id,
            reason=data.reason,
            cancelled_by=data.cancelled_by,
            now=now,
            calendar=calendar,
            busy_cache=busy_cache,
        )
    except (LookupError, ValueError) as e:
        raise _to_http(e)


@router.post("/{id}/reschedule", response_model=BookingRead)
async def reschedule_booking_endpoint(
    id: int,
    data: BookingRescheduleRequest,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
    engine: AvailabilityEngine = Depends(get_availability_engine),
    calendar=Depends(get_calendar),
    busy_cache=Depends(get_busy_cache),
):
    try:
        return await reschedule_booking(
            db,
            engine,
            id,
            data.date,
            data.start_time,
            data.end_time,
            now=now,
            calendar=calendar,
            busy_cache=busy_cache,
        )
    except (LookupError, ValueError) as e:
        raise _to_http(e)


@router.patch("/{id}")
def patch_not_allowed():
    raise HTTPException(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        detail="Method not allowed",
    )


@router.delete("/{id}")
def delete_not_allowed():
    raise HTTPException(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        detail="Method not allowed",
    )

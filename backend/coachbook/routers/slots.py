# backend/coachbook/routers/slots.py
"""
Booking availability endpoints.

GET /booking/available-dates - Days in the horizon that may have slots
GET /booking/available-slots - Bookable slots for one day and session type
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ..dependencies import get_availability_engine
from ..schemas.slots import AvailableDatesResponse, AvailableSlotsResponse, TimeSlotRead
from ..services.slots import AvailabilityEngine, get_session_type_config

router = APIRouter(prefix="/booking", tags=["booking"])


@router.get("/available-dates", response_model=AvailableDatesResponse)
async def get_available_dates(
    session_type: Optional[str] = Query(None, alias="type"),
    engine: AvailabilityEngine = Depends(get_availability_engine),
):
    # Dates do not depend on the session type; an unknown one is still rejected
    if session_type is not None:
        try:
            get_session_type_config(session_type)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

    dates = await engine.get_available_dates()
    return AvailableDatesResponse(dates=dates)


@router.get("/available-slots", response_model=AvailableSlotsResponse)
async def get_available_slots(
    session_type: str = Query(..., alias="type"),
    date_str: str = Query(..., alias="date"),
    engine: AvailabilityEngine = Depends(get_availability_engine),
):
    try:
        slots = await engine.get_available_slots(date_str, session_type)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return AvailableSlotsResponse(
        slots=[TimeSlotRead(start=s.start, end=s.end) for s in slots]
    )

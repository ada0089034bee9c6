"""FastAPI dependencies wiring the booking services to the request session."""

from datetime import datetime, timezone
from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session

from .config import settings
from .database import get_db
from .redis_client import redis_client
from .services.google_calendar import GoogleCalendarGateway
from .services.slots import AvailabilityEngine, BusyIntervalCache
from .services.slots.stores import BookingStore, OverrideStore, SiteSettingsStore


def get_now() -> datetime:
    """Request time; every policy and notice check in a request uses this instant."""
    return datetime.now(timezone.utc)


@lru_cache
def get_calendar() -> GoogleCalendarGateway:
    return GoogleCalendarGateway.from_settings(settings)


def get_busy_cache() -> BusyIntervalCache | None:
    if redis_client is None:
        return None
    return BusyIntervalCache(redis_client, ttl_seconds=settings.busy_cache_ttl_seconds)


def get_availability_engine(
    db: Session = Depends(get_db),
    calendar: GoogleCalendarGateway = Depends(get_calendar),
    busy_cache: BusyIntervalCache | None = Depends(get_busy_cache),
    now: datetime = Depends(get_now),
) -> AvailabilityEngine:
    return AvailabilityEngine(
        settings_store=SiteSettingsStore(db),
        override_store=OverrideStore(db),
        booking_store=BookingStore(db),
        calendar=calendar,
        busy_cache=busy_cache,
        calendar_timeout=settings.calendar_timeout_seconds,
        clock=lambda: now,
    )

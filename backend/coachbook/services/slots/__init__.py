# backend/coachbook/services/slots/__init__.py
"""
Slots calculation module.

Business hours + overrides → fixed-grid candidates → filtered against
minimum notice, external busy time and existing bookings.
"""

from .config import BookingConfig, get_booking_config, get_session_type_config
from .calculator import BusyInterval, TimeSlot, generate_slots
from .business_hours import resolve_day_window
from .busy_cache import BusyIntervalCache
from .invalidator import invalidate_busy_cache
from .availability import AvailabilityEngine

__all__ = [
    "BookingConfig",
    "get_booking_config",
    "get_session_type_config",
    "BusyInterval",
    "TimeSlot",
    "generate_slots",
    "resolve_day_window",
    "BusyIntervalCache",
    "invalidate_busy_cache",
    "AvailabilityEngine",
]

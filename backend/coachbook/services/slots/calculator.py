# backend/coachbook/services/slots/calculator.py
"""
Candidate slot generation and interval arithmetic.

Slots come from a fixed grid of clock starts (BookingConfig.slot_starts);
a start is offered when the whole session fits inside the open window.

Does NOT contain:
✗ Buffer between sessions (applied around busy/booked intervals)
✗ Minimum notice (checked by the availability engine)
"""

from dataclasses import dataclass

from .business_hours import DayWindow
from .config import BookingConfig, get_booking_config, minutes_to_time_str, time_str_to_minutes


@dataclass(frozen=True)
class TimeSlot:
    start: str  # "HH:MM"
    end: str

    @property
    def start_min(self) -> int:
        return time_str_to_minutes(self.start)

    @property
    def end_min(self) -> int:
        return time_str_to_minutes(self.end)


@dataclass(frozen=True)
class BusyInterval:
    """Busy period reported by the external calendar."""
    start: str  # ISO 8601 instant
    end: str


def generate_slots(
    window: DayWindow,
    duration_minutes: int,
    config: BookingConfig | None = None,
) -> list[TimeSlot]:
    """Grid starts that fit [open, close) for `duration_minutes`, ascending."""
    if duration_minutes <= 0:
        raise ValueError(f"duration_minutes must be positive, got {duration_minutes}")
    config = config or get_booking_config()

    slots: list[TimeSlot] = []
    for start_min in config.slot_start_minutes:
        end_min = start_min + duration_minutes
        if start_min >= window.open_min and end_min <= window.close_min:
            slots.append(TimeSlot(minutes_to_time_str(start_min), minutes_to_time_str(end_min)))
    return slots


def ranges_overlap(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    """Half-open [a_start, a_end) and [b_start, b_end) share at least one minute."""
    return a_start < b_end and b_start < a_end


def expand_by_buffer(start_min: int, end_min: int, buffer_minutes: int) -> tuple[int, int]:
    """Pad an interval by `buffer_minutes` on both sides; the start never goes below 00:00."""
    return max(0, start_min - buffer_minutes), end_min + buffer_minutes

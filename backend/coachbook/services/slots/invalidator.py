# backend/coachbook/services/slots/invalidator.py
"""
Cache invalidation for free/busy data.

Triggers:
✓ Booking rescheduled → old and new day (calendar event moved)
✓ Booking cancelled → its day (calendar event deleted)

Does NOT trigger:
✗ Override created/deleted (overrides are never cached)
✗ Booking created (own bookings are read from the database every time)
"""

import logging
from datetime import date

from redis.exceptions import RedisError

from .busy_cache import BusyIntervalCache

logger = logging.getLogger(__name__)


def invalidate_busy_cache(cache: BusyIntervalCache | None, days: list[date]) -> int:
    """
    Drop cached busy intervals for `days`.

    Returns:
        Number of deleted cache keys (0 when caching is disabled or redis fails)
    """
    if cache is None:
        return 0

    unique_days = sorted(set(days))
    try:
        deleted = cache.delete(unique_days)
    except RedisError as e:
        logger.warning(f"Busy cache invalidation failed for {unique_days}: {e}")
        return 0

    logger.debug(f"Invalidated busy cache for {unique_days} ({deleted} keys)")
    return deleted

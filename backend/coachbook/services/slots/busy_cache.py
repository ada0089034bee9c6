# backend/coachbook/services/slots/busy_cache.py
"""
Redis cache for external free/busy results.

Key format: freebusy:day:{yyyy-mm-dd}
Value: JSON list of {"start", "end"} busy intervals for that business day.
Empty list is a valid cached value ("calendar checked, nothing busy").

Entries live busy_cache_ttl_seconds; bookings that touch the external
calendar invalidate their days explicitly (see invalidator.py).
"""

import json
import logging
from datetime import date

from redis import Redis
from redis.exceptions import RedisError

from .calculator import BusyInterval

logger = logging.getLogger(__name__)


class BusyIntervalCache:
    """Redis storage wrapper for per-day busy intervals."""

    KEY_PREFIX = "freebusy:day"

    def __init__(self, redis: Redis, ttl_seconds: int = 300):
        self.redis = redis
        self.ttl_seconds = ttl_seconds

    def _key(self, day: date) -> str:
        return f"{self.KEY_PREFIX}:{day.isoformat()}"

    def get(self, day: date) -> list[BusyInterval] | None:
        """Cached intervals, or None on cache miss (or when redis is unreachable)."""
        try:
            raw = self.redis.get(self._key(day))
        except RedisError as e:
            logger.warning(f"Busy cache read failed for {day}: {e}")
            return None
        if raw is None:
            return None

        if isinstance(raw, bytes):
            raw = raw.decode()
        logger.debug(f"Busy cache hit for {day}")
        return [BusyInterval(start=item["start"], end=item["end"]) for item in json.loads(raw)]

    def store(self, day: date, intervals: list[BusyInterval]) -> None:
        payload = json.dumps([{"start": i.start, "end": i.end} for i in intervals])
        try:
            self.redis.setex(self._key(day), self.ttl_seconds, payload)
        except RedisError as e:
            logger.warning(f"Busy cache write failed for {day}: {e}")

    def delete(self, days: list[date]) -> int:
        """Delete cached days. Returns number of deleted keys."""
        if not days:
            return 0
        return self.redis.delete(*[self._key(day) for day in days])

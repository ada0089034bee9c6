import json
from datetime import date
from unittest.mock import Mock

from redis.exceptions import ConnectionError as RedisConnectionError

from coachbook.services.slots import BusyIntervalCache, invalidate_busy_cache
from coachbook.services.slots.calculator import BusyInterval

DAY = date(2026, 3, 4)
INTERVAL = BusyInterval("2026-03-04T08:00:00Z", "2026-03-04T09:00:00Z")


class TestBusyIntervalCache:
    def test_miss(self):
        redis = Mock()
        redis.get.return_value = None

        assert BusyIntervalCache(redis).get(DAY) is None
        redis.get.assert_called_once_with("freebusy:day:2026-03-04")

    def test_hit(self):
        redis = Mock()
        redis.get.return_value = json.dumps([{"start": INTERVAL.start, "end": INTERVAL.end}]).encode()

        assert BusyIntervalCache(redis).get(DAY) == [INTERVAL]

    def test_empty_list_is_a_hit(self):
        redis = Mock()
        redis.get.return_value = b"[]"

        assert BusyIntervalCache(redis).get(DAY) == []

    def test_unreachable_redis_is_a_miss(self):
        redis = Mock()
        redis.get.side_effect = RedisConnectionError("down")

        assert BusyIntervalCache(redis).get(DAY) is None

    def test_store_uses_ttl(self):
        redis = Mock()

        BusyIntervalCache(redis, ttl_seconds=120).store(DAY, [INTERVAL])

        key, ttl, payload = redis.setex.call_args.args
        assert (key, ttl) == ("freebusy:day:2026-03-04", 120)
        assert json.loads(payload) == [{"start": INTERVAL.start, "end": INTERVAL.end}]

    def test_store_failure_is_logged_not_raised(self):
        redis = Mock()
        redis.setex.side_effect = RedisConnectionError("down")

        BusyIntervalCache(redis).store(DAY, [INTERVAL])


class TestInvalidateBusyCache:
    def test_without_cache(self):
        assert invalidate_busy_cache(None, [DAY]) == 0

    def test_deduplicates_days(self):
        redis = Mock()
        redis.delete.return_value = 2
        other = date(2026, 3, 5)

        deleted = invalidate_busy_cache(BusyIntervalCache(redis), [other, DAY, other])

        assert deleted == 2
        redis.delete.assert_called_once_with("freebusy:day:2026-03-04", "freebusy:day:2026-03-05")

    def test_redis_failure_returns_zero(self):
        redis = Mock()
        redis.delete.side_effect = RedisConnectionError("down")

        assert invalidate_busy_cache(BusyIntervalCache(redis), [DAY]) == 0

import logging

from fastapi import FastAPI
from redis.exceptions import RedisError

from .config import settings
from .redis_client import redis_client
from .routers import availability_overrides, bookings, slots

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="Coaching Booking API")

app.include_router(slots.router)
app.include_router(bookings.router)
app.include_router(availability_overrides.router)


@app.get("/health")
def health():
    if redis_client is None:
        return {"status": "ok", "redis": None}
    try:
        return {"status": "ok", "redis": redis_client.ping()}
    except RedisError:
        logger.warning("Redis ping failed")
        return {"status": "degraded", "redis": False}

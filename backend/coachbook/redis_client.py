from redis import Redis

from .config import settings

# None when caching is not configured
redis_client: Redis | None = Redis.from_url(settings.redis_url) if settings.redis_url else None

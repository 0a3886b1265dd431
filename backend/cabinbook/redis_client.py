from redis import Redis

from .config import settings

# Optional: events and health checks degrade gracefully without Redis
redis_client: Redis | None = (
    Redis.from_url(
        settings.redis_url,
        socket_timeout=2.0,
        socket_connect_timeout=2.0,
    )
    if settings.redis_url
    else None
)

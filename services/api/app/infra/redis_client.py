from redis.asyncio import Redis as AsyncRedis
from redis import Redis as SyncRedis

from app.settings import settings

_redis_async: AsyncRedis | None = None
_redis_sync: SyncRedis | None = None


def redis_url() -> str:
    return settings.redis_url


async def get_redis() -> AsyncRedis:
    """Async client, used by the readiness probe."""
    global _redis_async
    if _redis_async is None:
        _redis_async = AsyncRedis.from_url(redis_url(), decode_responses=True)
    return _redis_async


def get_sync_redis() -> SyncRedis:
    """Sync client for request handlers running in the threadpool."""
    global _redis_sync
    if _redis_sync is None:
        _redis_sync = SyncRedis.from_url(
            redis_url(),
            decode_responses=True,
            socket_connect_timeout=1,
            socket_timeout=1,
        )
    return _redis_sync

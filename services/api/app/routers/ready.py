import logging

from fastapi import APIRouter
from redis.exceptions import RedisError

from app.infra.redis_client import get_redis
from app.settings import settings

router = APIRouter()
logger = logging.getLogger("dishwise.ready")


@router.get("/ready")
async def ready():
    redis_ok = False
    try:
        r = await get_redis()
        redis_ok = bool(await r.ping())
    except (RedisError, OSError) as e:
        logger.warning(f"Redis not reachable: {e}")
    return {"ok": True, "redis_ok": redis_ok, "ai_mode": settings.ai_mode}

import json
from typing import Any, Callable, Optional

from app.infra.redis_client import get_sync_redis

KEY_PREFIX = "dishwise:"


def _key(key: str) -> str:
    return key if key.startswith(KEY_PREFIX) else f"{KEY_PREFIX}{key}"


def get_json_sync(key: str) -> Optional[Any]:
    raw = get_sync_redis().get(_key(key))
    return json.loads(raw) if raw is not None else None


def set_json_sync(key: str, value: Any, ttl_sec: int) -> None:
    get_sync_redis().set(_key(key), json.dumps(value), ex=ttl_sec)


def get_or_set_json_sync(key: str, ttl_sec: int, compute_func: Callable[[], Any]):
    """Returns (value, cache_hit)."""
    hit = get_json_sync(key)
    if hit is not None:
        return hit, True

    val = compute_func()
    set_json_sync(key, val, ttl_sec)
    return val, False

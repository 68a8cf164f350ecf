import logging

from redis.exceptions import RedisError
from sqlalchemy import select
from sqlalchemy.orm import Session

from ..infra.redis_cache import get_or_set_json_sync
from ..models import Recipe
from ..schemas import RecipeCandidate
from ..settings import settings

logger = logging.getLogger("dishwise.candidates")


def _cache_key(min_rating: float, limit: int) -> str:
    return f"candidates:v1:{min_rating}:{limit}"


def query_candidates(db: Session, min_rating: float, limit: int) -> list[RecipeCandidate]:
    """Highly-rated corpus recipes, most-reviewed first."""
    recipes = db.scalars(
        select(Recipe)
        .where(Recipe.average_rating >= min_rating)
        .order_by(Recipe.rating_count.desc(), Recipe.average_rating.desc(), Recipe.id)
        .limit(limit)
    ).all()
    return [RecipeCandidate.model_validate(r) for r in recipes]


def get_candidate_pool(db: Session) -> list[RecipeCandidate]:
    """Candidate pool for the daily pick.

    The pool is the same for every user, so it is shared through Redis for a
    short TTL. Redis being down only costs the cache.
    """
    min_rating = settings.min_candidate_rating
    limit = settings.candidate_pool_size
    ttl = settings.candidate_cache_ttl_sec

    if ttl <= 0:
        return query_candidates(db, min_rating, limit)

    try:
        payload, hit = get_or_set_json_sync(
            _cache_key(min_rating, limit),
            ttl,
            lambda: [c.model_dump(mode="json") for c in query_candidates(db, min_rating, limit)],
        )
    except RedisError as e:
        logger.warning(f"Candidate cache unavailable, reading database: {e}")
        return query_candidates(db, min_rating, limit)

    logger.debug(f"Candidate pool size={len(payload)} cache_hit={hit}")
    return [RecipeCandidate.model_validate(p) for p in payload]

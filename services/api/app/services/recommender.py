"""Daily recommendation: one pick per (user, date).

Two explicit stages composed by ``DailyRecommendationService``:

1. ``GenerativeRecommender.try_generative`` asks the model to choose from the
   candidate pool and returns a draft or a ``GenerationFailure``.
2. ``FallbackRecommender.fallback_rule_based`` always returns a draft.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional, Sequence, Union

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.ai_client import ai_client
from ..errors import GenerationError, InvalidRequestError, NotFoundError
from ..models import DailyRecommendation, Recipe
from ..schemas import (
    RecentMealEntry,
    RecipeCandidate,
    RecipeOut,
    RecommendationOut,
    RecommendationUpdateOut,
    UserPreferenceProfile,
    STRICT_DIETS,
)
from ..schemas_generation import RecommendationPick
from ..settings import settings
from .candidates import get_candidate_pool
from .constraints import forbidden_terms, is_diet_compatible, violates_hard_constraints
from .context import load_profile, recent_meals
from .prompts import RECOMMENDER_SYSTEM, build_recommendation_prompt

logger = logging.getLogger("dishwise.recommendations")

DAILY_RECENT_MEAL_LIMIT = 15
SIMILAR_MEAL_WINDOW_DAYS = 7
FALLBACK_TOP_N = 5
ALTERNATIVES_COUNT = 3
FALLBACK_CONFIDENCE = 0.7


def meal_type_for(now: datetime) -> str:
    """Server wall-clock hour; the user's timezone is not considered."""
    if now.hour < 11:
        return "breakfast"
    if now.hour < 16:
        return "lunch"
    return "dinner"


@dataclass
class RecommendationDraft:
    recipe_id: str
    reason: str
    meal_type: str
    source: str  # ai | fallback
    alternative_ids: list[str] = field(default_factory=list)
    confidence: Optional[float] = None


@dataclass
class GenerationFailure:
    reason: str


class GenerativeRecommender:
    def __init__(self):
        self.mode = settings.ai_mode

    def try_generative(
        self,
        profile: UserPreferenceProfile,
        meals: Sequence[RecentMealEntry],
        candidates: Sequence[RecipeCandidate],
        meal_type: str,
    ) -> Union[RecommendationDraft, GenerationFailure]:
        if self.mode == "mock":
            return GenerationFailure("AI disabled (mock mode)")
        if not candidates:
            return GenerationFailure("Empty candidate pool")

        pick = ai_client.generate_content_sync(
            prompt=build_recommendation_prompt(profile, meals, candidates, meal_type),
            response_model=RecommendationPick,
            system_instruction=RECOMMENDER_SYSTEM,
        )
        if pick is None:
            return GenerationFailure(ai_client.last_error or "No response from AI")

        by_id = {c.id: c for c in candidates}
        chosen = by_id.get(str(pick.recommended_recipe_id))
        if chosen is None:
            return GenerationFailure(f"AI recommended invalid recipe ID {pick.recommended_recipe_id!r}")

        terms = forbidden_terms(profile)
        offending = violates_hard_constraints(
            name=chosen.name, ingredients=chosen.ingredients, tags=chosen.tags, terms=terms
        )
        if offending:
            return GenerationFailure(f"AI pick {chosen.id} contains '{offending}'")

        # Unknown or unsafe alternatives are dropped, not an error
        alternatives: list[str] = []
        for alt_id in pick.alternative_recipe_ids:
            alt = by_id.get(str(alt_id))
            if alt is None or alt.id == chosen.id or alt.id in alternatives:
                continue
            if violates_hard_constraints(name=alt.name, ingredients=alt.ingredients, tags=alt.tags, terms=terms):
                continue
            alternatives.append(alt.id)

        return RecommendationDraft(
            recipe_id=chosen.id,
            reason=pick.reason,
            meal_type=pick.meal_type or meal_type,
            source="ai",
            alternative_ids=alternatives,
            confidence=pick.confidence,
        )


class FallbackRecommender:
    """Deterministic rule-based pick from the candidate pool."""

    @staticmethod
    def _recently_cooked_similar(candidate: RecipeCandidate, meals: Sequence[RecentMealEntry]) -> bool:
        name = candidate.name.strip().lower()
        for meal in meals:
            if meal.name.strip().lower() == name:
                return True
            if (
                meal.cuisine == candidate.cuisine
                and meal.category == candidate.category
                and meal.days_ago < SIMILAR_MEAL_WINDOW_DAYS
            ):
                return True
        return False

    @staticmethod
    def _fits_skill(candidate: RecipeCandidate, skill: Optional[str]) -> bool:
        if (skill or "").lower() != "beginner":
            return True
        if (candidate.difficulty or "").lower() != "easy":
            return False
        return candidate.cooking_time is None or candidate.cooking_time <= 30

    def _filter(
        self,
        profile: UserPreferenceProfile,
        meals: Sequence[RecentMealEntry],
        candidates: Sequence[RecipeCandidate],
    ) -> tuple[list[RecipeCandidate], str]:
        terms = forbidden_terms(profile)
        diet = profile.active_diet
        strict_diet = diet if diet in STRICT_DIETS else None

        def safe(c: RecipeCandidate) -> bool:
            if violates_hard_constraints(name=c.name, ingredients=c.ingredients, tags=c.tags, terms=terms):
                return False
            return is_diet_compatible(c.tags, strict_diet)

        def preferred(c: RecipeCandidate) -> bool:
            return (
                not self._recently_cooked_similar(c, meals)
                and self._fits_skill(c, profile.cooking_skill)
                and is_diet_compatible(c.tags, diet)
            )

        filtered = [c for c in candidates if safe(c) and preferred(c)]
        if filtered:
            return filtered, "filtered"

        # History and skill relaxed; allergens and strict diets still apply
        relaxed = [c for c in candidates if safe(c)]
        if relaxed:
            return relaxed, "relaxed"

        return list(candidates[:FALLBACK_TOP_N]), "top_rated"

    def fallback_rule_based(
        self,
        profile: UserPreferenceProfile,
        meals: Sequence[RecentMealEntry],
        candidates: Sequence[RecipeCandidate],
        meal_type: str,
    ) -> RecommendationDraft:
        if not candidates:
            raise GenerationError("No recipes available for a recommendation")

        pool, tier = self._filter(profile, meals, candidates)
        if tier != "filtered":
            logger.warning(f"Fallback filters left no candidates; using {tier} pool of {len(pool)}")

        chosen = pool[0]
        reason = (
            f"Perfect for {meal_type} - this {chosen.cuisine or 'home-style'} "
            f"{chosen.category or 'dish'} is {chosen.difficulty or 'simple'} to make "
            f"and highly rated by our community!"
        )
        return RecommendationDraft(
            recipe_id=chosen.id,
            reason=reason,
            meal_type=meal_type,
            source="fallback",
            alternative_ids=[c.id for c in pool[1:1 + ALTERNATIVES_COUNT]],
            confidence=FALLBACK_CONFIDENCE,
        )


class DailyRecommendationService:
    def __init__(
        self,
        generative: Optional[GenerativeRecommender] = None,
        fallback: Optional[FallbackRecommender] = None,
    ):
        self.generative = generative or GenerativeRecommender()
        self.fallback = fallback or FallbackRecommender()

    def recommend(
        self,
        profile: UserPreferenceProfile,
        meals: Sequence[RecentMealEntry],
        candidates: Sequence[RecipeCandidate],
        meal_type: str,
    ) -> RecommendationDraft:
        result = self.generative.try_generative(profile, meals, candidates, meal_type)
        if isinstance(result, GenerationFailure):
            logger.warning(f"Using fallback recommendation logic: {result.reason}")
            return self.fallback.fallback_rule_based(profile, meals, candidates, meal_type)
        return result

    def get_or_create(
        self,
        db: Session,
        user_id: str,
        ref_date: date,
        now: Optional[datetime] = None,
    ) -> RecommendationOut:
        existing = _find(db, user_id, ref_date)
        if existing is not None:
            return to_recommendation_out(db, existing)

        profile = load_profile(db, user_id)
        meals = recent_meals(db, user_id, ref_date, limit=DAILY_RECENT_MEAL_LIMIT)
        candidates = get_candidate_pool(db)
        meal_type = meal_type_for(now or datetime.now())

        draft = self.recommend(profile, meals, candidates, meal_type)

        row = DailyRecommendation(
            user_id=user_id,
            date=ref_date,
            recommended_recipe_id=draft.recipe_id,
            alternative_recipe_ids=draft.alternative_ids,
            reason=draft.reason,
            confidence=draft.confidence,
            meal_type=draft.meal_type,
            source=draft.source,
            presented=False,
            accepted=False,
        )
        db.add(row)
        try:
            db.commit()
        except IntegrityError:
            # A concurrent request stored today's pick first; that one wins
            db.rollback()
            logger.info(f"Daily recommendation for user={user_id} date={ref_date} already exists")
            existing = _find(db, user_id, ref_date)
            if existing is None:
                raise
            return to_recommendation_out(db, existing)

        db.refresh(row)
        logger.info(
            f"Stored daily recommendation user={user_id} date={ref_date} "
            f"recipe={row.recommended_recipe_id} source={row.source}"
        )
        return to_recommendation_out(db, row)

    def set_response(
        self,
        db: Session,
        recommendation_id: Optional[str],
        accepted: bool,
    ) -> RecommendationUpdateOut:
        if not recommendation_id:
            raise InvalidRequestError("Recommendation ID is required")

        row = db.get(DailyRecommendation, recommendation_id)
        if row is None:
            raise NotFoundError("Recommendation not found")

        row.presented = True
        row.accepted = accepted
        db.commit()
        db.refresh(row)

        return RecommendationUpdateOut(
            id=row.id,
            presented=row.presented,
            accepted=row.accepted,
            message="Recommendation accepted" if accepted else "Recommendation declined",
        )


def _find(db: Session, user_id: str, ref_date: date) -> Optional[DailyRecommendation]:
    return db.scalar(
        select(DailyRecommendation).where(
            DailyRecommendation.user_id == user_id,
            DailyRecommendation.date == ref_date,
        )
    )


def to_recommendation_out(db: Session, row: DailyRecommendation) -> RecommendationOut:
    recipe = db.get(Recipe, row.recommended_recipe_id)
    if recipe is None:
        raise NotFoundError("Recommended recipe not found")

    alternatives = []
    if row.alternative_recipe_ids:
        found = {
            r.id: r
            for r in db.scalars(select(Recipe).where(Recipe.id.in_(row.alternative_recipe_ids)))
        }
        # Stored order; deleted recipes are skipped
        alternatives = [found[rid] for rid in row.alternative_recipe_ids if rid in found]

    return RecommendationOut(
        id=row.id,
        recipe=RecipeOut.model_validate(recipe),
        reason=row.reason,
        alternatives=[RecipeOut.model_validate(r) for r in alternatives],
        presented=row.presented,
        accepted=row.accepted,
        date=row.date,
    )


recommendation_service = DailyRecommendationService()

"""Reads a user's preference profile and interaction history.

Read-only. Missing history slices come back as empty lists; only a missing
user row is an error.
"""

import logging
from dataclasses import dataclass
from datetime import date, timedelta

from sqlalchemy import select, or_
from sqlalchemy.orm import Session

from ..errors import NotFoundError
from ..models import User, Recipe, SavedRecipe, MealTracking, DailySuggestion
from ..schemas import (
    UserPreferenceProfile,
    InteractionHistory,
    SavedRecipeSummary,
    CreatedRecipeSummary,
    RecentMealEntry,
    DislikedRecipeEntry,
    RecentSuggestionEntry,
)

logger = logging.getLogger("dishwise.context")

RECENT_MEAL_WINDOW_DAYS = 14
RECENT_SUGGESTION_WINDOW_DAYS = 7

SAVED_LIMIT = 20
RECENT_MEAL_LIMIT = 20
CREATED_LIMIT = 10
DISLIKED_LIMIT = 20
RECENT_SUGGESTION_LIMIT = 30


@dataclass
class UserContext:
    user_id: str
    profile: UserPreferenceProfile
    history: InteractionHistory


def load_profile(db: Session, user_id: str) -> UserPreferenceProfile:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")

    return UserPreferenceProfile(
        name=user.name,
        diet_type=user.diet_type or [],
        allergies=user.allergies or [],
        dislikes=user.dislikes or [],
        preferred_cuisines=user.preferred_cuisines or [],
        cooking_skill=user.cooking_skill,
        preferred_cooking_time=user.preferred_cooking_time,
        people_count=user.people_count or 1,
        goals=user.goals or [],
        calorie_goal=user.calorie_goal,
        measurement_system=user.measurement_system or "metric",
        apply_preferences_in_assistant=user.apply_preferences_in_assistant,
    )


def saved_recipes(db: Session, user_id: str, limit: int = SAVED_LIMIT) -> list[SavedRecipeSummary]:
    rows = db.execute(
        select(Recipe.name, Recipe.tags, Recipe.cuisine, Recipe.category)
        .join(SavedRecipe, SavedRecipe.recipe_id == Recipe.id)
        .where(SavedRecipe.user_id == user_id)
        .order_by(SavedRecipe.created_at.desc())
        .limit(limit)
    ).all()
    return [
        SavedRecipeSummary(name=r.name, tags=r.tags or [], cuisine=r.cuisine, category=r.category)
        for r in rows
    ]


def recent_meals(
    db: Session,
    user_id: str,
    ref_date: date,
    limit: int = RECENT_MEAL_LIMIT,
) -> list[RecentMealEntry]:
    """Meals cooked in the 14 days up to ref_date, newest first."""
    since = ref_date - timedelta(days=RECENT_MEAL_WINDOW_DAYS)
    rows = db.execute(
        select(
            Recipe.name,
            Recipe.cuisine,
            Recipe.category,
            MealTracking.liked,
            MealTracking.cooked_date,
        )
        .join(Recipe, MealTracking.recipe_id == Recipe.id)
        .where(
            MealTracking.user_id == user_id,
            MealTracking.cooked_date >= since,
            MealTracking.cooked_date <= ref_date,
        )
        .order_by(MealTracking.cooked_date.desc())
        .limit(limit)
    ).all()
    return [
        RecentMealEntry(
            name=r.name,
            cuisine=r.cuisine,
            category=r.category,
            liked=r.liked,
            days_ago=(ref_date - r.cooked_date).days,
        )
        for r in rows
    ]


def created_recipes(db: Session, user_id: str, limit: int = CREATED_LIMIT) -> list[CreatedRecipeSummary]:
    # AI suggestions are stored with the requesting user as creator; skip them
    rows = db.execute(
        select(Recipe.name, Recipe.tags, Recipe.cuisine, Recipe.category)
        .where(
            Recipe.creator_user_id == user_id,
            or_(Recipe.creator_type.is_(None), Recipe.creator_type != "ai"),
        )
        .order_by(Recipe.created_at.desc())
        .limit(limit)
    ).all()
    return [
        CreatedRecipeSummary(name=r.name, tags=r.tags or [], cuisine=r.cuisine, category=r.category)
        for r in rows
    ]


def disliked_recipe_ids_query(user_id: str):
    return select(MealTracking.recipe_id).where(
        MealTracking.user_id == user_id,
        MealTracking.liked.is_(False),
    )


def disliked_recipes(db: Session, user_id: str, limit: int = DISLIKED_LIMIT) -> list[DislikedRecipeEntry]:
    recipes = db.scalars(
        select(Recipe)
        .where(Recipe.id.in_(disliked_recipe_ids_query(user_id)))
        .order_by(Recipe.name)
        .limit(limit)
    ).all()
    return [
        DislikedRecipeEntry(
            id=r.id,
            name=r.name,
            cuisine=r.cuisine,
            category=r.category,
            ingredients=r.ingredients or [],
            tags=r.tags or [],
        )
        for r in recipes
    ]


def recent_suggestions(
    db: Session,
    user_id: str,
    ref_date: date,
    limit: int = RECENT_SUGGESTION_LIMIT,
) -> list[RecentSuggestionEntry]:
    """Suggestions from the previous 7 days, excluding ref_date itself."""
    since = ref_date - timedelta(days=RECENT_SUGGESTION_WINDOW_DAYS)
    rows = db.execute(
        select(Recipe.name, Recipe.cuisine, Recipe.category)
        .join(DailySuggestion, DailySuggestion.recipe_id == Recipe.id)
        .where(
            DailySuggestion.user_id == user_id,
            DailySuggestion.date >= since,
            DailySuggestion.date < ref_date,
        )
        .order_by(DailySuggestion.date.desc())
        .limit(limit)
    ).all()
    return [RecentSuggestionEntry(name=r.name, cuisine=r.cuisine, category=r.category) for r in rows]


def aggregate_context(
    db: Session,
    user_id: str,
    ref_date: date,
    *,
    include_recent_suggestions: bool = False,
    recent_meal_limit: int = RECENT_MEAL_LIMIT,
) -> UserContext:
    """Profile plus the four history slices (and optionally recent suggestions)."""
    profile = load_profile(db, user_id)

    history = InteractionHistory(
        saved=saved_recipes(db, user_id),
        recent_meals=recent_meals(db, user_id, ref_date, limit=recent_meal_limit),
        created=created_recipes(db, user_id),
        disliked=disliked_recipes(db, user_id),
    )
    if include_recent_suggestions:
        history.recent_suggestions = recent_suggestions(db, user_id, ref_date)

    logger.info(
        f"Context for user={user_id} date={ref_date}: saved={len(history.saved)} "
        f"recent={len(history.recent_meals)} created={len(history.created)} "
        f"disliked={len(history.disliked)} recent_suggestions={len(history.recent_suggestions)}"
    )
    return UserContext(user_id=user_id, profile=profile, history=history)

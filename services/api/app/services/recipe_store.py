"""Persistence and mock drafts for AI-generated recipes."""

import logging
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from ..ai.gemini_image import try_recipe_image_url
from ..core.text import clean_md, clamp
from ..errors import GenerationError
from ..models import Recipe
from ..schemas import UserPreferenceProfile
from ..schemas_generation import GeneratedRecipe, GeneratedIngredient, GeneratedStep, GeneratedNutrition
from .constraints import forbidden_terms, violates_hard_constraints
from .prompts import MAX_BATCH, MIN_BATCH

logger = logging.getLogger("dishwise.recipes")

# Defaults for fields the model left out
DEFAULT_CATEGORY = "lunch"
DEFAULT_CUISINE = "International"
DEFAULT_COOKING_TIME = 30
DEFAULT_PREP_TIME = 15
DEFAULT_DIFFICULTY = "medium"
DEFAULT_SERVINGS = 4
DEFAULT_COST = 10.0
DEFAULT_RATING = 4.0


def persist_generated_recipe(db: Session, user_id: str, draft: GeneratedRecipe) -> Recipe:
    """Insert one generated recipe. Flushes but does not commit."""
    name = clamp(clean_md(draft.name), 200) or "Untitled Recipe"
    image_url = try_recipe_image_url(name=name, cuisine=draft.cuisine, description=draft.description)

    recipe = Recipe(
        name=name,
        description=clean_md(draft.description) or None,
        category=draft.category or DEFAULT_CATEGORY,
        cuisine=draft.cuisine or DEFAULT_CUISINE,
        cooking_time=draft.cooking_time or DEFAULT_COOKING_TIME,
        prep_time=draft.prep_time or DEFAULT_PREP_TIME,
        difficulty=draft.difficulty or DEFAULT_DIFFICULTY,
        servings=draft.servings or DEFAULT_SERVINGS,
        ingredients=[i.model_dump(exclude_none=True) for i in draft.ingredients],
        instructions=[s.model_dump() for s in draft.instructions],
        nutrition=draft.nutrition.model_dump(exclude_none=True) if draft.nutrition else {},
        tags=[t.strip().lower() for t in draft.tags if t and t.strip()],
        image_url=image_url,
        estimated_cost=draft.estimated_cost if draft.estimated_cost is not None else DEFAULT_COST,
        average_rating=DEFAULT_RATING,
        rating_count=0,
        creator_type="ai",
        creator_user_id=user_id,
    )
    db.add(recipe)
    db.flush()
    return recipe


def prepare_batch(
    drafts: list[GeneratedRecipe],
    profile: UserPreferenceProfile,
    cap: bool = True,
) -> list[GeneratedRecipe]:
    """Drops recipes that name an allergen or disliked ingredient.

    With `cap`, the batch is cut to MAX_BATCH. Callers that rank the whole
    batch first pass `cap=False` and cut after ranking.
    """
    terms = forbidden_terms(profile)
    kept = []
    for draft in drafts:
        offending = violates_hard_constraints(
            name=draft.name, ingredients=draft.ingredients, tags=draft.tags, terms=terms
        )
        if offending:
            logger.warning(f"Dropping generated recipe '{draft.name}': contains '{offending}'")
            continue
        kept.append(draft)

    if not kept:
        raise GenerationError()
    if cap and len(kept) > MAX_BATCH:
        kept = kept[:MAX_BATCH]
    elif len(kept) < MIN_BATCH:
        logger.warning(f"Only {len(kept)} usable recipes generated (expected {MIN_BATCH}-{MAX_BATCH})")
    return kept


def dietary_info(tags: Optional[Iterable[str]]) -> Optional[str]:
    """Single display label derived from tags."""
    tag_set = {t.lower() for t in tags or []}
    if "vegan" in tag_set:
        return "Vegan"
    if "vegetarian" in tag_set:
        return "Vegetarian"
    if "gluten-free" in tag_set or "gluten free" in tag_set:
        return "Gluten-Free"
    return None


_MOCK_DISHES = [
    ("Lemon Herb Chickpea Salad", "Mediterranean", "lunch", 15, "easy", ["vegan", "quick", "healthy"]),
    ("Tomato Basil Pasta", "Italian", "dinner", 25, "easy", ["vegetarian", "comfort"]),
    ("Vegetable Fried Rice", "Chinese", "dinner", 20, "easy", ["vegan", "quick"]),
    ("Overnight Oats with Berries", "American", "breakfast", 10, "easy", ["vegetarian", "sweet", "healthy"]),
    ("Black Bean Tacos", "Mexican", "lunch", 20, "easy", ["vegan", "spicy"]),
]


def mock_recipe_batch() -> list[GeneratedRecipe]:
    """Deterministic recipes for mock mode."""
    return [
        GeneratedRecipe(
            name=name,
            description=f"A simple {cuisine} {category} ready in {minutes} minutes.",
            category=category,
            cuisine=cuisine,
            cooking_time=minutes,
            prep_time=10,
            difficulty=difficulty,
            servings=2,
            ingredients=[
                GeneratedIngredient(name="olive oil", amount="1", unit="tbsp"),
                GeneratedIngredient(name="garlic", amount="2", unit="cloves"),
                GeneratedIngredient(name="salt", amount="1", unit="pinch"),
            ],
            instructions=[
                GeneratedStep(step=1, instruction="Prepare the ingredients."),
                GeneratedStep(step=2, instruction="Cook and combine everything."),
                GeneratedStep(step=3, instruction="Season and serve."),
            ],
            nutrition=GeneratedNutrition(calories=450, protein=15, carbs=60, fat=12),
            tags=tags,
            estimated_cost=8.0,
        )
        for name, cuisine, category, minutes, difficulty, tags in _MOCK_DISHES
    ]

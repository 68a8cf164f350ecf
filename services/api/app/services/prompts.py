"""Prompt text for the three generation paths."""

import math
from collections import Counter
from typing import Optional, Sequence

from ..schemas import (
    ConstraintSet,
    InteractionHistory,
    RecentMealEntry,
    RecipeCandidate,
    SavedRecipeSummary,
    UserPreferenceProfile,
)

MIN_BATCH = 3
MAX_BATCH = 5

RECOMMENDER_SYSTEM = (
    "You are an expert nutritionist and chef AI assistant. Your job is to recommend the "
    "perfect recipe for a user based on their preferences, dietary restrictions, cooking "
    "history, and the time of day."
)

SUGGESTIONS_SYSTEM = (
    "You are an expert nutritionist and chef AI assistant specializing in personalized "
    "recipe generation. Always respect dietary restrictions and create diverse, appealing recipes."
)

VOICE_SYSTEM = (
    "You are an expert nutritionist and chef AI assistant. Generate personalized recipes "
    "based on the user's spoken request and preferences."
)

RECIPE_RULES = """CRITICAL RECIPE REQUIREMENTS:
- Generate ONLY real, traditional, or well-known recipes that actually exist
- Use standard, tested cooking methods and realistic cooking times
- Ensure all ingredient combinations are authentic and commonly used together
- Each recipe has 6-10 ingredients and 4-8 clear steps
- Categories are: breakfast, lunch, dinner, dessert, or snack
- Difficulties are: easy, medium, or hard"""


def _liked_label(liked: Optional[bool]) -> str:
    if liked is True:
        return " (liked)"
    if liked is False:
        return " (disliked)"
    return ""


def _recent_meal_lines(meals: Sequence[RecentMealEntry], limit: int = 15) -> str:
    lines = [
        f"- {m.name} ({m.cuisine or '?'}, {m.category or '?'}) - {m.days_ago} days ago{_liked_label(m.liked)}"
        for m in meals[:limit]
    ]
    return "\n".join(lines) or "No recent meal history"


def _constraint_block(constraints: ConstraintSet) -> str:
    return "\n".join(constraints.hard_constraints) or "None (user has no strict dietary restrictions)"


def summarize_patterns(recipes: Sequence[SavedRecipeSummary]) -> Optional[dict]:
    """Top cuisines/categories and frequent tags across a set of recipes."""
    if not recipes:
        return None

    cuisines = Counter(r.cuisine.strip() for r in recipes if r.cuisine and r.cuisine.strip())
    categories = Counter(r.category.strip() for r in recipes if r.category and r.category.strip())
    tags = Counter(t.lower() for r in recipes for t in r.tags if t)

    # a tag is "common" if it shows up in at least 2 recipes or 20% of them
    min_occurrences = max(2, math.ceil(len(recipes) * 0.2))
    return {
        "top_cuisines": [c for c, _ in cuisines.most_common(3)],
        "top_categories": [c for c, _ in categories.most_common(3)],
        "common_tags": [t for t, n in tags.most_common() if n >= min_occurrences][:5],
    }


def pattern_insights(history: InteractionHistory) -> list[str]:
    insights = []

    favorites = summarize_patterns(history.saved)
    if favorites:
        parts = []
        if favorites["top_cuisines"]:
            parts.append(f"User's favorite recipes are primarily {', '.join(favorites['top_cuisines'])} cuisine(s)")
        if favorites["top_categories"]:
            parts.append(f"User tends to save {', '.join(favorites['top_categories'])} recipes")
        if favorites["common_tags"]:
            parts.append(f"User's favorites often include: {', '.join(favorites['common_tags'])}")
        if parts:
            insights.append(f"Based on user's saved favorites: {'; '.join(parts)}")

    created = summarize_patterns(history.created)
    if created:
        parts = []
        if created["top_cuisines"]:
            parts.append(f"User typically creates {', '.join(created['top_cuisines'])} style recipes")
        if created["top_categories"]:
            parts.append(f"User often creates {', '.join(created['top_categories'])} recipes")
        if parts:
            insights.append(f"Based on user's created recipes: {'; '.join(parts)}")

    return insights


def _disliked_block(history: InteractionHistory) -> str:
    if not history.disliked:
        return ""
    lines = []
    for r in history.disliked:
        line = f"- {r.name}"
        if r.cuisine:
            line += f" ({r.cuisine} cuisine)"
        if r.category:
            line += f" - {r.category}"
        names = [
            (i.get("name") if isinstance(i, dict) else str(i))
            for i in r.ingredients[:3]
        ]
        names = [n for n in names if n]
        if names:
            line += f" - contains: {', '.join(names)}"
        if r.tags:
            line += f" - tags: {', '.join(r.tags[:5])}"
        lines.append(line)
    return (
        "DISLIKED RECIPES TO AVOID:\n"
        "The user has explicitly disliked these recipes. Do NOT create recipes similar to them "
        "(similar flavors, ingredients, cuisines or cooking styles):\n" + "\n".join(lines)
    )


def build_recommendation_prompt(
    profile: UserPreferenceProfile,
    recent_meals: Sequence[RecentMealEntry],
    candidates: Sequence[RecipeCandidate],
    meal_type: str,
) -> str:
    candidate_lines = "\n".join(
        f"{i + 1}. ID: {c.id} | {c.name} | {c.cuisine} {c.category} | {c.difficulty} | "
        f"{c.cooking_time}min | rating {c.average_rating} | tags: {', '.join(c.tags) or '-'}"
        for i, c in enumerate(candidates)
    )
    return f"""Please recommend a recipe for {profile.name or 'the user'} for their {meal_type} today.

User Profile:
- Diet type: {', '.join(profile.diet_type) or 'No specific diet'}
- Allergies: {', '.join(profile.allergies) or 'None'}
- Dislikes: {', '.join(profile.dislikes) or 'None'}
- Preferred cuisines: {', '.join(profile.preferred_cuisines) or 'Any'}
- Cooking experience: {profile.cooking_skill or 'beginner'}
- Daily calorie goal: {profile.calorie_goal or 'not specified'}

Recent meal history (last 2 weeks):
{_recent_meal_lines(recent_meals)}

Available recipes to choose from:
{candidate_lines}

Choose the BEST recipe ID from the list above and provide:
1. recommended_recipe_id: the exact ID string from the list
2. reason: a personalized reason why this recipe is perfect for the user today
3. alternative_recipe_ids: 2-3 other IDs from the list as backup options
4. confidence: a score between 0 and 1
5. meal_type: "{meal_type}"

Never pick a recipe that conflicts with the user's allergies or diet. Avoid recipes similar to
what they've eaten recently and match their skill level."""


def build_suggestion_prompt(constraints: ConstraintSet, history: InteractionHistory) -> str:
    history_lines = []
    saved_titles = [r.name for r in history.saved[:10]]
    if saved_titles:
        history_lines.append(f"Saved recipes they like: {', '.join(saved_titles)}")
    saved_tags = list(dict.fromkeys(t for r in history.saved[:10] for t in r.tags if t))
    if saved_tags:
        history_lines.append(f"Common tags from saved recipes: {', '.join(saved_tags[:10])}")
    created_titles = [r.name for r in history.created[:5]]
    if created_titles:
        history_lines.append(f"Recipes they've created: {', '.join(created_titles)}")
    if history.recent_meals:
        history_lines.append(f"Recent meal history (last 2 weeks):\n{_recent_meal_lines(history.recent_meals)}")
    if history.recent_suggestions:
        recent = ", ".join(s.name for s in history.recent_suggestions)
        history_lines.append(f"Already suggested in the last 7 days (do not repeat): {recent}")

    disliked = _disliked_block(history)

    return f"""Generate {MIN_BATCH}-{MAX_BATCH} brand-new personalized recipe suggestions for today,
tailored to this user's preferences and history.

{RECIPE_RULES}

CRITICAL SAFETY REQUIREMENTS (MUST FOLLOW):
{_constraint_block(constraints)}

USER PREFERENCES & CONTEXT:
{chr(10).join(constraints.soft_context) or 'No specific preferences set'}

USER'S RECIPE HISTORY:
{chr(10).join(history_lines) or 'No recipe history'}

{disliked}

REQUIREMENTS:
1. Cover different meal types where possible (breakfast, lunch, dinner, snack)
2. Each recipe must be different from the recipes in their history
3. Avoid dishes similar to what they recently cooked, especially ones they disliked
4. Keep recipes simple for beginners
5. Vary cuisines when they prefer several"""


def build_voice_prompt(
    utterance: str,
    constraints: ConstraintSet,
    insights: Sequence[str],
    measurement_system: str = "metric",
) -> str:
    imperial = measurement_system == "imperial"
    units = "US Imperial units (cups, ounces, pounds, tsp, tbsp)" if imperial else \
        "Metric units (grams, kilograms, milliliters, liters)"

    preference_lines = list(constraints.soft_context) + list(insights)
    preferences = f"USER PREFERENCES:\n{chr(10).join(preference_lines)}\n\n" if preference_lines else ""

    return f"""The user just said: "{utterance}"

Generate {MIN_BATCH}-{MAX_BATCH} recipe suggestions that match their current mood and request.

{RECIPE_RULES}

CRITICAL SAFETY REQUIREMENTS (MUST FOLLOW):
{_constraint_block(constraints)}

{preferences}IMPORTANT: Use {units} for all ingredient measurements.

Based on their request "{utterance}", create recipes that:
1. Match their current mood/needs (e.g. "tired and want something quick" means quick, energizing recipes)
2. Respect their dietary restrictions
3. Are varied and appealing
4. Mention in the description why each one matches the request"""


def build_intent_check_prompt(utterance: str) -> str:
    return f"""Is this user request food or recipe-related? "{utterance}"

Rules:
- is_valid is true for anything about food, recipes, meals, cooking, eating or hunger,
  including natural language like "I'm hungry, what can I eat fast?"
- is_valid is true for moods related to food ("I'm tired and want something quick")
- is_valid is false if it is clearly not food-related, or is inappropriate or offensive
- Be lenient. When false, give a brief reason."""

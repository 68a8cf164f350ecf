"""Turns a preference profile into prompt constraints.

Allergies, disliked ingredients and strict diets become hard constraints that
no recipe may violate. Everything else is soft context that only biases
generation.
"""

from typing import Any, Iterable, Optional

from ..core.text import normalize_term
from ..schemas import ConstraintSet, UserPreferenceProfile, STRICT_DIETS

COOKING_TIME_LABELS = {
    "under_15": "under 15 minutes",
    "15_30": "15-30 minutes",
    "30_60": "30-60 minutes",
    "over_60": "over an hour",
}

MEAT_TAGS = {"meat", "beef", "pork", "chicken", "lamb", "fish", "seafood"}


def _join(values: Iterable[str]) -> str:
    return ", ".join(v for v in values if v)


def build_constraints(profile: UserPreferenceProfile, *, apply_soft: bool = True) -> ConstraintSet:
    hard: list[str] = []
    if profile.allergies:
        hard.append(f"ALLERGIES/INTOLERANCES TO AVOID: {_join(profile.allergies)}")

    diet = profile.active_diet
    if diet in STRICT_DIETS:
        hard.append(f"STRICT DIET TYPE: {diet}")

    if profile.dislikes:
        hard.append(f"NEVER USE THESE INGREDIENTS: {_join(profile.dislikes)}")

    soft: list[str] = []
    if apply_soft:
        if diet and diet not in STRICT_DIETS:
            soft.append(f"Diet preference: {diet}")
        if profile.preferred_cuisines:
            soft.append(f"Preferred cuisines: {_join(profile.preferred_cuisines)}")
        if profile.cooking_skill:
            soft.append(f"Cooking skill: {profile.cooking_skill}")
        if profile.preferred_cooking_time:
            label = COOKING_TIME_LABELS.get(profile.preferred_cooking_time, profile.preferred_cooking_time)
            soft.append(f"Preferred cooking time: {label}")
        if profile.goals:
            soft.append(f"Health goals: {_join(profile.goals)}")
        if profile.calorie_goal:
            soft.append(f"Daily calorie goal: {profile.calorie_goal} calories")
        if profile.people_count:
            noun = "person" if profile.people_count == 1 else "people"
            soft.append(f"Cooking for: {profile.people_count} {noun}")

    return ConstraintSet(hard_constraints=hard, soft_context=soft)


# --- Screening ---

def forbidden_terms(profile: UserPreferenceProfile) -> list[str]:
    terms = {normalize_term(t) for t in list(profile.allergies) + list(profile.dislikes)}
    return sorted(t for t in terms if t)


def ingredient_names(ingredients: Iterable[Any]) -> list[str]:
    names = []
    for item in ingredients or []:
        if isinstance(item, dict):
            name = item.get("name") or item.get("item")
        else:
            name = getattr(item, "name", None) or (item if isinstance(item, str) else None)
        if name:
            names.append(str(name).lower())
    return names


def violates_hard_constraints(
    *,
    name: str,
    ingredients: Iterable[Any],
    tags: Iterable[str],
    terms: list[str],
) -> Optional[str]:
    """Returns the offending term if the recipe mentions an allergen or dislike."""
    if not terms:
        return None
    haystack = ingredient_names(ingredients) + [t.lower() for t in tags or []] + [name.lower()]
    for term in terms:
        if any(term in text for text in haystack):
            return term
    return None


def is_diet_compatible(tags: Iterable[str], diet: Optional[str]) -> bool:
    """Tag-based diet check used by the rule-based fallback."""
    if not diet:
        return True
    tag_set = {t.lower() for t in tags or []}
    if diet in tag_set:
        return True
    if diet == "vegetarian":
        return "vegan" in tag_set or not (tag_set & MEAT_TAGS)
    return False

from app.schemas import UserPreferenceProfile
from app.services.constraints import (
    build_constraints,
    forbidden_terms,
    is_diet_compatible,
    violates_hard_constraints,
)


def test_strict_diet_and_allergies_are_hard():
    profile = UserPreferenceProfile(
        diet_type=["vegan"],
        allergies=["peanuts", "shellfish"],
        dislikes=["cilantro"],
        preferred_cuisines=["Thai"],
        cooking_skill="beginner",
    )
    cs = build_constraints(profile)

    assert "ALLERGIES/INTOLERANCES TO AVOID: peanuts, shellfish" in cs.hard_constraints
    assert "STRICT DIET TYPE: vegan" in cs.hard_constraints
    assert "NEVER USE THESE INGREDIENTS: cilantro" in cs.hard_constraints
    assert "Preferred cuisines: Thai" in cs.soft_context
    assert "Cooking skill: beginner" in cs.soft_context
    assert not any("vegan" in s for s in cs.soft_context)


def test_non_strict_diet_is_soft():
    cs = build_constraints(UserPreferenceProfile(diet_type=["keto"]))

    assert cs.hard_constraints == []
    assert "Diet preference: keto" in cs.soft_context


def test_strict_diet_wins_when_several_stored():
    profile = UserPreferenceProfile(diet_type=["keto", "vegetarian"])
    assert profile.active_diet == "vegetarian"
    assert "STRICT DIET TYPE: vegetarian" in build_constraints(profile).hard_constraints


def test_soft_context_can_be_suppressed():
    profile = UserPreferenceProfile(allergies=["eggs"], preferred_cuisines=["Thai"], goals=["high protein"])
    cs = build_constraints(profile, apply_soft=False)

    assert cs.soft_context == []
    assert cs.hard_constraints == ["ALLERGIES/INTOLERANCES TO AVOID: eggs"]


def test_cooking_time_and_people_labels():
    profile = UserPreferenceProfile(preferred_cooking_time="15_30", people_count=3, calorie_goal=1800)
    soft = build_constraints(profile).soft_context

    assert "Preferred cooking time: 15-30 minutes" in soft
    assert "Cooking for: 3 people" in soft
    assert "Daily calorie goal: 1800 calories" in soft


def test_screening_matches_singular_and_plural():
    terms = forbidden_terms(UserPreferenceProfile(allergies=["Peanuts"], dislikes=["cherries"]))
    assert terms == ["cherry", "peanut"]

    hit = violates_hard_constraints(
        name="Satay Noodles",
        ingredients=[{"name": "Peanut butter", "amount": "2", "unit": "tbsp"}],
        tags=["thai"],
        terms=terms,
    )
    assert hit == "peanut"

    assert violates_hard_constraints(
        name="Rice Bowl", ingredients=[{"name": "rice"}], tags=[], terms=terms
    ) is None


def test_diet_compatibility_by_tags():
    assert is_diet_compatible(["vegan", "quick"], "vegan")
    assert not is_diet_compatible(["quick"], "vegan")
    assert is_diet_compatible(["vegan"], "vegetarian")
    assert is_diet_compatible(["pasta"], "vegetarian")
    assert not is_diet_compatible(["chicken"], "vegetarian")
    assert is_diet_compatible([], None)

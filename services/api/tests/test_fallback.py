from unittest.mock import patch

from app.schemas import RecentMealEntry, RecipeCandidate, UserPreferenceProfile
from app.schemas_generation import RecommendationPick
from app.services.recommender import (
    FallbackRecommender,
    GenerationFailure,
    GenerativeRecommender,
    DailyRecommendationService,
    meal_type_for,
)


def _candidate(id, name, **kw):
    defaults = dict(cuisine="Italian", category="dinner", difficulty="easy", cooking_time=20, average_rating=4.5)
    defaults.update(kw)
    return RecipeCandidate(id=id, name=name, **defaults)


def _pool():
    # Five candidates, two of them vegan, easy and quick
    return [
        _candidate("r1", "Peanut Noodles", tags=["vegan"], ingredients=[{"name": "peanuts"}]),
        _candidate("r2", "Chicken Parmesan", tags=["chicken"]),
        _candidate("r3", "Chickpea Curry", cuisine="Indian", tags=["vegan"], cooking_time=25),
        _candidate("r4", "Beef Stew", difficulty="medium", cooking_time=90, tags=["beef"]),
        _candidate("r5", "Lentil Soup", cuisine="French", category="lunch", tags=["vegan"], cooking_time=30),
    ]


def test_vegan_peanut_user_gets_safe_pick_when_generation_fails():
    profile = UserPreferenceProfile(diet_type=["vegan"], allergies=["peanuts"], cooking_skill="beginner")
    generative = GenerativeRecommender()
    generative.mode = "gemini"
    service = DailyRecommendationService(generative=generative)

    with patch("app.services.recommender.ai_client") as mock_client:
        mock_client.generate_content_sync.return_value = None
        mock_client.last_error = "boom"
        draft = service.recommend(profile, [], _pool(), "dinner")

    assert draft.source == "fallback"
    assert draft.recipe_id in {"r3", "r5"}
    assert "r1" not in draft.alternative_ids
    assert "r2" not in draft.alternative_ids
    assert draft.confidence == 0.7


def test_recently_cooked_name_is_excluded():
    profile = UserPreferenceProfile()
    meals = [RecentMealEntry(name="Peanut Noodles", cuisine="Thai", category="lunch", days_ago=10)]

    draft = FallbackRecommender().fallback_rule_based(profile, meals, _pool(), "lunch")

    assert draft.recipe_id == "r2"
    assert draft.alternative_ids == ["r3", "r4", "r5"]


def test_same_cuisine_and_category_within_week_is_excluded():
    profile = UserPreferenceProfile()
    meals = [RecentMealEntry(name="Lasagna", cuisine="Italian", category="dinner", days_ago=3)]

    draft = FallbackRecommender().fallback_rule_based(profile, meals, _pool(), "dinner")

    assert draft.recipe_id == "r3"


def test_beginner_only_gets_easy_and_short():
    profile = UserPreferenceProfile(cooking_skill="beginner")
    pool = [
        _candidate("a", "Slow Roast", difficulty="easy", cooking_time=120),
        _candidate("b", "Souffle", difficulty="hard", cooking_time=25),
        _candidate("c", "Omelette", difficulty="easy", cooking_time=10),
    ]

    draft = FallbackRecommender().fallback_rule_based(profile, [], pool, "breakfast")

    assert draft.recipe_id == "c"
    assert draft.alternative_ids == []


def test_empty_filter_relaxes_history_but_keeps_allergens():
    profile = UserPreferenceProfile(allergies=["peanuts"])
    pool = [
        _candidate("a", "Peanut Stir Fry", ingredients=[{"name": "peanut"}]),
        _candidate("b", "Pasta Bake"),
    ]
    meals = [RecentMealEntry(name="Pasta Bake", days_ago=1)]

    draft = FallbackRecommender().fallback_rule_based(profile, meals, pool, "dinner")

    assert draft.recipe_id == "b"


def test_nothing_safe_falls_back_to_top_five():
    profile = UserPreferenceProfile(diet_type=["vegan"])
    pool = [_candidate(f"m{i}", f"Meat Dish {i}", tags=["beef"]) for i in range(7)]

    draft = FallbackRecommender().fallback_rule_based(profile, [], pool, "dinner")

    assert draft.recipe_id == "m0"
    assert draft.alternative_ids == ["m1", "m2", "m3"]


def test_reason_template():
    draft = FallbackRecommender().fallback_rule_based(UserPreferenceProfile(), [], _pool(), "lunch")
    assert draft.reason == (
        "Perfect for lunch - this Italian dinner is easy to make and highly rated by our community!"
    )


def test_generative_pick_is_used_and_unknown_alternatives_dropped():
    generative = GenerativeRecommender()
    generative.mode = "gemini"
    pick = RecommendationPick(
        recommended_recipe_id="r4",
        reason="Hearty and warming",
        alternative_recipe_ids=["r2", "does-not-exist", "r4"],
        confidence=0.9,
        meal_type="dinner",
    )

    with patch("app.services.recommender.ai_client") as mock_client:
        mock_client.generate_content_sync.return_value = pick
        result = generative.try_generative(UserPreferenceProfile(), [], _pool(), "dinner")

    assert result.source == "ai"
    assert result.recipe_id == "r4"
    assert result.alternative_ids == ["r2"]
    assert result.confidence == 0.9


def test_generative_invalid_id_is_a_failure():
    generative = GenerativeRecommender()
    generative.mode = "gemini"
    pick = RecommendationPick(recommended_recipe_id="ghost", reason="?", alternative_recipe_ids=[])

    with patch("app.services.recommender.ai_client") as mock_client:
        mock_client.generate_content_sync.return_value = pick
        result = generative.try_generative(UserPreferenceProfile(), [], _pool(), "dinner")

    assert isinstance(result, GenerationFailure)
    assert "ghost" in result.reason


def test_generative_pick_with_allergen_is_a_failure():
    generative = GenerativeRecommender()
    generative.mode = "gemini"
    pick = RecommendationPick(recommended_recipe_id="r1", reason="Nutty", alternative_recipe_ids=[])

    with patch("app.services.recommender.ai_client") as mock_client:
        mock_client.generate_content_sync.return_value = pick
        result = generative.try_generative(UserPreferenceProfile(allergies=["peanuts"]), [], _pool(), "dinner")

    assert isinstance(result, GenerationFailure)


def test_mock_mode_never_calls_ai():
    generative = GenerativeRecommender()
    generative.mode = "mock"

    with patch("app.services.recommender.ai_client") as mock_client:
        result = generative.try_generative(UserPreferenceProfile(), [], _pool(), "dinner")
        mock_client.generate_content_sync.assert_not_called()

    assert isinstance(result, GenerationFailure)


def test_meal_type_from_hour():
    from datetime import datetime

    assert meal_type_for(datetime(2026, 1, 1, 8)) == "breakfast"
    assert meal_type_for(datetime(2026, 1, 1, 11)) == "lunch"
    assert meal_type_for(datetime(2026, 1, 1, 15, 59)) == "lunch"
    assert meal_type_for(datetime(2026, 1, 1, 16)) == "dinner"

"""Pydantic schemas for the Dishwise API.

Request/response models for:
- Preference profile and interaction history (engine inputs)
- Recipes
- Daily recommendations
- Suggestion batches
- Voice suggestions
"""

from datetime import date
from typing import Optional, Any

from pydantic import BaseModel, ConfigDict, Field


STRICT_DIETS = ("vegan", "vegetarian", "halal", "kosher")


# --- Preference profile ---

class UserPreferenceProfile(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: Optional[str] = None
    diet_type: list[str] = []
    allergies: list[str] = []
    dislikes: list[str] = []
    preferred_cuisines: list[str] = []
    cooking_skill: Optional[str] = None  # beginner | intermediate | advanced
    preferred_cooking_time: Optional[str] = None
    people_count: int = Field(1, ge=1)
    goals: list[str] = []
    calorie_goal: Optional[int] = None
    measurement_system: str = "metric"
    apply_preferences_in_assistant: bool = True

    @property
    def active_diet(self) -> Optional[str]:
        """The one diet that is semantically active: a strict one wins."""
        diets = [d.strip().lower() for d in self.diet_type if d and d.strip()]
        for diet in diets:
            if diet in STRICT_DIETS:
                return diet
        return diets[0] if diets else None


# --- Interaction history ---

class SavedRecipeSummary(BaseModel):
    name: str
    tags: list[str] = []
    cuisine: Optional[str] = None
    category: Optional[str] = None


class CreatedRecipeSummary(SavedRecipeSummary):
    pass


class RecentMealEntry(BaseModel):
    name: str
    cuisine: Optional[str] = None
    category: Optional[str] = None
    liked: Optional[bool] = None
    days_ago: int = 0


class DislikedRecipeEntry(BaseModel):
    id: str
    name: str
    cuisine: Optional[str] = None
    category: Optional[str] = None
    ingredients: list[Any] = []
    tags: list[str] = []


class RecentSuggestionEntry(BaseModel):
    name: str
    cuisine: Optional[str] = None
    category: Optional[str] = None


class InteractionHistory(BaseModel):
    saved: list[SavedRecipeSummary] = []
    recent_meals: list[RecentMealEntry] = []
    created: list[CreatedRecipeSummary] = []
    disliked: list[DislikedRecipeEntry] = []
    recent_suggestions: list[RecentSuggestionEntry] = []


class ConstraintSet(BaseModel):
    hard_constraints: list[str] = []
    soft_context: list[str] = []


# --- Recipes ---

class RecipeCandidate(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: Optional[str] = None
    cuisine: Optional[str] = None
    category: Optional[str] = None
    difficulty: Optional[str] = None
    cooking_time: Optional[int] = None
    average_rating: float = 0.0
    rating_count: int = 0
    estimated_cost: Optional[float] = None
    tags: list[str] = []
    nutrition: dict = {}
    ingredients: list[Any] = []
    instructions: list[Any] = []


class RecipeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    cuisine: Optional[str] = None
    cooking_time: Optional[int] = None
    prep_time: Optional[int] = None
    difficulty: Optional[str] = None
    servings: Optional[int] = None
    image_url: Optional[str] = None
    nutrition: dict = {}
    tags: list[str] = []
    average_rating: float = 0.0
    estimated_cost: Optional[float] = None
    ingredients: list[Any] = []
    instructions: list[Any] = []


# --- Daily recommendation ---

class RecommendationOut(BaseModel):
    id: str
    recipe: RecipeOut
    reason: str
    alternatives: list[RecipeOut] = []
    presented: bool
    accepted: bool
    date: date


class RecommendationEnvelope(BaseModel):
    recommendation: RecommendationOut


class RecommendationUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    recommendation_id: Optional[str] = Field(None, alias="recommendationId")
    accepted: bool


class RecommendationUpdateOut(BaseModel):
    id: str
    presented: bool
    accepted: bool
    message: str


# --- Suggestion batches ---

class SuggestionsOut(BaseModel):
    data: list[RecipeOut]
    cached: bool


class RegenerateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: Optional[str] = Field(None, alias="userId")


# --- Voice suggestions ---

class VoiceSuggestionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: Optional[str] = Field(None, alias="userId")
    audio: Optional[str] = None  # base64
    text: Optional[str] = None
    mime_type: Optional[str] = Field(None, alias="mimeType")


class VoiceRecipeOut(RecipeOut):
    match_percentage: int
    dietary_info: Optional[str] = None


class VoiceSuggestionsOut(BaseModel):
    transcription: str
    recipes: list[VoiceRecipeOut]

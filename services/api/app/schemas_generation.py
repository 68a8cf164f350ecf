from pydantic import BaseModel, Field
from typing import Optional, List


class RecommendationPick(BaseModel):
    recommended_recipe_id: str
    reason: str
    alternative_recipe_ids: List[str] = []
    confidence: Optional[float] = Field(None, ge=0, le=1)
    meal_type: Optional[str] = None


class GeneratedIngredient(BaseModel):
    name: str
    amount: Optional[str] = None
    unit: Optional[str] = None


class GeneratedStep(BaseModel):
    step: int
    instruction: str


class GeneratedNutrition(BaseModel):
    calories: Optional[int] = None
    protein: Optional[int] = None
    carbs: Optional[int] = None
    fat: Optional[int] = None
    fiber: Optional[int] = None
    sugar: Optional[int] = None
    sodium: Optional[int] = None


class GeneratedRecipe(BaseModel):
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    cuisine: Optional[str] = None
    cooking_time: Optional[int] = None
    prep_time: Optional[int] = None
    difficulty: Optional[str] = None
    servings: Optional[int] = None
    ingredients: List[GeneratedIngredient] = []
    instructions: List[GeneratedStep] = []
    nutrition: Optional[GeneratedNutrition] = None
    tags: List[str] = []
    estimated_cost: Optional[float] = None


class GeneratedRecipeBatch(BaseModel):
    recipes: List[GeneratedRecipe]


class IntentCheck(BaseModel):
    is_valid: bool
    reason: Optional[str] = None

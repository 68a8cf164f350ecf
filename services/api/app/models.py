"""SQLAlchemy ORM models for Dishwise.

Tables:
- users: preference profile per user (read-only to the recommendation engine)
- recipes: recipe corpus, including AI-generated suggestions
- saved_recipes / meal_tracking: interaction history
- daily_recommendations: one pick per (user, date), never deleted
- user_daily_suggestions: links between a user's day and generated recipes
- suggestion_batch_ledger: per-(user, date) regeneration counter
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone, date as dt_date
from typing import Optional

from sqlalchemy import (
    String,
    DateTime,
    Date,
    Text,
    Integer,
    Boolean,
    Float,
    ForeignKey,
    Index,
    text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func
from sqlalchemy.dialects.postgresql import JSONB

from .db import Base


def generate_uuid() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """A user and their stored preference profile.

    ``diet_type`` is a list for legacy reasons; at most one entry is meant to
    be active.
    """
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    diet_type: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    allergies: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    dislikes: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    preferred_cuisines: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    goals: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)

    # beginner | intermediate | advanced
    cooking_skill: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    # under_15 | 15_30 | 30_60 | over_60
    preferred_cooking_time: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    people_count: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    calorie_goal: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # metric | imperial
    measurement_system: Mapped[str] = mapped_column(
        String(10), nullable=False, server_default="metric", default="metric"
    )
    apply_preferences_in_assistant: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default=text("true"), default=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class Recipe(Base):
    """Recipe corpus row. AI suggestions are stored here too (creator_type='ai')."""
    __tablename__ = "recipes"
    __table_args__ = (
        Index("ix_recipes_rating", "average_rating", "rating_count"),
        Index("ix_recipes_creator_user_id", "creator_user_id"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    cuisine: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)
    difficulty: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    cooking_time: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    prep_time: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    servings: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # [{"name": ..., "amount": ..., "unit": ...}]
    ingredients: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    # [{"step": 1, "instruction": ...}]
    instructions: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    nutrition: Mapped[dict] = mapped_column(JSONB, nullable=False, default=dict)
    tags: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)

    image_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    estimated_cost: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    average_rating: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    rating_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # "ai" | "user" | "editorial"
    creator_type: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    creator_user_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )


class SavedRecipe(Base):
    __tablename__ = "saved_recipes"
    __table_args__ = (
        UniqueConstraint("user_id", "recipe_id", name="uq_saved_recipe_user_recipe"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    recipe_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )

    recipe: Mapped["Recipe"] = relationship("Recipe")


class MealTracking(Base):
    """A cooked meal. ``liked`` False marks the recipe as disliked."""
    __tablename__ = "meal_tracking"
    __table_args__ = (
        Index("ix_meal_tracking_user_cooked", "user_id", "cooked_date"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    recipe_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False
    )
    cooked_date: Mapped[dt_date] = mapped_column(Date, nullable=False)
    liked: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)

    recipe: Mapped["Recipe"] = relationship("Recipe")


class DailyRecommendation(Base):
    """Historical record of the single daily pick. Never deleted."""
    __tablename__ = "daily_recommendations"
    __table_args__ = (
        UniqueConstraint("user_id", "date", name="uq_daily_recommendation_user_date"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    date: Mapped[dt_date] = mapped_column(Date, nullable=False)
    recommended_recipe_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("recipes.id"), nullable=False
    )
    alternative_recipe_ids: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    confidence: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    meal_type: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    source: Mapped[str] = mapped_column(String(20), nullable=False, default="ai")  # ai | fallback

    presented: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    accepted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )

    recipe: Mapped["Recipe"] = relationship("Recipe")


class DailySuggestion(Base):
    """Links one generated recipe to a user's day."""
    __tablename__ = "user_daily_suggestions"
    __table_args__ = (
        UniqueConstraint("user_id", "date", "recipe_id", name="uq_daily_suggestion_user_date_recipe"),
        Index("ix_daily_suggestions_user_date", "user_id", "date"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    date: Mapped[dt_date] = mapped_column(Date, nullable=False)
    recipe_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False
    )
    generated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    recipe: Mapped["Recipe"] = relationship("Recipe")


class SuggestionBatchLedger(Base):
    """How many suggestion batches were produced for a (user, date)."""
    __tablename__ = "suggestion_batch_ledger"
    __table_args__ = (
        UniqueConstraint("user_id", "date", name="uq_suggestion_ledger_user_date"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    date: Mapped[dt_date] = mapped_column(Date, nullable=False)
    batches_generated: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_generated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

"""Initial schema: users, recipes, history, recommendations, suggestions, batch ledger

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _json_list(name: str) -> sa.Column:
    return sa.Column(name, postgresql.JSONB, nullable=False, server_default=sa.text("'[]'::jsonb"))


def upgrade() -> None:
    # Users / preference profile
    op.create_table(
        "users",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(200), nullable=True),
        _json_list("diet_type"),
        _json_list("allergies"),
        _json_list("dislikes"),
        _json_list("preferred_cuisines"),
        _json_list("goals"),
        sa.Column("cooking_skill", sa.String(20), nullable=True),
        sa.Column("preferred_cooking_time", sa.String(20), nullable=True),
        sa.Column("people_count", sa.Integer, nullable=False, server_default="1"),
        sa.Column("calorie_goal", sa.Integer, nullable=True),
        sa.Column("measurement_system", sa.String(10), nullable=False, server_default="metric"),
        sa.Column("apply_preferences_in_assistant", sa.Boolean, nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # Recipe corpus
    op.create_table(
        "recipes",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("category", sa.String(40), nullable=True),
        sa.Column("cuisine", sa.String(80), nullable=True),
        sa.Column("difficulty", sa.String(20), nullable=True),
        sa.Column("cooking_time", sa.Integer, nullable=True),
        sa.Column("prep_time", sa.Integer, nullable=True),
        sa.Column("servings", sa.Integer, nullable=True),
        _json_list("ingredients"),
        _json_list("instructions"),
        sa.Column("nutrition", postgresql.JSONB, nullable=False, server_default=sa.text("'{}'::jsonb")),
        _json_list("tags"),
        sa.Column("image_url", sa.Text, nullable=True),
        sa.Column("estimated_cost", sa.Float, nullable=True),
        sa.Column("average_rating", sa.Float, nullable=False, server_default="0"),
        sa.Column("rating_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("creator_type", sa.String(20), nullable=True),
        sa.Column("creator_user_id", sa.String(36), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_recipes_rating", "recipes", ["average_rating", "rating_count"])
    op.create_index("ix_recipes_creator_user_id", "recipes", ["creator_user_id"])

    # Interaction history
    op.create_table(
        "saved_recipes",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("recipe_id", sa.String(36), sa.ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("user_id", "recipe_id", name="uq_saved_recipe_user_recipe"),
    )

    op.create_table(
        "meal_tracking",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("recipe_id", sa.String(36), sa.ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False),
        sa.Column("cooked_date", sa.Date, nullable=False),
        sa.Column("liked", sa.Boolean, nullable=True),
    )
    op.create_index("ix_meal_tracking_user_cooked", "meal_tracking", ["user_id", "cooked_date"])

    # Daily recommendation (one per user per day, never deleted)
    op.create_table(
        "daily_recommendations",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("date", sa.Date, nullable=False),
        sa.Column("recommended_recipe_id", sa.String(36), sa.ForeignKey("recipes.id"), nullable=False),
        _json_list("alternative_recipe_ids"),
        sa.Column("reason", sa.Text, nullable=False),
        sa.Column("confidence", sa.Float, nullable=True),
        sa.Column("meal_type", sa.String(20), nullable=True),
        sa.Column("source", sa.String(20), nullable=False, server_default="ai"),
        sa.Column("presented", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("accepted", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("user_id", "date", name="uq_daily_recommendation_user_date"),
    )

    # Suggestion batches
    op.create_table(
        "user_daily_suggestions",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("date", sa.Date, nullable=False),
        sa.Column("recipe_id", sa.String(36), sa.ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False),
        sa.Column("generated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("user_id", "date", "recipe_id", name="uq_daily_suggestion_user_date_recipe"),
    )
    op.create_index("ix_daily_suggestions_user_date", "user_daily_suggestions", ["user_id", "date"])

    op.create_table(
        "suggestion_batch_ledger",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("date", sa.Date, nullable=False),
        sa.Column("batches_generated", sa.Integer, nullable=False, server_default="0"),
        sa.Column("last_generated_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("user_id", "date", name="uq_suggestion_ledger_user_date"),
    )


def downgrade() -> None:
    op.drop_table("suggestion_batch_ledger")
    op.drop_table("user_daily_suggestions")
    op.drop_table("daily_recommendations")
    op.drop_table("meal_tracking")
    op.drop_table("saved_recipes")
    op.drop_table("recipes")
    op.drop_table("users")

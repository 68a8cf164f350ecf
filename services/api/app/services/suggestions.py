"""Per-day batches of freshly generated recipe suggestions.

A batch is cached as ``user_daily_suggestions`` links for (user, date). The
number of batches a user may produce per day is tracked in
``suggestion_batch_ledger``; a slot is reserved atomically before the
generative service is called and released again if nothing was saved.
"""

import logging
from datetime import date
from typing import Optional

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.ai_client import ai_client
from ..errors import GenerationError, InvalidRequestError, NotFoundError, PersistenceError, RateLimitError
from ..models import DailySuggestion, Recipe, SuggestionBatchLedger, User, utcnow
from ..schemas import RecipeOut, SuggestionsOut
from ..schemas_generation import GeneratedRecipe, GeneratedRecipeBatch
from ..settings import settings
from .constraints import build_constraints
from .context import UserContext, aggregate_context, disliked_recipe_ids_query
from .prompts import SUGGESTIONS_SYSTEM, build_suggestion_prompt
from .recipe_store import mock_recipe_batch, persist_generated_recipe, prepare_batch

logger = logging.getLogger("dishwise.suggestions")


class SuggestionBatchGenerator:
    def __init__(self, max_batches: Optional[int] = None):
        self.mode = settings.ai_mode
        self.max_batches = max_batches or settings.max_suggestion_batches_per_day

    # --- Cache ---

    def has_batch(self, db: Session, user_id: str, day: date) -> bool:
        link = db.scalar(
            select(DailySuggestion.id)
            .where(DailySuggestion.user_id == user_id, DailySuggestion.date == day)
            .limit(1)
        )
        return link is not None

    def cached_batch(self, db: Session, user_id: str, day: date) -> list[Recipe]:
        """Today's linked recipes, minus any the user has since disliked."""
        return list(db.scalars(
            select(Recipe)
            .join(DailySuggestion, DailySuggestion.recipe_id == Recipe.id)
            .where(
                DailySuggestion.user_id == user_id,
                DailySuggestion.date == day,
                Recipe.id.notin_(disliked_recipe_ids_query(user_id)),
            )
            .order_by(DailySuggestion.generated_at, Recipe.created_at)
        ).all())

    # --- Regeneration budget ---

    def batches_used(self, db: Session, user_id: str, day: date) -> int:
        used = db.scalar(
            select(SuggestionBatchLedger.batches_generated).where(
                SuggestionBatchLedger.user_id == user_id,
                SuggestionBatchLedger.date == day,
            )
        )
        return used or 0

    def _ensure_ledger(self, db: Session, user_id: str, day: date) -> None:
        exists = db.scalar(
            select(SuggestionBatchLedger.id).where(
                SuggestionBatchLedger.user_id == user_id,
                SuggestionBatchLedger.date == day,
            )
        )
        if exists is not None:
            return
        db.add(SuggestionBatchLedger(user_id=user_id, date=day, batches_generated=0))
        try:
            db.commit()
        except IntegrityError:
            # created concurrently
            db.rollback()

    def reserve_slot(self, db: Session, user_id: str, day: date) -> bool:
        self._ensure_ledger(db, user_id, day)
        result = db.execute(
            update(SuggestionBatchLedger)
            .where(
                SuggestionBatchLedger.user_id == user_id,
                SuggestionBatchLedger.date == day,
                SuggestionBatchLedger.batches_generated < self.max_batches,
            )
            .values(
                batches_generated=SuggestionBatchLedger.batches_generated + 1,
                last_generated_at=utcnow(),
            )
        )
        db.commit()
        return result.rowcount == 1

    def release_slot(self, db: Session, user_id: str, day: date) -> None:
        db.rollback()
        db.execute(
            update(SuggestionBatchLedger)
            .where(
                SuggestionBatchLedger.user_id == user_id,
                SuggestionBatchLedger.date == day,
                SuggestionBatchLedger.batches_generated > 0,
            )
            .values(batches_generated=SuggestionBatchLedger.batches_generated - 1)
        )
        db.commit()

    # --- Generation ---

    def generate_drafts(self, ctx: UserContext) -> list[GeneratedRecipe]:
        if self.mode == "mock":
            drafts = mock_recipe_batch()
        else:
            prompt = build_suggestion_prompt(build_constraints(ctx.profile), ctx.history)
            batch = ai_client.generate_content_sync(
                prompt=prompt,
                response_model=GeneratedRecipeBatch,
                system_instruction=SUGGESTIONS_SYSTEM,
            )
            if batch is None or not batch.recipes:
                logger.error(f"Suggestion generation failed for user={ctx.user_id}: {ai_client.last_error}")
                raise GenerationError()
            drafts = batch.recipes
        return prepare_batch(drafts, ctx.profile)

    def _persist_batch(
        self,
        db: Session,
        user_id: str,
        day: date,
        drafts: list[GeneratedRecipe],
        replace: bool,
    ) -> list[Recipe]:
        if replace:
            db.execute(
                delete(DailySuggestion).where(
                    DailySuggestion.user_id == user_id,
                    DailySuggestion.date == day,
                )
            )

        generated_at = utcnow()
        saved: list[Recipe] = []
        for draft in drafts:
            try:
                with db.begin_nested():
                    recipe = persist_generated_recipe(db, user_id, draft)
                    db.add(DailySuggestion(
                        user_id=user_id,
                        date=day,
                        recipe_id=recipe.id,
                        generated_at=generated_at,
                    ))
                    db.flush()
            except SQLAlchemyError as e:
                logger.error(f"Failed to save suggested recipe '{draft.name}' for user={user_id}: {e}")
                continue
            saved.append(recipe)
        return saved

    def regenerate(self, db: Session, user_id: str, day: date, replace: bool) -> list[Recipe]:
        if not self.reserve_slot(db, user_id, day):
            logger.warning(f"Regeneration limit reached for user={user_id} date={day}")
            raise RateLimitError()

        try:
            ctx = aggregate_context(db, user_id, day, include_recent_suggestions=True)
            drafts = self.generate_drafts(ctx)
            saved = self._persist_batch(db, user_id, day, drafts, replace)
            if not saved:
                raise PersistenceError()
            db.commit()
        except Exception:
            self.release_slot(db, user_id, day)
            raise

        logger.info(f"Generated {len(saved)} suggestions for user={user_id} date={day}")
        return saved

    def get_suggestions(
        self,
        db: Session,
        user_id: Optional[str],
        day: date,
        force: bool = False,
    ) -> SuggestionsOut:
        if not user_id:
            raise InvalidRequestError("User ID is required")
        if db.get(User, user_id) is None:
            raise NotFoundError("User preferences not found")

        if not force and self.has_batch(db, user_id, day):
            # May be short (or empty) once the user dislikes suggestions; never refilled here
            cached = self.cached_batch(db, user_id, day)
            return SuggestionsOut(data=[RecipeOut.model_validate(r) for r in cached], cached=True)

        saved = self.regenerate(db, user_id, day, replace=force)
        return SuggestionsOut(data=[RecipeOut.model_validate(r) for r in saved], cached=False)


suggestion_generator = SuggestionBatchGenerator()

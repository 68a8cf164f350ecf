import base64
import binascii
import logging
from datetime import date
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.ai_client import ai_client
from ..errors import (
    GenerationError,
    IntentRejectedError,
    InvalidRequestError,
    PersistenceError,
    TranscriptionError,
)
from ..schemas import RecipeOut, UserPreferenceProfile, VoiceRecipeOut, VoiceSuggestionRequest, VoiceSuggestionsOut
from ..schemas_generation import GeneratedRecipe, GeneratedRecipeBatch, IntentCheck
from ..settings import settings
from .constraints import build_constraints
from .context import aggregate_context
from .match_score import MatchScorer, match_scorer
from .prompts import MAX_BATCH, VOICE_SYSTEM, build_intent_check_prompt, build_voice_prompt, pattern_insights
from .recipe_store import dietary_info, mock_recipe_batch, persist_generated_recipe, prepare_batch

logger = logging.getLogger("dishwise.voice")

DEFAULT_AUDIO_MIME = "audio/mp4"


def applies_soft_preferences(profile: UserPreferenceProfile) -> bool:
    if not settings.assistant_preferences_enabled:
        return True
    return profile.apply_preferences_in_assistant


class VoiceIntentRecommender:
    """On-demand recipes for a spoken or typed request. Nothing is cached per day."""

    def __init__(self, scorer: Optional[MatchScorer] = None):
        self.mode = settings.ai_mode
        self.scorer = scorer or match_scorer

    def transcribe(self, audio_b64: str, mime_type: Optional[str]) -> str:
        try:
            audio = base64.b64decode(audio_b64, validate=True)
        except (binascii.Error, ValueError):
            raise InvalidRequestError("Audio must be base64 encoded")

        mime = mime_type or DEFAULT_AUDIO_MIME
        try:
            return ai_client.transcribe_audio(audio, mime)
        except Exception as e:
            logger.warning(f"Inline transcription failed, retrying via upload: {e}")

        try:
            return ai_client.transcribe_audio_via_upload(audio, mime)
        except Exception as e:
            logger.error(f"Transcription failed: {e}")
            raise TranscriptionError() from e

    def check_intent(self, utterance: str) -> None:
        """Rejects clearly non-food requests. A failed check lets the request through."""
        if self.mode == "mock":
            return
        verdict = ai_client.generate_content_sync(
            prompt=build_intent_check_prompt(utterance),
            response_model=IntentCheck,
        )
        if verdict is None:
            logger.warning("Intent check unavailable; continuing")
            return
        if not verdict.is_valid:
            logger.info(f"Rejected non-food request: {verdict.reason}")
            raise IntentRejectedError(transcription=utterance)

    def generate_drafts(self, utterance: str, profile: UserPreferenceProfile, insights: list[str], apply_soft: bool):
        if self.mode == "mock":
            return mock_recipe_batch()

        prompt = build_voice_prompt(
            utterance,
            build_constraints(profile, apply_soft=apply_soft),
            insights,
            measurement_system=profile.measurement_system,
        )
        batch = ai_client.generate_content_sync(
            prompt=prompt,
            response_model=GeneratedRecipeBatch,
            system_instruction=VOICE_SYSTEM,
        )
        if batch is None or not batch.recipes:
            logger.error(f"Voice generation failed: {ai_client.last_error}")
            raise GenerationError()
        return batch.recipes

    def _persist_and_score(
        self,
        db: Session,
        user_id: str,
        utterance: str,
        drafts: list[GeneratedRecipe],
    ) -> list[VoiceRecipeOut]:
        results = []
        for draft in drafts:
            try:
                with db.begin_nested():
                    recipe = persist_generated_recipe(db, user_id, draft)
            except SQLAlchemyError as e:
                logger.error(f"Failed to save voice recipe '{draft.name}' for user={user_id}: {e}")
                continue

            out = RecipeOut.model_validate(recipe)
            score = self.scorer.score(
                utterance,
                name=recipe.name,
                description=recipe.description,
                tags=recipe.tags,
                cooking_time=recipe.cooking_time,
            )
            results.append(VoiceRecipeOut(
                **out.model_dump(),
                match_percentage=score,
                dietary_info=dietary_info(recipe.tags),
            ))
        return results

    def suggest(self, db: Session, req: VoiceSuggestionRequest) -> VoiceSuggestionsOut:
        if not req.user_id:
            raise InvalidRequestError("User ID is required")

        ctx = aggregate_context(db, req.user_id, date.today())

        if req.text and req.text.strip():
            utterance = req.text.strip()
        elif req.audio:
            utterance = self.transcribe(req.audio, req.mime_type)
        else:
            raise InvalidRequestError("Either audio or text is required")

        if not utterance:
            raise InvalidRequestError("No transcription available")

        self.check_intent(utterance)

        apply_soft = applies_soft_preferences(ctx.profile)
        insights = pattern_insights(ctx.history) if apply_soft else []
        drafts = prepare_batch(
            self.generate_drafts(utterance, ctx.profile, insights, apply_soft),
            ctx.profile,
            cap=False,
        )

        results = self._persist_and_score(db, req.user_id, utterance, drafts)
        if not results:
            db.rollback()
            raise PersistenceError()
        db.commit()

        results.sort(key=lambda r: r.match_percentage, reverse=True)
        logger.info(f"Voice suggestions for user={req.user_id}: {len(results)} recipes")
        return VoiceSuggestionsOut(transcription=utterance, recipes=results[:MAX_BATCH])


voice_recommender = VoiceIntentRecommender()

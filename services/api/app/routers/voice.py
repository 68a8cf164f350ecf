from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..deps import get_db
from ..schemas import VoiceSuggestionRequest, VoiceSuggestionsOut
from ..services.voice import voice_recommender

router = APIRouter()


@router.post("/voice-suggestions", response_model=VoiceSuggestionsOut)
def voice_suggestions(
    body: VoiceSuggestionRequest,
    db: Session = Depends(get_db),
):
    """Recipes for a spoken (base64 audio) or typed request, best match first."""
    return voice_recommender.suggest(db, body)

"""
Router for the daily recommendation.
"""

from datetime import date

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..deps import get_db, get_reference_date, require_user_id
from ..schemas import RecommendationEnvelope, RecommendationUpdate, RecommendationUpdateOut
from ..services.recommender import recommendation_service

router = APIRouter()


@router.get("/recommendations", response_model=RecommendationEnvelope)
def get_recommendation(
    user_id: str = Depends(require_user_id),
    ref_date: date = Depends(get_reference_date),
    db: Session = Depends(get_db),
):
    """Today's pick. Created on first request, then returned unchanged."""
    rec = recommendation_service.get_or_create(db, user_id, ref_date)
    return RecommendationEnvelope(recommendation=rec)


@router.put("/recommendations", response_model=RecommendationUpdateOut)
def respond_to_recommendation(
    body: RecommendationUpdate,
    db: Session = Depends(get_db),
):
    return recommendation_service.set_response(db, body.recommendation_id, body.accepted)

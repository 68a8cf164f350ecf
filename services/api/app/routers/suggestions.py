"""
Router for today's suggestion batch.
"""

from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..deps import get_db, get_reference_date, require_user_id
from ..schemas import RegenerateRequest, SuggestionsOut
from ..services.suggestions import suggestion_generator

router = APIRouter()


@router.get("/today-suggestions", response_model=SuggestionsOut)
def get_today_suggestions(
    user_id: str = Depends(require_user_id),
    ref_date: date = Depends(get_reference_date),
    force_regenerate: bool = Query(False, alias="forceRegenerate"),
    db: Session = Depends(get_db),
):
    return suggestion_generator.get_suggestions(db, user_id, ref_date, force=force_regenerate)


@router.post("/today-suggestions/regenerate", response_model=SuggestionsOut)
def regenerate_today_suggestions(
    body: RegenerateRequest,
    db: Session = Depends(get_db),
):
    """Replace today's batch. Limited per user per day."""
    return suggestion_generator.get_suggestions(db, body.user_id, date.today(), force=True)

"""FastAPI dependencies for Dishwise API.

Provides:
- Database session dependency
- User id and reference date resolution from query parameters
"""

from datetime import date
from typing import Optional

from fastapi import Query

from .db import get_db  # noqa: F401
from .errors import InvalidRequestError


def require_user_id(user_id: Optional[str] = Query(None, alias="userId")) -> str:
    """userId query parameter. Missing or blank -> 400 (not FastAPI's 422)."""
    if not user_id or not user_id.strip():
        raise InvalidRequestError("User ID is required")
    return user_id.strip()


def get_reference_date(ref_date: Optional[date] = Query(None, alias="date")) -> date:
    """The day being asked about; defaults to today on the server clock."""
    return ref_date or date.today()

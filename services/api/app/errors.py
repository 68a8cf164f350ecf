"""Domain errors for the Dishwise API.

Every error carries the HTTP status it maps to; ``register_error_handlers``
renders them as ``{"detail": message, **extra}``.
"""

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger("dishwise.errors")


class DishwiseError(Exception):
    status_code = 500
    default_message = "Internal error"

    def __init__(self, message: Optional[str] = None, **extra: Any):
        self.message = message or self.default_message
        self.extra = extra
        super().__init__(self.message)


class InvalidRequestError(DishwiseError):
    """A required input is missing or empty."""
    status_code = 400
    default_message = "Invalid request"


class NotFoundError(DishwiseError):
    status_code = 404
    default_message = "Not found"


class GenerationError(DishwiseError):
    """Generative service unreachable, or its output is unusable."""
    status_code = 500
    default_message = "Failed to generate suggestions. Please try again later."


class RateLimitError(DishwiseError):
    status_code = 429
    default_message = "You've already regenerated suggestions. Please try again tomorrow."

    def __init__(self, message: Optional[str] = None, **extra: Any):
        extra.setdefault("limitReached", True)
        super().__init__(message, **extra)


class PersistenceError(DishwiseError):
    status_code = 500
    default_message = "Failed to save any recipes"


class TranscriptionError(DishwiseError):
    status_code = 500
    default_message = "Failed to transcribe audio. Please try typing your request instead."


class IntentRejectedError(DishwiseError):
    """The utterance is not a food or recipe request."""
    status_code = 400
    default_message = (
        "This doesn't seem to be a food-related request. "
        "Please try asking about recipes or meals."
    )

    def __init__(self, message: Optional[str] = None, **extra: Any):
        extra.setdefault("type", "invalid")
        super().__init__(message, **extra)


async def _dishwise_error_handler(request: Request, exc: DishwiseError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, **exc.extra},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DishwiseError, _dishwise_error_handler)

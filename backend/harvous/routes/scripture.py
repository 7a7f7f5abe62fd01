"""
Harvous Backend - Scripture Route Handlers
===========================================

What:  POST /api/scripture/detect, /fetch-verse and /check-existing.
Who:   The editor (live detection while typing, "add verse" button) and the
       scripture note composer.

/detect takes the body as raw JSON rather than a schema so that every
malformed payload (missing text, non-string, empty) is a 400 with the usual
error body instead of FastAPI's 422.
"""

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from harvous.database import get_db_session
from harvous.dependencies import get_current_user_id
from harvous.exceptions import ValidationError
from harvous.schemas.common import ErrorResponse
from harvous.schemas.scripture import (
    CheckExistingRequest,
    CheckExistingResponse,
    DetectResponse,
    FetchVerseRequest,
    VerseResponse,
)
from harvous.services.scripture_service import scripture_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/scripture", tags=["Scripture"])


@router.post(
    "/detect",
    response_model=DetectResponse,
    responses={
        400: {"description": "Missing or invalid text", "model": ErrorResponse},
        401: {"description": "Missing user header", "model": ErrorResponse},
    },
    summary="Detect scripture references in text",
)
async def detect_scripture(
    payload: Any = Body(default=None),
    user_id: str = Depends(get_current_user_id),
) -> DetectResponse:
    """
    Body: {"text": "<p>Read John 3:16</p>"}

    HTML is stripped before detection; offsets refer to the plain text.
    """
    text = payload.get("text") if isinstance(payload, dict) else None
    if not isinstance(text, str) or not text:
        raise ValidationError("Text is required and must be a non-empty string", field="text")

    result = scripture_service.detect_in_text(text)
    logger.debug("User %s: detect found %d reference(s)", user_id, len(result.matches))
    return result


@router.post(
    "/fetch-verse",
    response_model=VerseResponse,
    responses={
        400: {"description": "Unparseable reference", "model": ErrorResponse},
        404: {"description": "No verses for the reference", "model": ErrorResponse},
        503: {"description": "Verse API unavailable", "model": ErrorResponse},
    },
    summary="Fetch verse text for a reference",
)
async def fetch_verse(
    body: FetchVerseRequest,
    user_id: str = Depends(get_current_user_id),
) -> VerseResponse:
    return await scripture_service.fetch_verse(body.reference)


@router.post(
    "/check-existing",
    response_model=CheckExistingResponse,
    summary="Check whether a scripture note already exists for a reference",
)
async def check_existing(
    body: CheckExistingRequest,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> CheckExistingResponse:
    return await scripture_service.check_existing(db, user_id, body.reference, body.thread_id)

# apps/backend/bookster/routers/generate.py
from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, HTTPException

from .. import ai
from ..deps import get_current_user, require_credits
from ..models import BookDetails, ChaptersOut, ContentOut, RegenerateIn
from ..users import deduct_credits, is_admin

logger = logging.getLogger(__name__)

router = APIRouter()

GENERATION_COST = 1


def _charge(user: Dict[str, Any], action: str, book_id: str | None = None) -> None:
    if is_admin(user):
        return
    if not deduct_credits(user["id"], GENERATION_COST, action, book_id=book_id):
        # balance changed between the check and the charge
        logger.warning("Credit deduction failed for user %s (%s)", user.get("id"), action)


@router.post("/chapters/generate", response_model=ChaptersOut, response_model_by_alias=True)
def generate_chapters(
    payload: BookDetails = Body(...),
    user: Dict[str, Any] = Depends(get_current_user),
):
    if not payload.title.strip() or not payload.description.strip():
        raise HTTPException(status_code=400, detail="Title and description are required")
    require_credits(user, GENERATION_COST, action="chapter generation")

    try:
        chapters = ai.generate_chapters(payload)
    except ai.GenerationError as e:
        raise HTTPException(status_code=502, detail=str(e))

    _charge(user, "generate_chapters", payload.book_id)
    return ChaptersOut(chapters=chapters)


@router.post("/chapters/regenerate", response_model=ContentOut, response_model_by_alias=True)
def regenerate_chapter(
    payload: RegenerateIn = Body(...),
    user: Dict[str, Any] = Depends(get_current_user),
):
    if not payload.chapter_title.strip() or payload.book_details is None:
        raise HTTPException(status_code=400, detail="Chapter title and book details are required")
    require_credits(user, GENERATION_COST, action="chapter regeneration")

    try:
        content = ai.regenerate_chapter(payload.chapter_title, payload.book_details)
    except ai.GenerationError as e:
        raise HTTPException(status_code=502, detail=str(e))

    _charge(user, "regenerate_chapter", payload.book_details.book_id)
    return ContentOut(content=content)

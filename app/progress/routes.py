from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.auth.models import User
from app.core.deps import get_current_user
from app.db.session import get_db
from app.gamification.mastery import get_mastery_progress
from app.progress.service import (
    CooldownActiveError,
    VerseNotFoundError,
    record_verse_attempt,
    record_word_progress,
    reset_word_streak,
)

router = APIRouter(prefix="/progress", tags=["progress"])

VERSE_NOT_FOUND = "Verse not found or unauthorized"


class WordProgressRequest(BaseModel):
    verse_reference: str = Field(..., min_length=1)
    word_index: int
    word: str = Field(..., min_length=1)
    is_correct: bool
    # ISO string or epoch milliseconds
    created_at: Optional[datetime] = None


class VerseAttemptRequest(BaseModel):
    verse_reference: str = Field(..., min_length=1)
    words_correct: int = Field(..., ge=0)
    total_words: int = Field(..., ge=1)
    created_at: Optional[datetime] = None


class VerseStreakResetRequest(BaseModel):
    verse_reference: str = Field(..., min_length=1)


# ======================================================
# WORD-BY-WORD PROGRESS
# ======================================================
@router.post("/word")
def post_word_progress(
    body: WordProgressRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        result = record_word_progress(
            db,
            user.id,
            body.verse_reference,
            body.word_index,
            body.word,
            body.is_correct,
            body.created_at,
        )
    except VerseNotFoundError:
        raise HTTPException(status_code=404, detail=VERSE_NOT_FOUND)
    return {
        "success": True,
        "streak_length": result.streak_length,
        "points_earned": result.points_earned,
    }


# ======================================================
# WHOLE-VERSE ATTEMPTS
# ======================================================
@router.post("/attempt")
@router.post("/verse", include_in_schema=False)
def post_verse_attempt(
    body: VerseAttemptRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    if body.words_correct > body.total_words:
        raise HTTPException(status_code=400, detail="words_correct cannot exceed total_words")
    try:
        result = record_verse_attempt(
            db,
            user.id,
            body.verse_reference,
            body.words_correct,
            body.total_words,
            body.created_at,
        )
    except VerseNotFoundError:
        raise HTTPException(status_code=404, detail=VERSE_NOT_FOUND)
    except CooldownActiveError as exc:
        raise HTTPException(status_code=429, detail=str(exc))
    return {"success": True, "points_earned": result.points_earned, "mastered": result.mastered}


@router.get("/mastery/{verse_reference}")
def get_mastery(
    verse_reference: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return get_mastery_progress(db, user.id, verse_reference)


@router.post("/verse-streak/reset")
def post_verse_streak_reset(
    body: VerseStreakResetRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    reset_word_streak(db, user.id, body.verse_reference)
    return {"success": True}

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.auth.models import User
from app.core.clock import isoformat, utcnow
from app.core.deps import get_current_user
from app.db.session import get_db
from app.verses.models import Verse, VERSE_STATUSES
from app.verses.sample_sets import DEFAULT_TRANSLATION
from app.verses.service import add_verse_set, award_verse_added, delete_verse, get_verse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/verses", tags=["verses"])


class VerseCreate(BaseModel):
    reference: str
    text: str
    translation: Optional[str] = None


class VerseUpdate(BaseModel):
    text: Optional[str] = None
    translation: Optional[str] = None
    status: Optional[str] = None


class AssignSetRequest(BaseModel):
    verse_set: str


def _verse_out(verse: Verse) -> dict:
    return {
        "reference": verse.reference,
        "text": verse.text,
        "translation": verse.translation,
        "status": verse.status,
        "created_at": isoformat(verse.created_at),
    }


@router.get("")
def list_verses(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    verses = (
        db.query(Verse)
        .filter(Verse.user_id == user.id)
        .order_by(Verse.created_at.desc(), Verse.id.desc())
        .all()
    )
    return [_verse_out(v) for v in verses]


@router.post("", status_code=201)
def add_verse(
    body: VerseCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    reference = body.reference.strip()
    text = body.text.strip()
    if not reference or not text:
        raise HTTPException(status_code=400, detail="Reference and text are required")

    if get_verse(db, user.id, reference):
        raise HTTPException(status_code=409, detail="Verse already exists")

    now = utcnow()
    db.add(
        Verse(
            user_id=user.id,
            reference=reference,
            text=text,
            translation=body.translation or DEFAULT_TRANSLATION,
            status="not_started",
            created_at=now,
        )
    )
    db.flush()
    points = award_verse_added(db, user.id, reference, now)
    db.commit()
    return {"success": True, "points_earned": points}


@router.put("/{reference}", status_code=204)
def update_verse(
    reference: str,
    body: VerseUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    verse = get_verse(db, user.id, reference)
    if not verse:
        raise HTTPException(status_code=404, detail="Verse not found or unauthorized")

    updates = body.model_dump(exclude_none=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No updates provided")
    if "status" in updates and updates["status"] not in VERSE_STATUSES:
        raise HTTPException(status_code=400, detail="Invalid status")

    for field, value in updates.items():
        setattr(verse, field, value)
    db.commit()
    return Response(status_code=204)


@router.delete("/{reference}", status_code=204)
def remove_verse(
    reference: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    if not get_verse(db, user.id, reference):
        raise HTTPException(status_code=404, detail="Verse not found")
    delete_verse(db, user.id, reference)
    return Response(status_code=204)


@router.post("/assign-set")
def assign_verse_set(
    body: AssignSetRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    added = add_verse_set(db, user.id, body.verse_set, utcnow())
    db.commit()
    return {"success": True, "added": added}

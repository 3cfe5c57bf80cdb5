"""
Mastery detection.

A verse is mastered when, looking at attempts newest first:
  - there are at least MASTERY["min_attempts"] attempts,
  - some window of MASTERY["consecutive_perfect"] consecutive attempts is
    all perfect (the earliest such window from the newest end is used),
  - accuracy over every attempt from the newest through the end of that
    window is >= MASTERY["min_accuracy"].
Mastery is recorded once and never revoked.
"""
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.core.clock import event_time, isoformat
from app.db.upsert import insert_for
from app.gamification.constants import MASTERY, POINTS, MASTERY_ACHIEVED
from app.gamification.points import award_points
from app.progress.models import VerseAttempt, MasteredVerse
from app.verses.models import Verse

logger = logging.getLogger(__name__)

RECENT_ATTEMPTS_LIMIT = 10


def _attempts_newest_first(db: Session, user_id: int, verse_reference: str):
    return db.execute(
        select(VerseAttempt.words_correct, VerseAttempt.total_words, VerseAttempt.created_at)
        .where(VerseAttempt.user_id == user_id, VerseAttempt.verse_reference == verse_reference)
        .order_by(VerseAttempt.created_at.desc(), VerseAttempt.id.desc())
    ).all()


def find_perfect_window(attempts) -> int:
    """Index of the first run of consecutive perfect attempts (newest first), or -1."""
    size = MASTERY["consecutive_perfect"]
    for i in range(len(attempts) - size + 1):
        if all(a.words_correct == a.total_words for a in attempts[i:i + size]):
            return i
    return -1


def qualifies_for_mastery(attempts) -> bool:
    if len(attempts) < MASTERY["min_attempts"]:
        return False

    start = find_perfect_window(attempts)
    if start == -1:
        return False

    window = attempts[:start + MASTERY["consecutive_perfect"]]
    total_correct = sum(a.words_correct for a in window)
    total_words = sum(a.total_words for a in window)
    if total_words <= 0:
        return False
    accuracy = total_correct / total_words
    logger.info(f"[MASTERY] accuracy {accuracy:.3f} ({total_correct}/{total_words})")
    return accuracy >= MASTERY["min_accuracy"]


def update_mastery(
    db: Session,
    user_id: int,
    verse_reference: str,
    event_ts: Optional[datetime] = None,
) -> bool:
    """Record mastery for the verse if it newly qualifies. Returns True when awarded."""
    attempts = _attempts_newest_first(db, user_id, verse_reference)
    if not qualifies_for_mastery(attempts):
        return False

    now = event_time(event_ts)
    insert = insert_for(db)
    inserted = db.execute(
        insert(MasteredVerse)
        .values(user_id=user_id, verse_reference=verse_reference, mastered_at=now)
        .on_conflict_do_nothing(index_elements=["user_id", "verse_reference"])
    ).rowcount
    if inserted != 1:
        # Already mastered
        return False

    award_points(
        db,
        user_id,
        MASTERY_ACHIEVED,
        POINTS["mastery_achieved"],
        {"verse_reference": verse_reference},
        now,
        verses_mastered=1,
    )
    db.execute(
        update(Verse)
        .where(Verse.user_id == user_id, Verse.reference == verse_reference)
        .values(status="mastered")
    )
    logger.info(f"[MASTERY] user={user_id} mastered '{verse_reference}'")
    return True


def get_mastery_progress(db: Session, user_id: int, verse_reference: str) -> dict:
    attempts = _attempts_newest_first(db, user_id, verse_reference)

    perfect_in_row = 0
    for attempt in attempts:
        if attempt.words_correct != attempt.total_words:
            break
        perfect_in_row += 1

    mastered = db.execute(
        select(MasteredVerse.mastered_at).where(
            MasteredVerse.user_id == user_id,
            MasteredVerse.verse_reference == verse_reference,
        )
    ).first()

    return {
        "perfectAttemptsInRow": perfect_in_row,
        "recordedAttempts": [
            {
                "words_correct": a.words_correct,
                "total_words": a.total_words,
                "created_at": isoformat(a.created_at),
            }
            for a in attempts[:RECENT_ATTEMPTS_LIMIT]
        ],
        "lastAttemptDate": isoformat(attempts[0].created_at) if attempts else None,
        "totalAttempts": len(attempts),
        "isMastered": mastered is not None,
        "masteryDate": isoformat(mastered.mastered_at) if mastered else None,
    }

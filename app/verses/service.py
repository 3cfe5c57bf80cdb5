import logging
from datetime import datetime, timedelta

from sqlalchemy import delete
from sqlalchemy.orm import Session

from app.core.clock import start_of_utc_day, utc_date
from app.gamification.constants import POINTS, VERSE_ADDED, VERSE_ADDED_DAILY_LIMIT
from app.gamification.points import award_points, count_events_since
from app.progress.models import WordProgress, VerseAttempt, VerseStreak
from app.verses.models import Verse
from app.verses.sample_sets import get_verse_set, DEFAULT_TRANSLATION

logger = logging.getLogger(__name__)


def get_verse(db: Session, user_id: int, reference: str):
    return db.query(Verse).filter(Verse.user_id == user_id, Verse.reference == reference).first()


def award_verse_added(db: Session, user_id: int, reference: str, now: datetime) -> int:
    """10 points per new verse, for the first few verses of each UTC day."""
    today_start = start_of_utc_day(utc_date(now))
    if count_events_since(db, user_id, VERSE_ADDED, today_start) >= VERSE_ADDED_DAILY_LIMIT:
        return 0
    points = POINTS["verse_added"]
    award_points(db, user_id, VERSE_ADDED, points, {"verse_reference": reference}, now)
    return points


def add_verse_set(db: Session, user_id: int, set_key, now: datetime) -> list[str]:
    """Add the verses of a starter set the user does not have yet. Does not commit."""
    added = []
    for i, item in enumerate(get_verse_set(set_key)):
        if get_verse(db, user_id, item["reference"]):
            continue
        db.add(
            Verse(
                user_id=user_id,
                reference=item["reference"],
                text=item["text"],
                translation=DEFAULT_TRANSLATION,
                status="not_started",
                # Keep the set's order when listing newest first
                created_at=now - timedelta(microseconds=i),
            )
        )
        added.append(item["reference"])
    db.flush()
    return added


def delete_verse(db: Session, user_id: int, reference: str) -> None:
    """
    Remove a verse with its word progress, attempts and guess streak in one
    transaction.  Mastery records and the point ledger are kept.
    """
    try:
        db.execute(delete(WordProgress).where(WordProgress.user_id == user_id, WordProgress.verse_reference == reference))
        db.execute(delete(VerseAttempt).where(VerseAttempt.user_id == user_id, VerseAttempt.verse_reference == reference))
        db.execute(delete(VerseStreak).where(VerseStreak.user_id == user_id, VerseStreak.verse_reference == reference))
        db.execute(delete(Verse).where(Verse.user_id == user_id, Verse.reference == reference))
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info(f"[VERSES] user={user_id} deleted '{reference}'")

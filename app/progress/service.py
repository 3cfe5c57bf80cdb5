"""
Word-by-word and whole-attempt progress recording.

Each public function here is one request's worth of work: it performs its
read-modify-write steps on the session and commits once at the end.
"""
import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.clock import as_utc, event_time
from app.db.upsert import insert_for
from app.gamification.constants import (
    POINTS,
    PERFECT_ATTEMPT_COOLDOWN,
    RESET_WORD,
    RESET_WORD_INDEX,
    VERSE_ATTEMPT,
    WORD_CORRECT,
)
from app.gamification.mastery import update_mastery
from app.gamification.points import award_points, get_stats_row
from app.gamification.streaks import (
    record_activity,
    update_verse_streak,
    reset_verse_streak,
    set_current_verse_streak,
    reset_current_verse_streak,
    raise_longest_word_guess_streak,
)
from app.progress.models import WordProgress, VerseAttempt
from app.verses.models import Verse

logger = logging.getLogger(__name__)


class VerseNotFoundError(Exception):
    """The verse does not exist or belongs to someone else."""


class CooldownActiveError(Exception):
    """A perfect attempt was already recorded for this verse in the last 24 hours."""

    def __init__(self, hours_remaining: int):
        self.hours_remaining = hours_remaining
        unit = "hour" if hours_remaining == 1 else "hours"
        super().__init__(
            "You can only record one perfect attempt per verse every 24 hours. "
            f"Please try again in {hours_remaining} {unit}."
        )


@dataclass(frozen=True)
class WordResult:
    streak_length: int
    points_earned: int


@dataclass(frozen=True)
class AttemptResult:
    points_earned: int
    mastered: bool


def is_reset_sentinel(word_index: int, word: str, is_correct: bool) -> bool:
    return word_index == RESET_WORD_INDEX and word == RESET_WORD and not is_correct


def ensure_verse_owned(db: Session, user_id: int, verse_reference: str) -> None:
    found = db.execute(
        select(Verse.id).where(Verse.user_id == user_id, Verse.reference == verse_reference)
    ).first()
    if found is None:
        raise VerseNotFoundError(verse_reference)


def word_points(streak: int) -> tuple[int, float]:
    """Points for a correct word at this streak length, and the multiplier used."""
    multiplier = 1 + (streak - 1) * POINTS["streak_multiplier"]
    return round(POINTS["word_correct"] * multiplier), multiplier


def reset_word_streak(db: Session, user_id: int, verse_reference: str) -> WordResult:
    """Explicit reset: clear the cross-verse streak and this verse's current streak."""
    reset_current_verse_streak(db, user_id, None)
    reset_verse_streak(db, user_id, verse_reference)
    db.commit()
    logger.info(f"[STREAK] user={user_id} reset guess streak on '{verse_reference}'")
    return WordResult(streak_length=0, points_earned=0)


def record_word_progress(
    db: Session,
    user_id: int,
    verse_reference: str,
    word_index: int,
    word: str,
    is_correct: bool,
    event_ts: Optional[datetime] = None,
) -> WordResult:
    if is_reset_sentinel(word_index, word, is_correct):
        return reset_word_streak(db, user_id, verse_reference)

    ensure_verse_owned(db, user_id, verse_reference)
    now = event_time(event_ts)

    record_activity(db, user_id, now)

    insert = insert_for(db)
    stmt = insert(WordProgress).values(
        user_id=user_id,
        verse_reference=verse_reference,
        word_index=word_index,
        word=word,
        is_correct=is_correct,
        created_at=now,
    )
    db.execute(
        stmt.on_conflict_do_update(
            index_elements=["user_id", "verse_reference", "word_index"],
            set_={"word": word, "is_correct": is_correct, "created_at": now},
        )
    )

    if not is_correct:
        reset_current_verse_streak(db, user_id, verse_reference)
        reset_verse_streak(db, user_id, verse_reference)
        db.commit()
        return WordResult(streak_length=0, points_earned=0)

    stats = get_stats_row(db, user_id)
    if stats.current_verse_reference == verse_reference:
        streak = stats.current_verse_streak + 1
    else:
        streak = 1
    points, multiplier = word_points(streak)
    is_new_longest = streak > stats.longest_word_guess_streak

    award_points(
        db,
        user_id,
        WORD_CORRECT,
        points,
        {
            "verse_reference": verse_reference,
            "word_index": word_index,
            "word": word,
            "streak_length": streak,
            "multiplier": multiplier,
            "is_new_longest": is_new_longest,
        },
        now,
    )
    set_current_verse_streak(db, user_id, verse_reference, streak)
    raise_longest_word_guess_streak(db, user_id, streak)
    update_verse_streak(db, user_id, verse_reference, streak, is_new_longest, now)

    db.commit()
    return WordResult(streak_length=streak, points_earned=points)


def last_perfect_attempt_at(db: Session, user_id: int, verse_reference: str) -> Optional[datetime]:
    row = db.execute(
        select(VerseAttempt.created_at)
        .where(
            VerseAttempt.user_id == user_id,
            VerseAttempt.verse_reference == verse_reference,
            VerseAttempt.words_correct == VerseAttempt.total_words,
        )
        .order_by(VerseAttempt.created_at.desc())
        .limit(1)
    ).first()
    return as_utc(row.created_at) if row else None


def check_perfect_cooldown(db: Session, user_id: int, verse_reference: str, now: datetime) -> None:
    """Raise CooldownActiveError if a perfect attempt happened less than 24h before ``now``."""
    last_perfect = last_perfect_attempt_at(db, user_id, verse_reference)
    if last_perfect is None:
        return
    elapsed = now - last_perfect
    if elapsed < PERFECT_ATTEMPT_COOLDOWN:
        remaining = PERFECT_ATTEMPT_COOLDOWN - elapsed
        hours = math.ceil(remaining.total_seconds() / 3600)
        logger.info(f"[PROGRESS] user={user_id} perfect attempt on '{verse_reference}' blocked, {hours}h left")
        raise CooldownActiveError(hours)


def record_verse_attempt(
    db: Session,
    user_id: int,
    verse_reference: str,
    words_correct: int,
    total_words: int,
    event_ts: Optional[datetime] = None,
) -> AttemptResult:
    ensure_verse_owned(db, user_id, verse_reference)
    now = event_time(event_ts)

    if words_correct == total_words:
        check_perfect_cooldown(db, user_id, verse_reference, now)

    record_activity(db, user_id, now)

    db.add(
        VerseAttempt(
            user_id=user_id,
            verse_reference=verse_reference,
            words_correct=words_correct,
            total_words=total_words,
            created_at=now,
        )
    )
    db.flush()

    points = words_correct * POINTS["attempt_word"]
    award_points(
        db,
        user_id,
        VERSE_ATTEMPT,
        points,
        {
            "verse_reference": verse_reference,
            "words_correct": words_correct,
            "total_words": total_words,
        },
        now,
        total_attempts=1,
    )

    mastered = update_mastery(db, user_id, verse_reference, now)
    db.commit()
    return AttemptResult(points_earned=points, mastered=mastered)

"""
Daily login streak + per-verse guess streaks.

Daily streak rules (UTC calendar days):
  - first activity ever          -> current = longest = 1 (a stats row created
                                    by the activity itself already starts there)
  - last activity before yesterday -> current reset to 0 (no increment this call)
  - last activity yesterday      -> current + 1, +50 points when the streak is > 1 day
  - already active today, current == 0 -> current + 1 (first increment after a reset)
  - otherwise                    -> only last_activity_date moves
The case order matters: the branches overlap and are checked top to bottom.
"""
import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import select, update, case
from sqlalchemy.orm import Session

from app.core.clock import as_utc, event_time
from app.db.upsert import insert_for
from app.gamification.constants import POINTS, DAILY_STREAK
from app.gamification.models import UserStats
from app.gamification.points import award_points, ensure_user_stats
from app.progress.models import VerseStreak

logger = logging.getLogger(__name__)


def _set_stats(db: Session, user_id: int, **values) -> None:
    db.execute(update(UserStats).where(UserStats.user_id == user_id).values(**values))


def _increment_streak(db: Session, user_id: int, current: int, longest: int, now: datetime) -> int:
    new_streak = current + 1
    _set_stats(
        db,
        user_id,
        current_streak=new_streak,
        longest_streak=max(longest, new_streak),
        last_activity_date=now,
    )
    if new_streak > 1:
        award_points(db, user_id, DAILY_STREAK, POINTS["daily_streak"], {"streak_days": new_streak}, now)
    logger.info(f"[STREAK] user={user_id} daily streak -> {new_streak}")
    return new_streak


def update_streak(db: Session, user_id: int, event_ts: Optional[datetime] = None) -> None:
    """Apply one activity at ``event_ts`` (default now) to the daily streak. No-op without a stats row."""
    stats = db.execute(
        select(
            UserStats.last_activity_date,
            UserStats.current_streak,
            UserStats.longest_streak,
            UserStats.created_at,
        ).where(UserStats.user_id == user_id)
    ).first()
    if stats is None:
        return

    now = event_time(event_ts)
    last_activity = as_utc(stats.last_activity_date)

    if last_activity == as_utc(stats.created_at) and stats.longest_streak == 0:
        _set_stats(db, user_id, current_streak=1, longest_streak=1, last_activity_date=now)
        logger.info(f"[STREAK] user={user_id} first activity, streak=1")
        return

    last_day = last_activity.date()
    today = now.date()
    yesterday = today - timedelta(days=1)

    if last_day < yesterday:
        _set_stats(db, user_id, current_streak=0, last_activity_date=now)
        logger.info(f"[STREAK] user={user_id} gap since {last_day.isoformat()}, streak reset")
        return

    if last_day == yesterday:
        _increment_streak(db, user_id, stats.current_streak, stats.longest_streak, now)
    elif last_day == today and stats.current_streak == 0:
        _increment_streak(db, user_id, 0, stats.longest_streak, now)
    else:
        _set_stats(db, user_id, last_activity_date=now)


def record_activity(db: Session, user_id: int, event_ts: Optional[datetime] = None) -> None:
    """Count one practice activity toward the daily streak, creating the stats row at 1/1 if needed."""
    now = event_time(event_ts)
    if ensure_user_stats(db, user_id, now, current_streak=1, longest_streak=1):
        logger.info(f"[STREAK] user={user_id} first activity, streak=1")
        return
    update_streak(db, user_id, now)


def update_verse_streak(
    db: Session,
    user_id: int,
    verse_reference: str,
    streak: int,
    is_new_longest: bool = False,
    event_ts: Optional[datetime] = None,
) -> None:
    """
    Store ``streak`` as the current guess streak for one verse and raise the
    verse's longest streak if it is beaten.  Creates the row on first use.
    """
    now = event_time(event_ts)
    insert = insert_for(db)
    stmt = insert(VerseStreak).values(
        user_id=user_id,
        verse_reference=verse_reference,
        longest_guess_streak=streak,
        current_guess_streak=streak,
        last_guess_date=now,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["user_id", "verse_reference"],
        set_={
            "current_guess_streak": streak,
            "longest_guess_streak": case(
                (VerseStreak.longest_guess_streak < streak, streak),
                else_=VerseStreak.longest_guess_streak,
            ),
            "last_guess_date": now,
        },
    )
    db.execute(stmt)
    if is_new_longest:
        logger.info(f"[STREAK] user={user_id} new longest guess streak {streak} on '{verse_reference}'")


def reset_verse_streak(db: Session, user_id: int, verse_reference: str) -> None:
    """Zero the current guess streak for one verse; the longest streak is kept."""
    db.execute(
        update(VerseStreak)
        .where(VerseStreak.user_id == user_id, VerseStreak.verse_reference == verse_reference)
        .values(current_guess_streak=0)
    )


def set_current_verse_streak(db: Session, user_id: int, verse_reference: Optional[str], streak: int) -> None:
    """Cross-verse guess streak kept in UserStats for the most recently practiced verse."""
    _set_stats(db, user_id, current_verse_streak=streak, current_verse_reference=verse_reference)


def reset_current_verse_streak(db: Session, user_id: int, verse_reference: Optional[str]) -> None:
    set_current_verse_streak(db, user_id, verse_reference, 0)


def raise_longest_word_guess_streak(db: Session, user_id: int, streak: int) -> None:
    _set_stats(
        db,
        user_id,
        longest_word_guess_streak=case(
            (UserStats.longest_word_guess_streak < streak, streak),
            else_=UserStats.longest_word_guess_streak,
        ),
    )

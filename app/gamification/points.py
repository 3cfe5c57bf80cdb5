"""
Point ledger + UserStats rollup.

PointEvent rows are the source of truth; UserStats.total_points is a cached
sum.  Every award goes through award_points() so the ledger row and the
rollup increment are always written together.
"""
import json
import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import select, update, func
from sqlalchemy.orm import Session

from app.core.clock import as_utc, start_of_utc_day, utc_date
from app.db.upsert import insert_for
from app.gamification.constants import POINT_HISTORY_DAYS
from app.gamification.models import UserStats, PointEvent

logger = logging.getLogger(__name__)


def ensure_user_stats(
    db: Session,
    user_id: int,
    at: datetime,
    *,
    current_streak: int = 0,
    longest_streak: int = 0,
    total_points: int = 0,
) -> bool:
    """
    Create the stats row if missing (atomic INSERT ... ON CONFLICT DO NOTHING).
    Returns True when a row was created.

    A fresh row with no streak yet has last_activity_date == created_at, which
    the daily streak update reads as "no activity recorded yet".
    """
    insert = insert_for(db)
    stmt = (
        insert(UserStats)
        .values(
            user_id=user_id,
            total_points=total_points,
            current_streak=current_streak,
            longest_streak=longest_streak,
            verses_mastered=0,
            total_attempts=0,
            last_activity_date=at,
            current_verse_streak=0,
            current_verse_reference=None,
            longest_word_guess_streak=0,
            created_at=at,
        )
        .on_conflict_do_nothing(index_elements=["user_id"])
    )
    created = db.execute(stmt).rowcount == 1
    if created:
        logger.info(f"[POINTS] created stats row user={user_id}")
    return created


def get_stats_row(db: Session, user_id: int):
    """Current UserStats values as a Row (not an identity-mapped object)."""
    return db.execute(
        select(
            UserStats.user_id,
            UserStats.total_points,
            UserStats.current_streak,
            UserStats.longest_streak,
            UserStats.verses_mastered,
            UserStats.total_attempts,
            UserStats.last_activity_date,
            UserStats.current_verse_streak,
            UserStats.current_verse_reference,
            UserStats.longest_word_guess_streak,
            UserStats.created_at,
        ).where(UserStats.user_id == user_id)
    ).first()


def append_point_event(
    db: Session,
    user_id: int,
    event_type: str,
    points: int,
    metadata: Optional[dict],
    at: datetime,
) -> PointEvent:
    event = PointEvent(
        user_id=user_id,
        event_type=event_type,
        points=points,
        metadata_json=json.dumps(metadata) if metadata is not None else None,
        created_at=at,
    )
    db.add(event)
    db.flush()
    return event


def award_points(
    db: Session,
    user_id: int,
    event_type: str,
    points: int,
    metadata: Optional[dict],
    at: datetime,
    **increments: int,
) -> PointEvent:
    """
    Append a PointEvent and add the same points to UserStats.total_points.

    Extra keyword counters (e.g. total_attempts=1, verses_mastered=1) are
    incremented in the same UPDATE.
    """
    ensure_user_stats(db, user_id, at)
    event = append_point_event(db, user_id, event_type, points, metadata, at)

    values = {UserStats.total_points: UserStats.total_points + points}
    for name, amount in increments.items():
        column = getattr(UserStats, name)
        values[column] = column + amount
    db.execute(update(UserStats).where(UserStats.user_id == user_id).values(values))

    logger.info(f"[POINTS] user={user_id} +{points} ({event_type})")
    return event


def event_metadata(event: PointEvent) -> Optional[dict]:
    if not event.metadata_json:
        return None
    return json.loads(event.metadata_json)


def count_events_since(db: Session, user_id: int, event_type: str, since: datetime) -> int:
    return db.execute(
        select(func.count(PointEvent.id)).where(
            PointEvent.user_id == user_id,
            PointEvent.event_type == event_type,
            PointEvent.created_at >= since,
        )
    ).scalar_one()


def points_breakdown(db: Session, user_id: int) -> dict:
    """Total points per event type."""
    rows = db.execute(
        select(PointEvent.event_type, func.coalesce(func.sum(PointEvent.points), 0))
        .where(PointEvent.user_id == user_id)
        .group_by(PointEvent.event_type)
    ).all()
    return {event_type: int(total) for event_type, total in rows}


def point_history(db: Session, user_id: int, now: datetime, days: int = POINT_HISTORY_DAYS) -> list[dict]:
    """Points per UTC day for the last ``days`` days (oldest first, zero-filled)."""
    today = utc_date(now)
    first_day = today - timedelta(days=days - 1)
    rows = db.execute(
        select(PointEvent.points, PointEvent.created_at).where(
            PointEvent.user_id == user_id,
            PointEvent.created_at >= start_of_utc_day(first_day),
        )
    ).all()

    per_day = {first_day + timedelta(days=i): 0 for i in range(days)}
    for points, created_at in rows:
        day = as_utc(created_at).date()
        if day in per_day:
            per_day[day] += points
    return [{"date": day.isoformat(), "points": total} for day, total in per_day.items()]

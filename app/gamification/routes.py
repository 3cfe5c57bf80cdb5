from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.auth.models import User
from app.core.clock import event_time, isoformat
from app.core.deps import get_current_user
from app.db.session import get_db
from app.gamification.constants import EVENT_TYPES, WORD_CORRECT
from app.gamification.points import (
    award_points,
    ensure_user_stats,
    get_stats_row,
    point_history,
    points_breakdown,
)
from app.gamification.streaks import (
    raise_longest_word_guess_streak,
    record_activity,
    set_current_verse_streak,
    update_streak,
    update_verse_streak,
)
from app.groups.stats import leaderboard, require_member
from app.progress.models import VerseStreak

router = APIRouter(prefix="/gamification", tags=["gamification"])


class PointEventRequest(BaseModel):
    event_type: str
    points: int
    metadata: Optional[dict[str, Any]] = None
    created_at: Optional[datetime] = None


def _verse_streaks(db: Session, user_id: int) -> list[dict]:
    rows = db.execute(
        select(
            VerseStreak.verse_reference,
            VerseStreak.current_guess_streak,
            VerseStreak.longest_guess_streak,
            VerseStreak.last_guess_date,
        )
        .where(VerseStreak.user_id == user_id)
        .order_by(VerseStreak.longest_guess_streak.desc(), VerseStreak.verse_reference)
    ).all()
    return [
        {
            "verse_reference": r.verse_reference,
            "current_guess_streak": r.current_guess_streak,
            "longest_guess_streak": r.longest_guess_streak,
            "last_guess_date": isoformat(r.last_guess_date),
        }
        for r in rows
    ]


# ======================================================
# POINT EVENTS
# ======================================================
@router.post("/points")
def record_point_event(
    body: PointEventRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    if body.event_type not in EVENT_TYPES:
        raise HTTPException(status_code=400, detail="Invalid event type")

    now = event_time(body.created_at)
    record_activity(db, user.id, now)
    award_points(db, user.id, body.event_type, body.points, body.metadata, now)

    metadata = body.metadata or {}
    verse_reference = metadata.get("verse_reference")
    streak_length = metadata.get("streak_length")
    if body.event_type == WORD_CORRECT and verse_reference and isinstance(streak_length, int):
        stats = get_stats_row(db, user.id)
        is_new_longest = streak_length > stats.longest_word_guess_streak
        set_current_verse_streak(db, user.id, verse_reference, streak_length)
        raise_longest_word_guess_streak(db, user.id, streak_length)
        update_verse_streak(db, user.id, verse_reference, streak_length, is_new_longest, now)

    db.commit()
    return {"success": True}


# ======================================================
# STATS
# ======================================================
@router.get("/stats")
def get_stats(
    timestamp: Optional[datetime] = Query(None),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    now = event_time(timestamp)
    update_streak(db, user.id, now)
    ensure_user_stats(db, user.id, now)
    db.commit()

    stats = get_stats_row(db, user.id)
    return {
        "total_points": stats.total_points,
        "current_streak": stats.current_streak,
        "longest_streak": stats.longest_streak,
        "verses_mastered": stats.verses_mastered,
        "total_attempts": stats.total_attempts,
        "last_activity_date": isoformat(stats.last_activity_date),
        "current_verse_streak": stats.current_verse_streak,
        "current_verse_reference": stats.current_verse_reference,
        "longest_word_guess_streak": stats.longest_word_guess_streak,
        "points_breakdown": points_breakdown(db, user.id),
        "point_history": point_history(db, user.id, now),
        "verse_streaks": _verse_streaks(db, user.id),
    }


# ======================================================
# LEADERBOARD
# ======================================================
@router.get("/leaderboard/{group_id}")
def get_leaderboard(
    group_id: int,
    metric: str = Query("points"),
    timeframe: str = Query("all"),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    require_member(db, group_id, user.id)
    return leaderboard(db, group_id, metric, timeframe)

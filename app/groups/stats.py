"""
Group leaderboards and summary stats.

Read-only aggregation over UserStats / PointEvent / MasteredVerse, scoped to
the active members of one group.
"""
from datetime import datetime, timedelta
from typing import Optional

from fastapi import HTTPException
from sqlalchemy import select, func
from sqlalchemy.orm import Session

from app.auth.models import User
from app.core.clock import as_utc, utcnow
from app.gamification.models import UserStats, PointEvent
from app.groups.models import Group, GroupMember
from app.progress.models import MasteredVerse

LEADERBOARD_METRICS = ("points", "verses_mastered", "current_streak", "longest_streak")
TIMEFRAMES = {"all": None, "week": 7, "month": 30}


def get_active_group(db: Session, group_id: int) -> Group:
    group = db.query(Group).filter(Group.id == group_id, Group.is_active.is_(True)).first()
    if not group:
        raise HTTPException(status_code=404, detail="Group not found")
    return group


def get_membership(db: Session, group_id: int, user_id: int) -> Optional[GroupMember]:
    return (
        db.query(GroupMember)
        .filter(
            GroupMember.group_id == group_id,
            GroupMember.user_id == user_id,
            GroupMember.is_active.is_(True),
        )
        .first()
    )


def require_member(db: Session, group_id: int, user_id: int) -> GroupMember:
    """404 for a missing/deleted group, 403 for a non-member."""
    get_active_group(db, group_id)
    member = get_membership(db, group_id, user_id)
    if not member:
        raise HTTPException(status_code=403, detail="Not a member of this group")
    return member


def timeframe_cutoff(timeframe: str, now: datetime) -> Optional[datetime]:
    if timeframe not in TIMEFRAMES:
        raise HTTPException(status_code=400, detail="Invalid timeframe")
    days = TIMEFRAMES[timeframe]
    return now - timedelta(days=days) if days else None


def member_display_name(member_display: Optional[str], email: str, is_public: bool) -> str:
    if not is_public:
        return "Anonymous"
    return member_display or email.split("@")[0]


def _active_members(db: Session, group_id: int):
    return db.execute(
        select(
            GroupMember.user_id,
            GroupMember.display_name,
            GroupMember.is_public,
            GroupMember.joined_at,
            User.email,
            func.coalesce(UserStats.total_points, 0).label("total_points"),
            func.coalesce(UserStats.verses_mastered, 0).label("verses_mastered"),
            func.coalesce(UserStats.current_streak, 0).label("current_streak"),
            func.coalesce(UserStats.longest_streak, 0).label("longest_streak"),
        )
        .join(User, User.id == GroupMember.user_id)
        .outerjoin(UserStats, UserStats.user_id == GroupMember.user_id)
        .where(GroupMember.group_id == group_id, GroupMember.is_active.is_(True))
    ).all()


def _points_since(db: Session, user_ids: list[int], since: datetime) -> dict[int, int]:
    rows = db.execute(
        select(PointEvent.user_id, func.coalesce(func.sum(PointEvent.points), 0))
        .where(PointEvent.user_id.in_(user_ids), PointEvent.created_at >= since)
        .group_by(PointEvent.user_id)
    ).all()
    return {user_id: int(total) for user_id, total in rows}


def _mastered_since(db: Session, user_ids: list[int], since: datetime) -> dict[int, int]:
    rows = db.execute(
        select(MasteredVerse.user_id, func.count(MasteredVerse.id))
        .where(MasteredVerse.user_id.in_(user_ids), MasteredVerse.mastered_at >= since)
        .group_by(MasteredVerse.user_id)
    ).all()
    return {user_id: int(count) for user_id, count in rows}


def leaderboard(
    db: Session,
    group_id: int,
    metric: str = "points",
    timeframe: str = "all",
    now: Optional[datetime] = None,
) -> list[dict]:
    if metric not in LEADERBOARD_METRICS:
        raise HTTPException(status_code=400, detail="Invalid metric")
    cutoff = timeframe_cutoff(timeframe, now or utcnow())

    members = _active_members(db, group_id)
    user_ids = [m.user_id for m in members]

    points_by_user = {m.user_id: int(m.total_points) for m in members}
    mastered_by_user = {m.user_id: int(m.verses_mastered) for m in members}
    if cutoff is not None and user_ids:
        points_by_user = _points_since(db, user_ids, cutoff)
        mastered_by_user = _mastered_since(db, user_ids, cutoff)

    entries = [
        {
            "user_id": m.user_id,
            "display_name": member_display_name(m.display_name, m.email, m.is_public),
            "points": points_by_user.get(m.user_id, 0),
            "verses_mastered": mastered_by_user.get(m.user_id, 0),
            "current_streak": int(m.current_streak),
            "longest_streak": int(m.longest_streak),
            "is_public": bool(m.is_public),
        }
        for m in members
    ]
    # Ties keep the earlier user first
    entries.sort(key=lambda e: (-e[metric], e["user_id"]))
    for rank, entry in enumerate(entries, start=1):
        entry["rank"] = rank
    return entries


def group_stats(db: Session, group_id: int, now: Optional[datetime] = None) -> dict:
    now = now or utcnow()
    week_ago = now - timedelta(days=7)

    total_members = (
        db.query(func.count(GroupMember.id)).filter(GroupMember.group_id == group_id).scalar()
    )
    members = _active_members(db, group_id)
    user_ids = [m.user_id for m in members]

    total_points = sum(int(m.total_points) for m in members)
    total_mastered = sum(int(m.verses_mastered) for m in members)

    top = max(members, key=lambda m: (m.total_points, -m.user_id), default=None)
    top_performer = None
    if top is not None and top.total_points > 0:
        top_performer = {
            "user_id": top.user_id,
            "display_name": member_display_name(top.display_name, top.email, top.is_public),
            "points": int(top.total_points),
        }

    points_this_week = sum(_points_since(db, user_ids, week_ago).values()) if user_ids else 0
    mastered_this_week = sum(_mastered_since(db, user_ids, week_ago).values()) if user_ids else 0
    new_members = sum(1 for m in members if m.joined_at is not None and as_utc(m.joined_at) >= week_ago)

    return {
        "total_members": total_members,
        "active_members": len(members),
        "total_points": total_points,
        "total_verses_mastered": total_mastered,
        "average_points_per_member": round(total_points / len(members), 2) if members else 0,
        "top_performer": top_performer,
        "recent_activity": {
            "new_members_this_week": new_members,
            "verses_mastered_this_week": mastered_this_week,
            "points_earned_this_week": points_this_week,
        },
    }

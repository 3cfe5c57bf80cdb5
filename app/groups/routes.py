import logging
import secrets
import string
from datetime import timedelta
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.admin.permissions import can_create_groups
from app.auth.models import User
from app.core.clock import as_utc, isoformat, utcnow
from app.core.deps import get_current_user
from app.db.session import get_db
from app.groups.models import Group, GroupMember, GroupInvitation, LEADER_ROLES
from app.groups.stats import (
    get_active_group,
    get_membership,
    group_stats,
    leaderboard,
    require_member,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/groups", tags=["groups"])

INVITE_CODE_LENGTH = 8
INVITE_CODE_ALPHABET = string.ascii_uppercase + string.digits
INVITE_TTL = timedelta(days=7)


class GroupCreate(BaseModel):
    name: str
    description: Optional[str] = None


class EmailBody(BaseModel):
    email: str


class MemberUpdate(BaseModel):
    display_name: Optional[str] = None
    is_public: Optional[bool] = None


def _require_leader(db: Session, group_id: int, user_id: int) -> GroupMember:
    member = require_member(db, group_id, user_id)
    if member.role not in LEADER_ROLES:
        raise HTTPException(status_code=403, detail="Only group leaders can do this")
    return member


def _new_invite_code(db: Session) -> str:
    while True:
        code = "".join(secrets.choice(INVITE_CODE_ALPHABET) for _ in range(INVITE_CODE_LENGTH))
        if not db.query(GroupInvitation).filter(GroupInvitation.code == code).first():
            return code


def _member_out(member: GroupMember, email: str) -> dict:
    return {
        "user_id": member.user_id,
        "email": email,
        "display_name": member.display_name,
        "role": member.role,
        "is_public": member.is_public,
        "joined_at": isoformat(member.joined_at),
    }


# =========================
# CREATE
# =========================
@router.get("/can-create")
def can_create(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return {"can_create": can_create_groups(db, user.id)}


@router.post("/create", status_code=201)
def create_group(
    body: GroupCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    if not can_create_groups(db, user.id):
        raise HTTPException(status_code=403, detail="You do not have permission to create groups")

    name = body.name.strip()
    if not 2 <= len(name) <= 50:
        raise HTTPException(status_code=400, detail="Group name must be between 2 and 50 characters")

    taken = (
        db.query(Group)
        .filter(Group.is_active.is_(True), func.lower(Group.name) == name.lower())
        .first()
    )
    if taken:
        raise HTTPException(status_code=400, detail="A group with this name already exists")

    now = utcnow()
    group = Group(
        name=name,
        description=(body.description or "").strip() or None,
        created_by=user.id,
        is_active=True,
        created_at=now,
    )
    db.add(group)
    db.flush()
    db.add(GroupMember(group_id=group.id, user_id=user.id, role="creator", is_public=True, is_active=True, joined_at=now))
    db.commit()

    logger.info(f"[GROUPS] user={user.id} created group={group.id} '{name}'")
    return {"success": True, "group": {"id": group.id, "name": group.name, "description": group.description}}


# =========================
# MEMBERSHIP
# =========================
@router.get("/mine")
def my_groups(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    rows = (
        db.query(Group, GroupMember.role)
        .join(GroupMember, GroupMember.group_id == Group.id)
        .filter(
            GroupMember.user_id == user.id,
            GroupMember.is_active.is_(True),
            Group.is_active.is_(True),
        )
        .order_by(Group.created_at.desc())
        .all()
    )
    return [
        {
            "id": group.id,
            "name": group.name,
            "description": group.description,
            "role": role,
            "created_at": isoformat(group.created_at),
        }
        for group, role in rows
    ]


@router.get("/{group_id}/members")
def list_members(
    group_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    require_member(db, group_id, user.id)
    rows = (
        db.query(GroupMember, User.email)
        .join(User, User.id == GroupMember.user_id)
        .filter(GroupMember.group_id == group_id, GroupMember.is_active.is_(True))
        .order_by(GroupMember.joined_at)
        .all()
    )
    return [_member_out(member, email) for member, email in rows]


@router.get("/{group_id}/leaders")
def list_leaders(
    group_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    require_member(db, group_id, user.id)
    rows = (
        db.query(GroupMember, User.email)
        .join(User, User.id == GroupMember.user_id)
        .filter(
            GroupMember.group_id == group_id,
            GroupMember.is_active.is_(True),
            GroupMember.role.in_(LEADER_ROLES),
        )
        .order_by(GroupMember.joined_at)
        .all()
    )
    return [_member_out(member, email) for member, email in rows]


@router.post("/{group_id}/leaders")
def add_leader(
    group_id: int,
    body: EmailBody,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    _require_leader(db, group_id, user.id)

    target = db.query(User).filter(User.email == body.email.strip().lower()).first()
    member = get_membership(db, group_id, target.id) if target else None
    if not member:
        raise HTTPException(status_code=404, detail="User is not a member of this group")

    if member.role != "creator":
        member.role = "leader"
    db.commit()
    logger.info(f"[GROUPS] group={group_id} user={member.user_id} promoted to leader")
    return {"success": True}


@router.post("/{group_id}/invite")
def invite_member(
    group_id: int,
    body: EmailBody,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    _require_leader(db, group_id, user.id)

    email = body.email.strip().lower()
    if not email or "@" not in email:
        raise HTTPException(status_code=400, detail="A valid email is required")

    now = utcnow()
    invitation = GroupInvitation(
        group_id=group_id,
        email=email,
        code=_new_invite_code(db),
        invited_by=user.id,
        is_accepted=False,
        created_at=now,
        expires_at=now + INVITE_TTL,
    )
    db.add(invitation)
    db.commit()

    logger.info(f"[GROUPS] group={group_id} invited {email}")
    return {
        "success": True,
        "invitation": {
            "email": invitation.email,
            "code": invitation.code,
            "expires_at": isoformat(invitation.expires_at),
        },
    }


@router.post("/{group_id}/join/{code}")
def join_group(
    group_id: int,
    code: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    get_active_group(db, group_id)

    invitation = (
        db.query(GroupInvitation)
        .filter(
            GroupInvitation.group_id == group_id,
            GroupInvitation.code == code.upper(),
            GroupInvitation.is_accepted.is_(False),
        )
        .first()
    )
    if not invitation or as_utc(invitation.expires_at) <= utcnow():
        raise HTTPException(status_code=404, detail="Invitation not found or expired")
    if invitation.email != user.email:
        raise HTTPException(status_code=403, detail="This invitation was sent to a different email")

    now = utcnow()
    existing = (
        db.query(GroupMember)
        .filter(GroupMember.group_id == group_id, GroupMember.user_id == user.id)
        .first()
    )
    if existing:
        # Rejoining after removal reactivates the old row as a plain member
        existing.is_active = True
        existing.role = "member"
        existing.joined_at = now
    else:
        db.add(GroupMember(group_id=group_id, user_id=user.id, role="member", is_public=True, is_active=True, joined_at=now))
    invitation.is_accepted = True
    db.commit()

    logger.info(f"[GROUPS] user={user.id} joined group={group_id}")
    return {"success": True}


@router.put("/{group_id}/members/me")
def update_my_membership(
    group_id: int,
    body: MemberUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    member = require_member(db, group_id, user.id)

    if body.display_name is not None:
        display_name = body.display_name.strip()
        if len(display_name) > 64:
            raise HTTPException(status_code=400, detail="Display name is too long")
        member.display_name = display_name or None
    if body.is_public is not None:
        member.is_public = body.is_public
    db.commit()
    return {"success": True}


# =========================
# STATS / LEADERBOARD
# =========================
@router.get("/{group_id}/stats")
def get_group_stats(
    group_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    require_member(db, group_id, user.id)
    return group_stats(db, group_id)


@router.get("/{group_id}/leaderboard")
def get_group_leaderboard(
    group_id: int,
    metric: str = Query("points"),
    timeframe: str = Query("all"),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    require_member(db, group_id, user.id)
    return leaderboard(db, group_id, metric, timeframe)

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy import func, update
from sqlalchemy.orm import Session

from app.admin.models import AdminAuditLog, UserPermission, PERMISSION_TYPES
from app.admin.permissions import (
    get_user_permissions,
    is_super_admin,
    log_admin_action,
    require_admin,
)
from app.auth.models import User
from app.core.clock import as_utc, isoformat, utcnow
from app.core.deps import get_current_user
from app.db.session import get_db
from app.gamification.models import UserStats
from app.groups.models import Group, GroupMember, GroupInvitation

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])

AUDIT_LOG_DEFAULT_LIMIT = 100


class GrantPermissionRequest(BaseModel):
    user_id: int
    permission_type: str
    expires_at: Optional[datetime] = None


class RevokePermissionRequest(BaseModel):
    user_id: int
    permission_type: str


def _permission_out(p: UserPermission) -> dict:
    return {
        "user_id": p.user_id,
        "permission_type": p.permission_type,
        "granted_by": p.granted_by,
        "granted_at": isoformat(p.granted_at),
        "expires_at": isoformat(p.expires_at),
        "is_active": p.is_active,
    }


def _validate_permission_type(permission_type: str) -> None:
    if permission_type not in PERMISSION_TYPES:
        raise HTTPException(status_code=400, detail="Invalid permission type")


# =========================
# SUPER ADMIN CHECK
# =========================
@router.get("/check-super-admin")
def check_super_admin(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return {"is_super_admin": is_super_admin(db, user.id)}


# =========================
# PERMISSIONS
# =========================
@router.post("/permissions/grant")
def grant_permission(
    body: GrantPermissionRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    _validate_permission_type(body.permission_type)
    target = db.query(User).filter(User.id == body.user_id, User.deleted_at.is_(None)).first()
    if not target:
        raise HTTPException(status_code=404, detail="User not found")

    now = utcnow()
    expires_at = as_utc(body.expires_at) if body.expires_at else None
    permission = (
        db.query(UserPermission)
        .filter(UserPermission.user_id == body.user_id, UserPermission.permission_type == body.permission_type)
        .first()
    )
    if permission:
        permission.is_active = True
        permission.granted_by = admin.id
        permission.granted_at = now
        permission.expires_at = expires_at
    else:
        db.add(
            UserPermission(
                user_id=body.user_id,
                permission_type=body.permission_type,
                granted_by=admin.id,
                granted_at=now,
                expires_at=expires_at,
                is_active=True,
            )
        )

    log_admin_action(
        db,
        admin.id,
        "grant_permission",
        "user",
        body.user_id,
        {"permission_type": body.permission_type, "expires_at": isoformat(expires_at)},
    )
    db.commit()
    return {"success": True}


@router.post("/permissions/revoke")
def revoke_permission(
    body: RevokePermissionRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    _validate_permission_type(body.permission_type)
    result = db.execute(
        update(UserPermission)
        .where(
            UserPermission.user_id == body.user_id,
            UserPermission.permission_type == body.permission_type,
            UserPermission.is_active.is_(True),
        )
        .values(is_active=False)
    )
    if result.rowcount == 0:
        raise HTTPException(status_code=404, detail="Permission not found")

    log_admin_action(db, admin.id, "revoke_permission", "user", body.user_id, {"permission_type": body.permission_type})
    db.commit()
    return {"success": True}


@router.get("/permissions")
def list_permissions(
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    rows = (
        db.query(UserPermission, User.email)
        .join(User, User.id == UserPermission.user_id)
        .filter(UserPermission.is_active.is_(True))
        .order_by(UserPermission.granted_at.desc())
        .all()
    )
    return [{**_permission_out(p), "email": email} for p, email in rows]


@router.get("/permissions/{user_id}")
def list_user_permissions(
    user_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    return {
        "user_id": user_id,
        "is_super_admin": is_super_admin(db, user_id),
        "permissions": [_permission_out(p) for p in get_user_permissions(db, user_id)],
    }


# =========================
# USERS / GROUPS
# =========================
@router.get("/users")
def list_users(
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    rows = (
        db.query(User, UserStats.total_points, UserStats.verses_mastered)
        .outerjoin(UserStats, UserStats.user_id == User.id)
        .filter(User.deleted_at.is_(None))
        .order_by(User.id.asc())
        .all()
    )
    return [
        {
            "id": u.id,
            "email": u.email,
            "created_at": isoformat(u.created_at),
            "last_login_at": isoformat(u.last_login_at),
            "total_points": points or 0,
            "verses_mastered": mastered or 0,
        }
        for u, points, mastered in rows
    ]


@router.get("/groups")
def list_groups(
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    member_counts = dict(
        db.query(GroupMember.group_id, func.count(GroupMember.id))
        .filter(GroupMember.is_active.is_(True))
        .group_by(GroupMember.group_id)
        .all()
    )
    groups = db.query(Group).order_by(Group.created_at.desc()).all()
    return [
        {
            "id": g.id,
            "name": g.name,
            "description": g.description,
            "created_by": g.created_by,
            "is_active": g.is_active,
            "created_at": isoformat(g.created_at),
            "member_count": member_counts.get(g.id, 0),
        }
        for g in groups
    ]


@router.post("/groups/{group_id}/delete")
def delete_group(
    group_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    group = db.query(Group).filter(Group.id == group_id, Group.is_active.is_(True)).first()
    if not group:
        raise HTTPException(status_code=404, detail="Group not found")

    try:
        group.is_active = False
        db.execute(update(GroupMember).where(GroupMember.group_id == group_id).values(is_active=False))
        db.execute(
            update(GroupInvitation)
            .where(GroupInvitation.group_id == group_id, GroupInvitation.is_accepted.is_(False))
            .values(expires_at=utcnow())
        )
        log_admin_action(db, admin.id, "delete_group", "group", group_id, {"name": group.name})
        db.commit()
    except Exception:
        db.rollback()
        raise
    return {"success": True}


@router.post("/groups/{group_id}/members/{member_id}/remove")
def remove_group_member(
    group_id: int,
    member_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    member = (
        db.query(GroupMember)
        .filter(
            GroupMember.group_id == group_id,
            GroupMember.user_id == member_id,
            GroupMember.is_active.is_(True),
        )
        .first()
    )
    if not member:
        raise HTTPException(status_code=404, detail="Member not found")

    member.is_active = False
    log_admin_action(db, admin.id, "remove_member", "group", group_id, {"user_id": member_id})
    db.commit()
    return {"success": True}


# =========================
# AUDIT LOG
# =========================
@router.get("/audit-log")
def audit_log(
    limit: int = Query(AUDIT_LOG_DEFAULT_LIMIT, ge=1, le=1000),
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    rows = (
        db.query(AdminAuditLog)
        .order_by(AdminAuditLog.performed_at.desc(), AdminAuditLog.id.desc())
        .limit(limit)
        .all()
    )
    return [
        {
            "id": r.id,
            "admin_user_id": r.admin_user_id,
            "action_type": r.action_type,
            "target_type": r.target_type,
            "target_id": r.target_id,
            "action_details": r.action_details,
            "performed_at": isoformat(r.performed_at),
        }
        for r in rows
    ]

"""
Authorization checks and audit logging for admin features.
Super admins implicitly hold every permission.
"""
import json
import logging
from datetime import datetime

from fastapi import Depends, HTTPException
from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.admin.models import SuperAdmin, UserPermission, AdminAuditLog
from app.auth.models import User
from app.core.clock import utcnow
from app.core.deps import get_current_user
from app.db.session import get_db
from app.gamification.models import UserStats

logger = logging.getLogger(__name__)

# Point / mastery thresholds that let regular users create groups
GROUP_CREATION_MIN_POINTS = 5000
GROUP_CREATION_MIN_MASTERED = 5


def is_super_admin(db: Session, user_id: int) -> bool:
    return (
        db.query(SuperAdmin)
        .filter(SuperAdmin.user_id == user_id, SuperAdmin.is_active.is_(True))
        .first()
        is not None
    )


def _active_permissions(db: Session, now: datetime):
    return db.query(UserPermission).filter(
        UserPermission.is_active.is_(True),
        or_(UserPermission.expires_at.is_(None), UserPermission.expires_at > now),
    )


def has_permission(db: Session, user_id: int, permission_type: str) -> bool:
    if is_super_admin(db, user_id):
        return True
    return (
        _active_permissions(db, utcnow())
        .filter(UserPermission.user_id == user_id, UserPermission.permission_type == permission_type)
        .first()
        is not None
    )


def get_user_permissions(db: Session, user_id: int) -> list[UserPermission]:
    return (
        _active_permissions(db, utcnow())
        .filter(UserPermission.user_id == user_id)
        .order_by(UserPermission.granted_at.desc())
        .all()
    )


def can_create_groups(db: Session, user_id: int) -> bool:
    """Permission, or enough gamification progress."""
    if has_permission(db, user_id, "create_groups"):
        return True
    stats = db.query(UserStats).filter(UserStats.user_id == user_id).first()
    if not stats:
        return False
    return (
        stats.total_points >= GROUP_CREATION_MIN_POINTS
        or stats.verses_mastered >= GROUP_CREATION_MIN_MASTERED
    )


def log_admin_action(
    db: Session,
    admin_user_id: int,
    action_type: str,
    target_type: str,
    target_id: int,
    details: dict,
) -> None:
    """Add an audit row to the session; the caller commits it with the action."""
    db.add(
        AdminAuditLog(
            admin_user_id=admin_user_id,
            action_type=action_type,
            target_type=target_type,
            target_id=target_id,
            action_details=json.dumps(details, default=str),
            performed_at=utcnow(),
        )
    )
    logger.info(f"[ADMIN] admin={admin_user_id} {action_type} {target_type}={target_id}")


def require_admin(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> User:
    """Dependency: super admin or holder of manage_users."""
    if not has_permission(db, user.id, "manage_users"):
        raise HTTPException(status_code=403, detail="Insufficient permissions")
    return user

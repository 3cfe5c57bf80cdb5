from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, UniqueConstraint, true

from app.db.base import Base

PERMISSION_TYPES = ("create_groups", "delete_groups", "manage_users", "view_all_groups")


class SuperAdmin(Base):
    __tablename__ = "super_admins"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, unique=True)
    is_active = Column(Boolean, nullable=False, default=True, server_default=true())

    created_at = Column(DateTime(timezone=True), nullable=False)


class UserPermission(Base):
    __tablename__ = "user_permissions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    permission_type = Column(String(32), nullable=False)

    granted_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    granted_at = Column(DateTime(timezone=True), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=True)

    # Revocation flips this instead of deleting the row
    is_active = Column(Boolean, nullable=False, default=True, server_default=true())

    __table_args__ = (
        UniqueConstraint("user_id", "permission_type", name="uq_user_permission"),
    )


class AdminAuditLog(Base):
    __tablename__ = "admin_audit_log"

    id = Column(Integer, primary_key=True, index=True)
    admin_user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    action_type = Column(String(64), nullable=False)   # e.g. "grant_permission"
    target_type = Column(String(32), nullable=False)   # "user" | "group"
    target_id = Column(Integer, nullable=False)
    action_details = Column(Text, nullable=True)       # JSON text

    performed_at = Column(DateTime(timezone=True), nullable=False)

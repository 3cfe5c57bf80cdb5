from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.sql import func

from app.db.base import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)

    email = Column(String(320), unique=True, index=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    last_login_at = Column(DateTime(timezone=True), nullable=True)

    # Set when the account is anonymized; identity row is never hard-deleted
    deleted_at = Column(DateTime(timezone=True), nullable=True)


class UserSession(Base):
    """Opaque bearer token -> user id."""
    __tablename__ = "sessions"

    token = Column(String(64), primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)


class MagicLink(Base):
    """
    One row per issued magic link, keyed by the JWT id.
    Deleted when the link is used, which makes links single-use.
    """
    __tablename__ = "magic_links"

    jti = Column(String(64), primary_key=True)
    email = Column(String(320), nullable=False, index=True)
    verse_set = Column(String(64), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)

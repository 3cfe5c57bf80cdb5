"""
Magic-link sign-in, sessions and account anonymization.
"""
import logging
from datetime import timedelta
from typing import Optional

from sqlalchemy import delete, update
from sqlalchemy.orm import Session

from app.auth.models import User, UserSession, MagicLink
from app.core.clock import as_utc, utcnow
from app.core.config import Settings
from app.core.security import (
    create_magic_link_token,
    decode_magic_link_token,
    generate_jti,
    generate_session_token,
)
from app.gamification.models import UserStats, PointEvent
from app.groups.models import GroupMember
from app.progress.models import WordProgress, VerseAttempt, MasteredVerse, VerseStreak
from app.verses.models import Verse
from app.verses.service import add_verse_set

logger = logging.getLogger(__name__)


class InvalidMagicLinkError(Exception):
    pass


def issue_magic_link(db: Session, email: str, verse_set: Optional[str], settings: Settings) -> str:
    """Store a single-use link id and return the full sign-in URL."""
    now = utcnow()
    jti = generate_jti()
    db.add(
        MagicLink(
            jti=jti,
            email=email,
            verse_set=verse_set,
            created_at=now,
            expires_at=now + timedelta(minutes=settings.magic_link_ttl_minutes),
        )
    )
    db.commit()
    token = create_magic_link_token(email, jti, now, settings)
    link = f"{settings.app_base_url}/auth/verify?token={token}"
    # No mail delivery: the link is logged (and optionally returned) instead
    logger.info(f"[AUTH] magic link issued for {email}: {link}")
    return link


def _get_or_create_user(db: Session, email: str, verse_set: Optional[str]) -> User:
    user = db.query(User).filter(User.email == email).first()
    if user:
        return user
    now = utcnow()
    user = User(email=email, created_at=now)
    db.add(user)
    db.flush()
    added = add_verse_set(db, user.id, verse_set, now)
    logger.info(f"[AUTH] created user={user.id} with {len(added)} starter verses")
    return user


def verify_magic_link(db: Session, token: str, settings: Settings) -> tuple[User, UserSession]:
    """Consume a magic link and open a new session."""
    claims = decode_magic_link_token(token, settings)
    if not claims:
        raise InvalidMagicLinkError("Invalid or expired token")

    link = db.query(MagicLink).filter(MagicLink.jti == claims["jti"]).first()
    now = utcnow()
    if not link or link.email != claims["sub"] or as_utc(link.expires_at) <= now:
        raise InvalidMagicLinkError("Invalid or expired token")

    verse_set = link.verse_set
    db.delete(link)

    user = _get_or_create_user(db, claims["sub"], verse_set)
    user.last_login_at = now

    session = UserSession(
        token=generate_session_token(),
        user_id=user.id,
        created_at=now,
        expires_at=now + timedelta(hours=settings.session_ttl_hours),
    )
    db.add(session)
    db.commit()
    db.refresh(user)
    logger.info(f"[AUTH] session created for user={user.id}")
    return user, session


def end_session(db: Session, token: str) -> None:
    db.execute(delete(UserSession).where(UserSession.token == token))
    db.commit()


def anonymize_user(db: Session, user: User) -> None:
    """
    Remove a user's personal data and practice history, keep the identity row.
    Runs as one transaction.
    """
    user_id = user.id
    try:
        for model in (WordProgress, VerseAttempt, VerseStreak, MasteredVerse, PointEvent, UserStats, Verse, UserSession):
            db.execute(delete(model).where(model.user_id == user_id))
        db.execute(update(GroupMember).where(GroupMember.user_id == user_id).values(is_active=False))
        user.email = f"deleted-{user_id}@deleted.invalid"
        user.deleted_at = utcnow()
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info(f"[AUTH] anonymized user={user_id}")

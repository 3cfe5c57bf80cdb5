import logging

from fastapi import Request, Depends, HTTPException
from sqlalchemy.orm import Session

from app.auth.models import User, UserSession
from app.core.clock import utcnow
from app.core.rate_limit import RateLimiter
from app.core.security import parse_bearer
from app.db.session import get_db

logger = logging.getLogger(__name__)


def get_session_token(request: Request) -> str:
    token = parse_bearer(request.headers.get("authorization"))
    if not token:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return token


def get_current_user(
    token: str = Depends(get_session_token),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the bearer session token to an active user."""
    session = (
        db.query(UserSession)
        .filter(UserSession.token == token, UserSession.expires_at > utcnow())
        .first()
    )
    if not session:
        logger.info("[AUTH] reject reason=invalid_or_expired_session")
        raise HTTPException(status_code=401, detail="Invalid or expired session")

    user = db.query(User).filter(User.id == session.user_id).first()
    if not user or user.deleted_at is not None:
        logger.info(f"[AUTH] reject reason=user_not_found user_id={session.user_id}")
        raise HTTPException(status_code=401, detail="Invalid or expired session")

    return user


def get_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.magic_link_limiter

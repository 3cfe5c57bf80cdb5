from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.auth.models import User
from app.auth.service import (
    InvalidMagicLinkError,
    anonymize_user,
    end_session,
    issue_magic_link,
    verify_magic_link,
)
from app.core.config import Settings, get_settings
from app.core.deps import get_current_user, get_rate_limiter, get_session_token
from app.core.rate_limit import RateLimiter
from app.db.session import get_db

router = APIRouter(prefix="/auth", tags=["auth"])


class MagicLinkRequest(BaseModel):
    email: str
    verse_set: Optional[str] = None


def _normalize_email(email: str) -> str:
    cleaned = email.strip().lower()
    if not cleaned or "@" not in cleaned or " " in cleaned:
        raise HTTPException(status_code=400, detail="A valid email is required")
    return cleaned


# =========================
# MAGIC LINK
# =========================
@router.post("/magic-link")
def send_magic_link(
    body: MagicLinkRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    limiter: RateLimiter = Depends(get_rate_limiter),
):
    email = _normalize_email(body.email)

    if not limiter.hit(email):
        raise HTTPException(status_code=429, detail="Too many requests. Please try again later.")

    link = issue_magic_link(db, email, body.verse_set, settings)

    response = {"success": True}
    if settings.expose_magic_link:
        response["magic_link"] = link
    return response


@router.get("/verify")
def verify(
    token: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    if not token:
        raise HTTPException(status_code=400, detail="Token is required")
    try:
        user, session = verify_magic_link(db, token, settings)
    except InvalidMagicLinkError as exc:
        raise HTTPException(status_code=401, detail=str(exc))
    return {"token": session.token, "email": user.email, "user_id": user.id}


# =========================
# SESSION / ACCOUNT
# =========================
@router.post("/sign-out")
def sign_out(
    token: str = Depends(get_session_token),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    end_session(db, token)
    return {"success": True}


@router.delete("/delete")
def delete_account(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    anonymize_user(db, user)
    return {"success": True}

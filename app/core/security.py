import uuid
from datetime import datetime, timedelta
from typing import Optional

from jose import jwt, JWTError

from app.core.config import Settings

# ======================
# MAGIC LINK TOKENS (JWT)
# ======================

ALGORITHM = "HS256"
MAGIC_LINK_PURPOSE = "magic_link"


def create_magic_link_token(email: str, jti: str, issued_at: datetime, settings: Settings) -> str:
    expire = issued_at + timedelta(minutes=settings.magic_link_ttl_minutes)
    to_encode = {
        "sub": email,
        "jti": jti,
        "purpose": MAGIC_LINK_PURPOSE,
        "iat": issued_at,
        "exp": expire,
    }
    return jwt.encode(to_encode, settings.secret_key, algorithm=ALGORITHM)


def decode_magic_link_token(token: str, settings: Settings) -> Optional[dict]:
    """Claims of a valid, unexpired magic-link token, else None."""
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except JWTError:
        # Covers ExpiredSignatureError as well
        return None
    if payload.get("purpose") != MAGIC_LINK_PURPOSE:
        return None
    if not payload.get("sub") or not payload.get("jti"):
        return None
    return payload


# ======================
# OPAQUE SESSION TOKENS
# ======================

def generate_session_token() -> str:
    return uuid.uuid4().hex


def generate_jti() -> str:
    return uuid.uuid4().hex


def parse_bearer(header_value: Optional[str]) -> Optional[str]:
    """Token from an ``Authorization: Bearer <token>`` header value."""
    if not header_value or not header_value.startswith("Bearer "):
        return None
    token = header_value[7:].strip()
    return token or None

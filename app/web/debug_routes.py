from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.auth.models import User
from app.db.base import describe_engine
from app.db.session import get_db

router = APIRouter(prefix="/debug", tags=["debug"])


@router.get("/diagnostics/db")
def db_diagnostics(db: Session = Depends(get_db)):
    """
    Lightweight DB diagnostics for debugging deployments.

    Only mounted when ENABLE_DEBUG_ROUTES=1. Never returns the password.
    """
    info = describe_engine()
    info["user_count"] = db.query(func.count(User.id)).scalar()
    return info

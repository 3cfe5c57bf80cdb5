from app.db.base import SessionLocal


def get_db():
    """FastAPI dependency: one Session per request, rolled back on error."""
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()

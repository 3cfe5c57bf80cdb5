"""
Dialect-aware INSERT ... ON CONFLICT helper.

SQLite and PostgreSQL both support ON CONFLICT; SQLAlchemy exposes it through
the dialect-specific ``insert`` construct, so pick the one matching the bound
engine.
"""
from sqlalchemy.orm import Session


def insert_for(db: Session):
    """Return the ``insert`` construct for the session's dialect."""
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        raise RuntimeError(f"ON CONFLICT upserts are not supported on dialect '{dialect}'")
    return insert

from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import get_settings


def _build_database_url() -> str:
    """
    Determine the database URL.

    - Prefer DATABASE_URL from the environment (production).
    - Fallback to a local SQLite file for development.
    - Normalize legacy postgres:// URLs to SQLAlchemy's postgresql+psycopg2://.
    """
    url = get_settings().database_url

    if url.startswith("postgres://"):
        # SQLAlchemy 2.x expects a driver-qualified URL
        url = url.replace("postgres://", "postgresql+psycopg2://", 1)

    return url


DATABASE_URL = _build_database_url()

engine_kwargs = {}
if DATABASE_URL.startswith("sqlite"):
    # Needed for SQLite when used with FastAPI in a single process
    engine_kwargs["connect_args"] = {"check_same_thread": False}
    if DATABASE_URL in ("sqlite://", "sqlite:///:memory:"):
        # In-memory database must be shared by every session
        engine_kwargs["poolclass"] = StaticPool

engine = create_engine(DATABASE_URL, future=True, **engine_kwargs)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def describe_engine() -> dict:
    """Password-free description of the configured database."""
    url = engine.url
    backend = url.get_backend_name()
    info = {
        "backend": backend,
        "url": url.render_as_string(hide_password=True),
    }
    if backend == "sqlite" and url.database:
        db_path = Path(url.database).resolve()
        exists = db_path.exists()
        info.update(
            {
                "sqlite_path": str(db_path),
                "sqlite_exists": exists,
                "sqlite_size_bytes": db_path.stat().st_size if exists else 0,
            }
        )
    elif backend != "sqlite":
        info.update(
            {
                "database": url.database,
                "host": url.host,
                "port": url.port,
                "drivername": url.drivername,
            }
        )
    return info


# Helpful DB diagnostics printed once at startup
try:
    _info = describe_engine()
    print(f"[DB] Using database backend={_info['backend']} url={_info['url']}", flush=True)
    if "sqlite_path" in _info:
        print(
            f"[DB] SQLite path={_info['sqlite_path']} exists={_info['sqlite_exists']} "
            f"size_bytes={_info['sqlite_size_bytes']}",
            flush=True,
        )
except Exception as exc:
    # Never crash app on logging
    print("[DB] Failed to log DB diagnostics:", repr(exc), flush=True)

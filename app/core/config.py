"""
Configuration for the application.

Values come from the environment (optionally a .env file at the project root)
and are collected into a single immutable Settings object.  Handlers receive it
through ``Depends(get_settings)`` instead of reading os.environ themselves.
"""
import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

env_path = Path(__file__).resolve().parent.parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DEV_SECRET_KEY = "dev-secret-key-CHANGE-IN-PRODUCTION-12345678901234567890"


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


@dataclass(frozen=True)
class Settings:
    environment: str = "development"
    database_url: str = "sqlite:///./local.db"
    secret_key: str = DEV_SECRET_KEY

    session_ttl_hours: int = 24
    magic_link_ttl_minutes: int = 15
    magic_link_rate_limit: int = 5
    magic_link_rate_window_seconds: int = 60

    app_base_url: str = "http://localhost:5173"
    expose_magic_link: bool = False
    enable_debug_routes: bool = False
    cors_origins: tuple = field(default_factory=lambda: ("*",))

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


def load_settings() -> Settings:
    """Build Settings from the current environment."""
    environment = os.getenv("ENVIRONMENT", "development").strip().lower()

    secret_key = os.getenv("SECRET_KEY", os.getenv("JWT_SECRET_KEY", "")).strip()
    if not secret_key:
        # Production must provide a secret; local dev falls back to a fixed one.
        if environment == "production":
            raise RuntimeError("SECRET_KEY or JWT_SECRET_KEY env var is required in production")
        secret_key = DEV_SECRET_KEY

    origins = os.getenv("CORS_ORIGINS", "*")

    return Settings(
        environment=environment,
        database_url=os.getenv("DATABASE_URL", "sqlite:///./local.db").strip(),
        secret_key=secret_key,
        session_ttl_hours=_env_int("SESSION_TTL_HOURS", 24),
        magic_link_ttl_minutes=_env_int("MAGIC_LINK_TTL_MINUTES", 15),
        magic_link_rate_limit=_env_int("MAGIC_LINK_RATE_LIMIT", 5),
        magic_link_rate_window_seconds=_env_int("MAGIC_LINK_RATE_WINDOW_SECONDS", 60),
        app_base_url=os.getenv("APP_BASE_URL", "http://localhost:5173").rstrip("/"),
        expose_magic_link=_env_bool("EXPOSE_MAGIC_LINK", environment != "production"),
        enable_debug_routes=_env_bool("ENABLE_DEBUG_ROUTES", False),
        cors_origins=tuple(o.strip() for o in origins.split(",") if o.strip()),
    )


@lru_cache
def get_settings() -> Settings:
    return load_settings()

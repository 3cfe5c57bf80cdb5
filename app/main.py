from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import get_settings
from app.core.errors import register_exception_handlers
from app.core.logging import configure_logging
from app.core.rate_limit import RateLimiter
from app.web.debug_routes import router as debug_router

from app.db.base import Base, engine
from app.auth.models import User, UserSession, MagicLink  # Import so create_all picks them up
from app.verses.models import Verse
from app.progress.models import WordProgress, VerseAttempt, MasteredVerse, VerseStreak
from app.gamification.models import UserStats, PointEvent
from app.groups.models import Group, GroupMember, GroupInvitation
from app.admin.models import SuperAdmin, UserPermission, AdminAuditLog

from app.auth.routes import router as auth_router
from app.verses.routes import router as verses_router
from app.progress.routes import router as progress_router
from app.gamification.routes import router as gamification_router
from app.groups.routes import router as groups_router
from app.admin.routes import router as admin_router


configure_logging()
settings = get_settings()

app = FastAPI(title="Scripture Memory API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_credentials="*" not in settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)
register_exception_handlers(app)

# One limiter per process; tests reset or replace it
app.state.magic_link_limiter = RateLimiter(
    settings.magic_link_rate_limit,
    settings.magic_link_rate_window_seconds,
)

# Only expose debug routes (including diagnostics) when explicitly enabled.
if settings.enable_debug_routes:
    app.include_router(debug_router)

# Create database tables (still useful in dev; in production prefer Alembic)
Base.metadata.create_all(bind=engine)

# Include routers
app.include_router(auth_router)
app.include_router(verses_router)
app.include_router(progress_router)
app.include_router(gamification_router)
app.include_router(groups_router)
app.include_router(admin_router)


@app.get("/health", include_in_schema=False)
def health():
    return {"status": "ok"}

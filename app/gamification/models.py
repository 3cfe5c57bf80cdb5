from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Index

from app.db.base import Base


# ======================================================
# USER STATS (denormalized rollup of the point ledger)
# ======================================================
class UserStats(Base):
    __tablename__ = "user_stats"

    user_id = Column(Integer, ForeignKey("users.id"), primary_key=True)

    total_points = Column(Integer, nullable=False, default=0)

    # Daily login streak, in UTC calendar days
    current_streak = Column(Integer, nullable=False, default=0)
    longest_streak = Column(Integer, nullable=False, default=0)

    verses_mastered = Column(Integer, nullable=False, default=0)
    total_attempts = Column(Integer, nullable=False, default=0)

    # Equal to created_at until the first streak update
    last_activity_date = Column(DateTime(timezone=True), nullable=False)

    # Guess streak of the most recently practiced verse
    current_verse_streak = Column(Integer, nullable=False, default=0)
    current_verse_reference = Column(String(255), nullable=True)
    longest_word_guess_streak = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), nullable=False)


# ======================================================
# POINT EVENTS (append-only ledger)
# ======================================================
class PointEvent(Base):
    __tablename__ = "point_events"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    # word_correct | verse_attempt | verse_added | mastery_achieved | daily_streak
    event_type = Column(String(32), nullable=False)
    points = Column(Integer, nullable=False)

    # JSON text
    metadata_json = Column("metadata", Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("ix_point_events_user_created", "user_id", "created_at"),
    )

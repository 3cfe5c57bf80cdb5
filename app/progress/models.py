from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, UniqueConstraint, Index

from app.db.base import Base


class WordProgress(Base):
    """Last attempt at each word slot of a verse (not history)."""
    __tablename__ = "word_progress"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    verse_reference = Column(String(255), nullable=False)
    word_index = Column(Integer, nullable=False)

    word = Column(String(255), nullable=False)
    is_correct = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "verse_reference", "word_index", name="uq_word_progress_slot"),
    )


class VerseAttempt(Base):
    """Append-only: one row per completed practice attempt."""
    __tablename__ = "verse_attempts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    verse_reference = Column(String(255), nullable=False)

    words_correct = Column(Integer, nullable=False)
    total_words = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("ix_verse_attempts_user_verse_created", "user_id", "verse_reference", "created_at"),
    )


class MasteredVerse(Base):
    """Presence of a row means the verse is mastered, permanently."""
    __tablename__ = "mastered_verses"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    verse_reference = Column(String(255), nullable=False)

    mastered_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "verse_reference", name="uq_mastered_verse"),
    )


class VerseStreak(Base):
    """Best and current run of consecutive correct words, per verse."""
    __tablename__ = "verse_streaks"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    verse_reference = Column(String(255), nullable=False)

    longest_guess_streak = Column(Integer, nullable=False, default=0)
    current_guess_streak = Column(Integer, nullable=False, default=0)
    last_guess_date = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        UniqueConstraint("user_id", "verse_reference", name="uq_verse_streak"),
    )

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, UniqueConstraint

from app.db.base import Base

VERSE_STATUSES = ("not_started", "in_progress", "mastered")


class Verse(Base):
    __tablename__ = "verses"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    reference = Column(String(255), nullable=False)  # e.g. "John 3:16"
    text = Column(Text, nullable=False)
    translation = Column(String(32), nullable=False, default="NIV")
    status = Column(String(32), nullable=False, default="not_started")

    created_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "reference", name="uq_user_verse"),
    )

"""UserWord model"""
from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from wordsapi.models.base import Base

STATUS_LEARNING = "learning"
STATUS_REVIEWING = "reviewing"
STATUS_MASTERED = "mastered"
STATUSES = (STATUS_LEARNING, STATUS_REVIEWING, STATUS_MASTERED)


class UserWord(Base):
    """Per-user learning record for a word - one row per (user, word)"""
    __tablename__ = "user_words"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    word_id = Column(Integer, ForeignKey("words.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default=STATUS_LEARNING)
    ease_factor = Column(Float, nullable=False, default=2.5)
    interval_days = Column(Integer, nullable=False, default=1)
    next_review_date = Column(DateTime(timezone=True), nullable=False)
    added_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)

    # Relationships
    user = relationship("User", back_populates="user_words")
    word = relationship("Word", back_populates="user_words")

    __table_args__ = (
        UniqueConstraint('user_id', 'word_id', name='uq_user_words_user_word'),
        Index('ix_user_words_user_next_review', 'user_id', 'next_review_date'),
    )

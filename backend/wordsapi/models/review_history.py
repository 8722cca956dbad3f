"""ReviewHistory model"""
from sqlalchemy import Column, Integer, Float, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from wordsapi.models.base import Base


class ReviewHistory(Base):
    """Append-only review log - rows are never updated or deleted directly"""
    __tablename__ = "review_history"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    word_id = Column(Integer, ForeignKey("words.id", ondelete="CASCADE"), nullable=False, index=True)
    reviewed_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)
    quality = Column(Integer, nullable=False)  # 0-5 rating
    interval_days = Column(Integer, nullable=False)  # resulting interval
    ease_factor = Column(Float, nullable=False)  # resulting ease factor

    # Relationships
    user = relationship("User", back_populates="review_history")
    word = relationship("Word")

    __table_args__ = (
        Index('ix_review_history_user_word_reviewed', 'user_id', 'word_id', 'reviewed_at'),
    )

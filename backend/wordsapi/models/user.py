"""User model"""
from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from wordsapi.models.base import Base


class User(Base):
    """Learner accounts - identified by a unique username"""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(20), unique=True, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)

    # Relationships
    user_words = relationship("UserWord", back_populates="user", cascade="all, delete-orphan", passive_deletes=True)
    review_history = relationship("ReviewHistory", back_populates="user", cascade="all, delete-orphan", passive_deletes=True)

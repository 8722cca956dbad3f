"""Pydantic schemas for study lists, reviews and stats"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class ReviewRequest(BaseModel):
    # Range is checked by the scheduler so out-of-range values map to 400
    quality: int


class UserWordResponse(BaseModel):
    id: int
    user_id: int
    word_id: int
    word: str
    added_at: datetime
    status: str
    next_review_date: datetime
    ease_factor: float
    interval_days: int


class UserWordList(BaseModel):
    words: List[UserWordResponse]
    count: int


class ReviewHistoryResponse(BaseModel):
    id: int
    user_id: int
    word_id: int
    word: str
    reviewed_at: datetime
    quality: int
    interval_days: int
    ease_factor: float


class ReviewHistoryList(BaseModel):
    history: List[ReviewHistoryResponse]
    count: int


class UserStatsResponse(BaseModel):
    username: str
    total_words: int
    due_today: int
    learning: int
    reviewing: int
    mastered: int
    total_reviews: int
    current_streak: int
    last_review_date: Optional[datetime] = None

"""Review API routes"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from wordsapi.core.security import require_auth
from wordsapi.db.session import get_db
from wordsapi.schemas.auth import UserResponse
from wordsapi.schemas.vocabulary import ReviewHistoryList, ReviewRequest, UserWordList, UserWordResponse
from wordsapi.services.review_service import (
    get_due_words, get_review_history, review_history_to_response, submit_review
)
from wordsapi.services.vocabulary_service import user_word_to_response

router = APIRouter(prefix="/api/review", tags=["review"])


@router.get("", response_model=UserWordList)
def list_due_words(user: UserResponse = Depends(require_auth), db: Session = Depends(get_db)):
    """Words due for review, earliest-overdue first"""
    words = [user_word_to_response(uw) for uw in get_due_words(user.id, db)]
    return {"words": words, "count": len(words)}


@router.post("/{word}", response_model=UserWordResponse)
def review_word(
    word: str,
    request_data: ReviewRequest,
    user: UserResponse = Depends(require_auth),
    db: Session = Depends(get_db)
):
    """Submit a 0-5 recall rating for a word"""
    return user_word_to_response(submit_review(user.id, word, request_data.quality, db))


@router.get("/{word}/history", response_model=ReviewHistoryList)
def review_history(word: str, user: UserResponse = Depends(require_auth), db: Session = Depends(get_db)):
    history = [review_history_to_response(h) for h in get_review_history(user.id, word, db)]
    return {"history": history, "count": len(history)}

"""Vocabulary service - a user's study list"""
import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from wordsapi.core.config import settings
from wordsapi.core.errors import InvalidInput, InvalidWord, NotInStudyList, StorageFault
from wordsapi.db.helpers import ensure_utc, get_user_word as fetch_user_word, get_user_words as fetch_user_words, normalize_word
from wordsapi.models.user_word import STATUS_LEARNING, STATUSES, UserWord
from wordsapi.schemas.vocabulary import UserWordResponse
from wordsapi.services.dictionary_client import DictionaryClient
from wordsapi.services.review_service import DEFAULT_EASE_FACTOR, FIRST_INTERVAL
from wordsapi.services.word_service import get_word

logger = logging.getLogger(__name__)


def add_word(
    user_id: int,
    word: str,
    db: Session,
    client: Optional[DictionaryClient] = None,
    now: Optional[datetime] = None,
) -> UserWord:
    """Add a word to the user's study list, resolving it first.

    Adding a word that is already on the list returns the existing record.
    """
    key = normalize_word(word)
    if not key:
        raise InvalidWord()
    now = now or datetime.now(timezone.utc)

    entry = get_word(key, db, client=client)
    if entry.id is None:
        raise StorageFault(f"word '{key}' could not be saved")

    existing = fetch_user_word(user_id, entry.id, db)
    if existing is not None:
        return existing

    user_word = UserWord(
        user_id=user_id,
        word_id=entry.id,
        status=STATUS_LEARNING,
        ease_factor=DEFAULT_EASE_FACTOR,
        interval_days=FIRST_INTERVAL,
        next_review_date=now + timedelta(minutes=settings.FIRST_REVIEW_DELAY_MINUTES),
        added_at=now,
    )
    try:
        db.add(user_word)
        db.commit()
    except IntegrityError:
        # Lost a race with a concurrent add of the same word
        db.rollback()
        existing = fetch_user_word(user_id, entry.id, db)
        if existing is None:
            raise StorageFault(f"failed to add word '{key}'")
        return existing
    except SQLAlchemyError as e:
        db.rollback()
        raise StorageFault(f"failed to add word: {e}") from e

    db.refresh(user_word)
    logger.info(f"User {user_id} added '{key}' to study list")
    return user_word


def get_user_words(user_id: int, db: Session, status: Optional[str] = None) -> List[UserWord]:
    """Study list, newest first, optionally filtered by status"""
    if status and status not in STATUSES:
        raise InvalidInput(f"invalid status '{status}', must be one of: {', '.join(STATUSES)}")
    return fetch_user_words(user_id, db, status=status or None)


def get_user_word(user_id: int, word_id: int, db: Session) -> UserWord:
    user_word = fetch_user_word(user_id, word_id, db)
    if user_word is None:
        raise NotInStudyList(str(word_id))
    return user_word


def user_word_to_response(user_word: UserWord) -> UserWordResponse:
    return UserWordResponse(
        id=user_word.id,
        user_id=user_word.user_id,
        word_id=user_word.word_id,
        word=user_word.word.word,
        added_at=ensure_utc(user_word.added_at),
        status=user_word.status,
        next_review_date=ensure_utc(user_word.next_review_date),
        ease_factor=user_word.ease_factor,
        interval_days=user_word.interval_days,
    )

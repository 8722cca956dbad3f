"""Review service - SM-2 spaced repetition scheduling

Each review rates recall quality 0-5. The rating moves the word's ease factor,
which in turn stretches (or resets) the interval until the next review.
"""
import logging
import math
from datetime import datetime, timedelta, timezone
from typing import List, NamedTuple, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from wordsapi.core.errors import InvalidQuality, InvalidWord, NotInStudyList, StorageFault, WordNotFound
from wordsapi.core.metrics import reviews_counter
from wordsapi.db.helpers import (
    append_review_history, ensure_utc, get_due_user_words, get_review_history as fetch_review_history,
    get_user_word, get_word_id, normalize_word
)
from wordsapi.db.session import transaction
from wordsapi.models.review_history import ReviewHistory
from wordsapi.models.user_word import STATUS_LEARNING, STATUS_MASTERED, STATUS_REVIEWING, UserWord
from wordsapi.schemas.vocabulary import ReviewHistoryResponse

logger = logging.getLogger(__name__)

MIN_QUALITY = 0
MAX_QUALITY = 5
PASSING_QUALITY = 3
DEFAULT_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3
FIRST_INTERVAL = 1
SECOND_INTERVAL = 6
MASTERY_INTERVAL = 21  # days


class ReviewOutcome(NamedTuple):
    ease_factor: float
    interval_days: int
    status: str


def validate_quality(quality) -> int:
    """Reject anything that is not an integer rating in [0, 5]"""
    if isinstance(quality, bool) or not isinstance(quality, int):
        raise InvalidQuality(quality)
    if quality < MIN_QUALITY or quality > MAX_QUALITY:
        raise InvalidQuality(quality)
    return quality


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def calculate_sm2(ease_factor: float, interval_days: int, quality: int) -> ReviewOutcome:
    """Compute the next ease factor, interval and status for one review.

    Pure function of the prior state and the rating.
    """
    quality = validate_quality(quality)
    miss = MAX_QUALITY - quality

    new_ease = ease_factor + (0.1 - miss * (0.08 + miss * 0.02))
    if new_ease < MIN_EASE_FACTOR:
        new_ease = MIN_EASE_FACTOR

    if quality < PASSING_QUALITY:
        return ReviewOutcome(new_ease, FIRST_INTERVAL, STATUS_LEARNING)

    if interval_days == FIRST_INTERVAL:
        new_interval = SECOND_INTERVAL
    else:
        new_interval = _round_half_up(interval_days * new_ease)
    new_interval = max(new_interval, FIRST_INTERVAL)

    status = STATUS_REVIEWING if new_interval < MASTERY_INTERVAL else STATUS_MASTERED
    return ReviewOutcome(new_ease, new_interval, status)


def submit_review(
    user_id: int,
    word: str,
    quality: int,
    db: Session,
    now: Optional[datetime] = None,
) -> UserWord:
    """Apply one review to the user's record for a word.

    The UserWord update and the history append commit together or not at all.

    Raises:
        InvalidQuality: rating outside 0-5
        NotInStudyList: the word is not in the user's study list
    """
    quality = validate_quality(quality)
    key = normalize_word(word)
    if not key:
        raise InvalidWord()
    now = now or datetime.now(timezone.utc)

    try:
        word_id = get_word_id(key, db)
    except WordNotFound:
        raise NotInStudyList(key)

    try:
        with transaction(db):
            user_word = get_user_word(user_id, word_id, db, for_update=True)
            if user_word is None:
                raise NotInStudyList(key)

            outcome = calculate_sm2(user_word.ease_factor, user_word.interval_days, quality)

            user_word.ease_factor = outcome.ease_factor
            user_word.interval_days = outcome.interval_days
            user_word.status = outcome.status
            user_word.next_review_date = now + timedelta(days=outcome.interval_days)

            append_review_history(
                user_id=user_id,
                word_id=word_id,
                quality=quality,
                interval_days=outcome.interval_days,
                ease_factor=outcome.ease_factor,
                reviewed_at=now,
                db=db,
            )
    except SQLAlchemyError as e:
        raise StorageFault(f"failed to update review: {e}") from e

    reviews_counter.labels(outcome="pass" if quality >= PASSING_QUALITY else "fail").inc()
    logger.info(
        f"User {user_id} reviewed '{key}' (q={quality}): interval={outcome.interval_days}d "
        f"ease={outcome.ease_factor:.2f} status={outcome.status}"
    )

    db.refresh(user_word)
    return user_word


def get_due_words(user_id: int, db: Session, now: Optional[datetime] = None) -> List[UserWord]:
    """Words whose next review is due, earliest-overdue first"""
    now = now or datetime.now(timezone.utc)
    return get_due_user_words(user_id, now, db)


def get_review_history(user_id: int, word: str, db: Session) -> List[ReviewHistory]:
    """Review log for a (user, word) pair, most recent first

    Raises:
        WordNotFound: the word has never been cached locally
    """
    key = normalize_word(word)
    if not key:
        raise InvalidWord()
    word_id = get_word_id(key, db)
    return fetch_review_history(user_id, word_id, db)


def review_history_to_response(entry: ReviewHistory) -> ReviewHistoryResponse:
    return ReviewHistoryResponse(
        id=entry.id,
        user_id=entry.user_id,
        word_id=entry.word_id,
        word=entry.word.word,
        reviewed_at=ensure_utc(entry.reviewed_at),
        quality=entry.quality,
        interval_days=entry.interval_days,
        ease_factor=entry.ease_factor,
    )

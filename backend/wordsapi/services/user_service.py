"""User service - accounts, stats and review streaks"""
import logging
import re
from datetime import date, datetime, timedelta, timezone
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from wordsapi.core.errors import InvalidUsername, StorageFault, UsernameTaken
from wordsapi.db.helpers import ensure_utc, get_user_by_id, get_user_by_username
from wordsapi.models.review_history import ReviewHistory
from wordsapi.models.user import User
from wordsapi.models.user_word import STATUS_LEARNING, STATUS_MASTERED, STATUS_REVIEWING, UserWord
from wordsapi.schemas.vocabulary import UserStatsResponse

logger = logging.getLogger(__name__)

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 20
USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_]+$")


def validate_username(username: str) -> str:
    """Return the trimmed username or raise InvalidUsername"""
    username = (username or "").strip()
    if len(username) < USERNAME_MIN_LENGTH:
        raise InvalidUsername(f"username must be at least {USERNAME_MIN_LENGTH} characters")
    if len(username) > USERNAME_MAX_LENGTH:
        raise InvalidUsername(f"username must be at most {USERNAME_MAX_LENGTH} characters")
    if not USERNAME_PATTERN.match(username):
        raise InvalidUsername("username can only contain letters, numbers, and underscores")
    return username


def create_user(username: str, db: Session) -> User:
    """Create a new user.

    Raises:
        InvalidUsername: fails length/character rules
        UsernameTaken: the username is already registered
    """
    username = validate_username(username)

    user = User(username=username, created_at=datetime.now(timezone.utc))
    try:
        db.add(user)
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise UsernameTaken(username) from e
    except SQLAlchemyError as e:
        db.rollback()
        raise StorageFault(f"failed to create user: {e}") from e
    db.refresh(user)

    logger.info(f"Created user {user.id} ({username})")
    return user


def get_user(username: str, db: Session) -> User:
    return get_user_by_username((username or "").strip(), db)


def get_user_by_user_id(user_id: int, db: Session) -> User:
    return get_user_by_id(user_id, db)


# ============================================================================
# STREAKS & STATS
# ============================================================================

def get_review_days(user_id: int, db: Session) -> List[date]:
    """Distinct UTC calendar days with at least one review, most recent first"""
    try:
        rows = db.query(ReviewHistory.reviewed_at).filter(ReviewHistory.user_id == user_id).all()
    except SQLAlchemyError as e:
        raise StorageFault(f"failed to load review history: {e}") from e
    days = {ensure_utc(reviewed_at).date() for (reviewed_at,) in rows}
    return sorted(days, reverse=True)


def streak_from_days(days: List[date], today: date) -> int:
    """Consecutive-day run ending today or yesterday; days must be distinct and descending"""
    if not days:
        return 0
    if (today - days[0]).days > 1:
        return 0

    streak = 1
    for previous, current in zip(days, days[1:]):
        if previous - current != timedelta(days=1):
            break
        streak += 1
    return streak


def calculate_streak(user_id: int, db: Session, today: Optional[date] = None) -> int:
    """Current review streak in days"""
    today = today or datetime.now(timezone.utc).date()
    return streak_from_days(get_review_days(user_id, db), today)


def get_user_stats(user: User, db: Session, now: Optional[datetime] = None) -> UserStatsResponse:
    """Study-list counts, review totals and the current streak"""
    now = now or datetime.now(timezone.utc)

    try:
        status_counts = dict(
            db.query(UserWord.status, func.count(UserWord.id))
            .filter(UserWord.user_id == user.id)
            .group_by(UserWord.status)
            .all()
        )
        due_today = (
            db.query(func.count(UserWord.id))
            .filter(UserWord.user_id == user.id, UserWord.next_review_date <= now)
            .scalar()
        )
        total_reviews, last_review = (
            db.query(func.count(ReviewHistory.id), func.max(ReviewHistory.reviewed_at))
            .filter(ReviewHistory.user_id == user.id)
            .one()
        )
    except SQLAlchemyError as e:
        raise StorageFault(f"failed to get user stats: {e}") from e

    try:
        streak = calculate_streak(user.id, db, today=now.astimezone(timezone.utc).date())
    except StorageFault as e:
        logger.warning(f"Failed to calculate streak for user {user.id}: {e}")
        db.rollback()
        streak = 0

    return UserStatsResponse(
        username=user.username,
        total_words=sum(status_counts.values()),
        due_today=due_today or 0,
        learning=status_counts.get(STATUS_LEARNING, 0),
        reviewing=status_counts.get(STATUS_REVIEWING, 0),
        mastered=status_counts.get(STATUS_MASTERED, 0),
        total_reviews=total_reviews or 0,
        current_streak=streak,
        last_review_date=ensure_utc(last_review),
    )

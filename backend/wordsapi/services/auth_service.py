"""Authentication service - username-only login backed by the session store"""
import logging
from typing import Tuple

from sqlalchemy.orm import Session

from wordsapi.core.errors import UserNotFound, UsernameTaken, WordsError
from wordsapi.core.metrics import login_attempts_counter
from wordsapi.schemas.auth import UserResponse
from wordsapi.services.session_store import Session as AuthSession, SessionStore
from wordsapi.services.user_service import create_user, get_user

logger = logging.getLogger(__name__)
security_logger = logging.getLogger("security")


def get_or_create_user(username: str, db: Session):
    """Fetch the user, registering the name on first login"""
    try:
        return get_user(username, db)
    except UserNotFound:
        pass

    try:
        return create_user(username, db)
    except UsernameTaken:
        # Registered concurrently between the lookup and the insert
        return get_user(username, db)


def login_user(username: str, db: Session, store: SessionStore) -> Tuple[UserResponse, AuthSession]:
    """Log a user in by name, creating the account if needed"""
    try:
        user = get_or_create_user(username, db)
    except WordsError as e:
        login_attempts_counter.labels(status="failure").inc()
        security_logger.warning(f"Login failed for '{username}': {e}")
        raise

    user_data = UserResponse.model_validate(user)
    session = store.create_session(user_data)
    login_attempts_counter.labels(status="success").inc()
    security_logger.info(f"User {user_data.id} ({user_data.username}) logged in")
    return user_data, session


def logout_user(token: str, store: SessionStore) -> None:
    if token:
        store.delete_session(token)


def get_current_user(token: str, store: SessionStore) -> UserResponse:
    """User bound to a session token

    Raises:
        SessionNotFound: unknown token
        SessionExpired: token past its lifetime
    """
    return store.get_session(token).user

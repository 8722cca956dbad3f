"""Auth API routes"""
import logging

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from wordsapi.core.security import (
    clear_auth_cookie, get_session_store, get_session_token, require_auth, set_auth_cookie
)
from wordsapi.db.session import get_db
from wordsapi.schemas.auth import LoginRequest, UserResponse
from wordsapi.services.auth_service import login_user, logout_user
from wordsapi.services.session_store import SessionStore

router = APIRouter(prefix="/api/auth", tags=["auth"])
logger = logging.getLogger(__name__)


@router.post("/login")
def login(
    request_data: LoginRequest,
    response: Response,
    db: Session = Depends(get_db),
    store: SessionStore = Depends(get_session_store)
):
    """Login by username; unknown usernames are registered on the fly"""
    user, session = login_user(request_data.username, db, store)
    set_auth_cookie(response, session.token)
    return {"user": user}


@router.post("/logout")
def logout(request: Request, response: Response, store: SessionStore = Depends(get_session_store)):
    """Logout user"""
    logout_user(get_session_token(request), store)
    clear_auth_cookie(response)
    return {"message": "Logged out successfully"}


@router.get("/me")
def get_current_user(user: UserResponse = Depends(require_auth)):
    """Get current logged-in user"""
    return {"user": user}

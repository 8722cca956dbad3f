"""User API routes"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from wordsapi.core.security import require_auth
from wordsapi.db.session import get_db
from wordsapi.schemas.auth import CreateUserRequest, UserResponse
from wordsapi.schemas.vocabulary import UserStatsResponse
from wordsapi.services.user_service import create_user, get_user_by_user_id, get_user_stats

router = APIRouter(prefix="/api", tags=["users"])


@router.post("/users", response_model=UserResponse, status_code=201)
def register_user(request_data: CreateUserRequest, db: Session = Depends(get_db)):
    """Create a user without logging in"""
    return create_user(request_data.username, db)


@router.get("/user", response_model=UserResponse)
def get_user(user: UserResponse = Depends(require_auth), db: Session = Depends(get_db)):
    return get_user_by_user_id(user.id, db)


@router.get("/user/stats", response_model=UserStatsResponse)
def get_stats(user: UserResponse = Depends(require_auth), db: Session = Depends(get_db)):
    """Study-list and review statistics for the current user"""
    return get_user_stats(get_user_by_user_id(user.id, db), db)

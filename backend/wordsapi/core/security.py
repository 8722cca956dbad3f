"""Security dependencies: session-cookie authentication and access logging"""
import json
import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends, HTTPException, Request, Response

from wordsapi.core.config import settings
from wordsapi.core.errors import Expired, NotFound
from wordsapi.schemas.auth import UserResponse
from wordsapi.services.session_store import SessionStore

security_logger = logging.getLogger("security")
api_access_logger = logging.getLogger("api_access")

# Process-wide session registry; replaced per test through dependency_overrides
session_store = SessionStore()


def get_session_store() -> SessionStore:
    """Dependency: the shared session registry"""
    return session_store


def get_session_token(request: Request) -> Optional[str]:
    return request.cookies.get(settings.SESSION_COOKIE_NAME)


def require_auth(request: Request, store: SessionStore = Depends(get_session_store)) -> UserResponse:
    """Dependency: Require authentication, return the session's user"""
    token = get_session_token(request)

    if not token:
        raise HTTPException(401, "Not authenticated. Please log in.")

    try:
        return store.get_session(token).user
    except Expired:
        security_logger.info(f"Rejected expired session - Path: {request.url.path}")
        raise HTTPException(401, "Session expired. Please log in again.")
    except NotFound:
        security_logger.warning(f"Rejected unknown session token - Path: {request.url.path}")
        raise HTTPException(401, "Not authenticated. Please log in.")


def set_auth_cookie(response: Response, token: str) -> None:
    """Set the HttpOnly session cookie for the store's lifetime"""
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite="lax",
        max_age=settings.SESSION_TTL_HOURS * 60 * 60,
        path="/",
    )


def clear_auth_cookie(response: Response) -> None:
    response.delete_cookie(settings.SESSION_COOKIE_NAME, path="/")


def log_api_access(
    request: Request,
    session_token: Optional[str] = None,
    status_code: int = 200,
    error: Optional[str] = None
):
    """Log detailed API access information"""
    client_ip = request.headers.get("X-Forwarded-For", "").split(",")[0].strip()
    if not client_ip:
        client_ip = request.client.host if request.client else "unknown"

    log_data = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "method": request.method,
        "path": request.url.path,
        "query": str(request.url.query) if request.url.query else None,
        "session": session_token[:8] + "..." if session_token else None,
        "client_ip": client_ip,
        "user_agent": request.headers.get("User-Agent", "unknown"),
        "status_code": status_code,
        "error": error
    }

    if error or status_code >= 400:
        api_access_logger.warning(f"API Access: {json.dumps(log_data)}")
    else:
        api_access_logger.info(f"API Access: {json.dumps(log_data)}")

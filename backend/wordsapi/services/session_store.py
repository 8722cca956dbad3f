"""In-memory session registry

Sessions map an opaque token to an authenticated user for a fixed lifetime.
They live only in process memory: a restart logs everybody out.

The registry is shared by every request thread and by the periodic sweep.
Reads take a shared lock, mutations (insert, delete, sweep) an exclusive one.
"""
import asyncio
import logging
import secrets
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional

from wordsapi.core.config import settings
from wordsapi.core.errors import SessionExpired, SessionNotFound
from wordsapi.core.metrics import active_sessions_gauge
from wordsapi.schemas.auth import UserResponse

logger = logging.getLogger(__name__)
security_logger = logging.getLogger("security")

TOKEN_BYTES = 32


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_session_token() -> str:
    """URL-safe token from the OS CSPRNG (32 random bytes)"""
    return secrets.token_urlsafe(TOKEN_BYTES)


@dataclass(frozen=True)
class Session:
    token: str
    user: UserResponse
    created_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at


class ReadWriteLock:
    """Many concurrent readers or a single writer; waiting writers block new readers"""

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read_locked(self):
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write_locked(self):
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class SessionStore:
    """Token -> Session registry with lazy and periodic expiry"""

    def __init__(
        self,
        ttl: Optional[timedelta] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._ttl = ttl if ttl is not None else timedelta(hours=settings.SESSION_TTL_HOURS)
        self._clock = clock
        self._sessions: Dict[str, Session] = {}
        self._lock = ReadWriteLock()
        self._cleanup_task: Optional[asyncio.Task] = None

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    def __len__(self) -> int:
        with self._lock.read_locked():
            return len(self._sessions)

    def __contains__(self, token: str) -> bool:
        with self._lock.read_locked():
            return token in self._sessions

    def create_session(self, user: UserResponse) -> Session:
        """Create and store a session for the user, valid for the store's TTL"""
        token = generate_session_token()
        now = self._clock()
        session = Session(token=token, user=user, created_at=now, expires_at=now + self._ttl)

        with self._lock.write_locked():
            self._sessions[token] = session
            count = len(self._sessions)

        active_sessions_gauge.set(count)
        security_logger.info(f"Session created for user {user.id}")
        return session

    def get_session(self, token: str) -> Session:
        """Return the live session for the token.

        Raises:
            SessionNotFound: unknown token
            SessionExpired: token past its lifetime; the entry is evicted
        """
        with self._lock.read_locked():
            session = self._sessions.get(token)

        if session is None:
            raise SessionNotFound()

        if session.is_expired(self._clock()):
            self._evict(token, session)
            raise SessionExpired()

        return session

    def delete_session(self, token: str) -> None:
        """Remove a session; unknown tokens are ignored"""
        with self._lock.write_locked():
            self._sessions.pop(token, None)
            count = len(self._sessions)
        active_sessions_gauge.set(count)

    def _evict(self, token: str, session: Session) -> None:
        # Only drop the exact entry we saw expire
        with self._lock.write_locked():
            if self._sessions.get(token) is session:
                del self._sessions[token]
            count = len(self._sessions)
        active_sessions_gauge.set(count)

    def cleanup_expired(self) -> int:
        """Evict every session with expires_at < now; returns the number removed"""
        now = self._clock()
        with self._lock.write_locked():
            expired = [token for token, s in self._sessions.items() if s.expires_at < now]
            for token in expired:
                del self._sessions[token]
            count = len(self._sessions)
        active_sessions_gauge.set(count)
        return len(expired)

    # ------------------------------------------------------------------
    # Background sweep lifecycle
    # ------------------------------------------------------------------

    def start_cleanup(self, interval: Optional[float] = None) -> asyncio.Task:
        """Schedule the periodic sweep on the running event loop"""
        from wordsapi.tasks.cleanup import session_cleanup_task

        if self._cleanup_task is not None and not self._cleanup_task.done():
            return self._cleanup_task

        interval = interval if interval is not None else settings.SESSION_CLEANUP_INTERVAL
        self._cleanup_task = asyncio.create_task(session_cleanup_task(self, interval))
        logger.info(f"Session cleanup scheduled every {interval}s")
        return self._cleanup_task

    async def stop_cleanup(self) -> None:
        """Cancel the sweep task and wait for it to finish"""
        task, self._cleanup_task = self._cleanup_task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Session cleanup stopped")

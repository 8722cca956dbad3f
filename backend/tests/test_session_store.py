"""Tests for the in-memory session registry"""
import asyncio
import string
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone

import pytest

from conftest import FrozenClock
from wordsapi.core.errors import SessionExpired, SessionNotFound
from wordsapi.schemas.auth import UserResponse
from wordsapi.services.session_store import ReadWriteLock, SessionStore

URL_SAFE = set(string.ascii_letters + string.digits + "-_")


def make_user(user_id: int = 1, username: str = "test_user") -> UserResponse:
    return UserResponse(id=user_id, username=username, created_at=datetime(2026, 1, 1, tzinfo=timezone.utc))


@pytest.mark.critical
class TestSessionLifecycle:
    """Create, look up, expire and delete sessions"""

    def test_create_and_get(self, session_store, clock):
        session = session_store.create_session(make_user())

        assert session.created_at == clock.now
        assert session.expires_at == clock.now + timedelta(hours=24)

        found = session_store.get_session(session.token)
        assert found.user.id == 1
        assert found.user.username == "test_user"

    def test_token_is_random_and_url_safe(self, session_store):
        tokens = {session_store.create_session(make_user()).token for _ in range(200)}
        assert len(tokens) == 200
        for token in tokens:
            # 32 random bytes -> 43 base64url characters
            assert len(token) >= 43
            assert set(token) <= URL_SAFE

    def test_unknown_token(self, session_store):
        with pytest.raises(SessionNotFound):
            session_store.get_session("not-a-real-token")

    def test_valid_until_expiry_instant(self, session_store, clock):
        session = session_store.create_session(make_user())
        clock.advance(hours=24)
        assert session_store.get_session(session.token).token == session.token

    def test_expired_session_rejected_and_evicted(self, session_store, clock):
        session = session_store.create_session(make_user())
        clock.advance(hours=24, seconds=1)

        with pytest.raises(SessionExpired):
            session_store.get_session(session.token)

        assert session.token not in session_store
        with pytest.raises(SessionNotFound):
            session_store.get_session(session.token)

    def test_delete_is_idempotent(self, session_store):
        session = session_store.create_session(make_user())
        session_store.delete_session(session.token)
        session_store.delete_session(session.token)
        session_store.delete_session("never-existed")

        with pytest.raises(SessionNotFound):
            session_store.get_session(session.token)

    def test_cleanup_removes_only_expired(self, session_store, clock):
        old = session_store.create_session(make_user(1))
        clock.advance(hours=12)
        fresh = session_store.create_session(make_user(2))
        clock.advance(hours=13)

        assert session_store.cleanup_expired() == 1
        assert old.token not in session_store
        assert fresh.token in session_store
        assert len(session_store) == 1

    def test_default_ttl_from_settings(self):
        assert SessionStore().ttl == timedelta(hours=24)


@pytest.mark.high
class TestConcurrency:
    """Shared use from many threads"""

    def test_concurrent_create_get_and_sweep(self):
        clock = FrozenClock()
        store = SessionStore(ttl=timedelta(hours=1), clock=clock)

        def worker(i):
            session = store.create_session(make_user(i))
            for _ in range(20):
                assert store.get_session(session.token).user.id == i
            if i % 10 == 0:
                store.cleanup_expired()
            return session.token

        with ThreadPoolExecutor(max_workers=16) as pool:
            tokens = list(pool.map(worker, range(200)))

        assert len(set(tokens)) == 200
        assert len(store) == 200

        clock.advance(hours=2)
        assert store.cleanup_expired() == 200
        assert len(store) == 0

    def test_readers_share_the_lock(self):
        lock = ReadWriteLock()
        both_inside = threading.Barrier(2, timeout=5)

        def reader():
            with lock.read_locked():
                both_inside.wait()

        threads = [threading.Thread(target=reader) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=5)

        assert not both_inside.broken

    def test_writer_excludes_readers(self):
        lock = ReadWriteLock()
        events = []
        writer_inside = threading.Event()
        release_writer = threading.Event()

        def writer():
            with lock.write_locked():
                writer_inside.set()
                release_writer.wait(timeout=5)
                events.append("write-done")

        def reader():
            writer_inside.wait(timeout=5)
            with lock.read_locked():
                events.append("read")

        w = threading.Thread(target=writer)
        r = threading.Thread(target=reader)
        w.start()
        r.start()
        writer_inside.wait(timeout=5)
        r.join(timeout=0.2)
        assert events == []

        release_writer.set()
        w.join(timeout=5)
        r.join(timeout=5)
        assert events == ["write-done", "read"]


@pytest.mark.high
class TestCleanupTask:
    """Periodic background sweep"""

    @pytest.mark.asyncio
    async def test_sweep_runs_until_stopped(self):
        clock = FrozenClock()
        store = SessionStore(ttl=timedelta(hours=1), clock=clock)
        store.create_session(make_user())
        clock.advance(hours=2)

        task = store.start_cleanup(interval=0.01)
        for _ in range(200):
            if len(store) == 0:
                break
            await asyncio.sleep(0.01)

        assert len(store) == 0

        await store.stop_cleanup()
        assert task.cancelled()

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self):
        store = SessionStore()
        first = store.start_cleanup(interval=3600)
        second = store.start_cleanup(interval=3600)
        assert first is second
        await store.stop_cleanup()
        await store.stop_cleanup()

    @pytest.mark.asyncio
    async def test_sweep_survives_errors(self, monkeypatch):
        store = SessionStore()
        calls = []

        def flaky_cleanup():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("boom")
            return 0

        monkeypatch.setattr(store, "cleanup_expired", flaky_cleanup)
        store.start_cleanup(interval=0.01)
        for _ in range(200):
            if len(calls) >= 2:
                break
            await asyncio.sleep(0.01)
        await store.stop_cleanup()

        assert len(calls) >= 2

    @pytest.mark.asyncio
    async def test_sweep_runs_off_the_event_loop(self, monkeypatch):
        store = SessionStore()
        loop_thread = threading.get_ident()
        sweep_threads = []

        def recording_cleanup():
            sweep_threads.append(threading.get_ident())
            return 0

        monkeypatch.setattr(store, "cleanup_expired", recording_cleanup)
        store.start_cleanup(interval=0.01)
        for _ in range(200):
            if sweep_threads:
                break
            await asyncio.sleep(0.01)
        await store.stop_cleanup()

        assert sweep_threads
        assert loop_thread not in sweep_threads

    @pytest.mark.asyncio
    async def test_loop_stays_responsive_while_sweep_waits_for_lock(self):
        store = SessionStore()
        store.create_session(make_user())
        release = threading.Event()
        reader_holding = threading.Event()

        def hold_read_lock():
            with store._lock.read_locked():
                reader_holding.set()
                release.wait(5)

        reader = threading.Thread(target=hold_read_lock)
        reader.start()
        reader_holding.wait(5)

        store.start_cleanup(interval=0.01)
        started = time.monotonic()
        for _ in range(10):
            await asyncio.sleep(0.01)
        elapsed = time.monotonic() - started

        release.set()
        reader.join(5)
        await store.stop_cleanup()

        assert elapsed < 2
        assert len(store) == 1

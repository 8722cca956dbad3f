"""Shared pytest fixtures for test suite"""
import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Generator
from unittest.mock import patch
from urllib.parse import unquote

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Keep the application engine off disk during tests
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

# Add backend directory to Python path
backend_dir = Path(__file__).parent.parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

from wordsapi.main import app
from wordsapi.core.security import get_session_store
from wordsapi.db.helpers import save_word
from wordsapi.db.session import get_db
from wordsapi.models import Base
from wordsapi.models.user import User
from wordsapi.models.user_word import STATUS_LEARNING, UserWord
from wordsapi.models.word import Word
from wordsapi.schemas.word import DefinitionEntry, MeaningEntry, WordEntry
from wordsapi.services.dictionary_client import DictionaryClient, get_dictionary_client
from wordsapi.services.session_store import SessionStore
from wordsapi.services.user_service import create_user


# SQLite in-memory database for testing
TEST_DATABASE_URL = "sqlite:///:memory:"

# Create test engine with StaticPool for in-memory database
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

# Create test session factory
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

TEST_DICTIONARY_URL = "https://dictionary.test/api/v2/entries/en"

# Payloads in the dictionaryapi.dev response format
DICTIONARY_PAYLOADS = {
    "serendipity": [{
        "word": "serendipity",
        "phonetic": "/ˌsɛɹ.ənˈdɪp.ɪ.ti/",
        "phonetics": [
            {"text": "/ˌsɛɹ.ənˈdɪp.ɪ.ti/", "audio": "https://audio.test/serendipity-us.mp3"},
            {"text": "/ˌsɛɹ.ənˈdɪp.ə.ti/"}
        ],
        "meanings": [{
            "partOfSpeech": "noun",
            "definitions": [
                {
                    "definition": "An unsought, unintended, and unexpected, but fortunate, discovery.",
                    "example": "It was pure serendipity that we met.",
                    "synonyms": ["chance"],
                    "antonyms": []
                },
                {"definition": "The faculty of making such discoveries.", "synonyms": [], "antonyms": []}
            ],
            "synonyms": ["fluke", "luck"],
            "antonyms": ["misfortune"]
        }],
        "license": {"name": "CC BY-SA 3.0", "url": "https://creativecommons.org/licenses/by-sa/3.0"},
        "sourceUrls": ["https://en.wiktionary.org/wiki/serendipity"]
    }],
    "ephemeral": [{
        "word": "ephemeral",
        "phonetic": "/ɪˈfɛm(ə)ɹəl/",
        "phonetics": [],
        "meanings": [
            {
                "partOfSpeech": "adjective",
                "definitions": [{"definition": "Lasting for a short period of time.", "synonyms": [], "antonyms": ["permanent"]}],
                "synonyms": ["fleeting"],
                "antonyms": []
            },
            {
                "partOfSpeech": "noun",
                "definitions": [{"definition": "Something which lasts for a short period of time."}]
            }
        ],
        "sourceUrls": ["https://en.wiktionary.org/wiki/ephemeral"]
    }],
    "ubiquitous": [{
        "word": "ubiquitous",
        "meanings": [{
            "partOfSpeech": "adjective",
            "definitions": [{"definition": "Being everywhere at once."}]
        }]
    }],
}


class DictionaryApiStub:
    """httpx.MockTransport handler serving DICTIONARY_PAYLOADS; records requested words"""

    def __init__(self, payloads=None):
        self.payloads = dict(DICTIONARY_PAYLOADS if payloads is None else payloads)
        self.requests = []
        self.status_override = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        word = unquote(request.url.raw_path.decode("ascii").split("?", 1)[0].rsplit("/", 1)[-1])
        self.requests.append(word)
        if self.status_override is not None:
            return httpx.Response(self.status_override, text="upstream unavailable")
        if word not in self.payloads:
            return httpx.Response(404, json={"title": "No Definitions Found"})
        return httpx.Response(200, json=self.payloads[word])


class FrozenClock:
    """Manually advanced UTC clock for session expiry tests"""

    def __init__(self, now: datetime = None):
        self.now = now or datetime(2026, 3, 14, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Create a fresh SQLite in-memory database session for each test"""
    # Create all tables
    Base.metadata.create_all(bind=test_engine)

    # Create session
    session = TestSessionLocal()

    try:
        yield session
    finally:
        session.close()
        # Drop all tables after test
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture(scope="function")
def dictionary_api() -> DictionaryApiStub:
    return DictionaryApiStub()


@pytest.fixture(scope="function")
def dictionary_client(dictionary_api) -> Generator[DictionaryClient, None, None]:
    """Dictionary client wired to the in-process API stub"""
    client = DictionaryClient(
        base_url=TEST_DICTIONARY_URL,
        timeout=2.0,
        transport=httpx.MockTransport(dictionary_api)
    )
    try:
        yield client
    finally:
        client.close()


@pytest.fixture(scope="function")
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture(scope="function")
def session_store(clock) -> SessionStore:
    """Fresh session registry per test, driven by the frozen clock"""
    return SessionStore(ttl=timedelta(hours=24), clock=clock)


@pytest.fixture(scope="function")
def client(db_session: Session, session_store: SessionStore, dictionary_client) -> Generator[TestClient, None, None]:
    """FastAPI test client with test database, session store and dictionary stub"""

    # Override get_db dependency to use test database
    def override_get_db():
        try:
            yield db_session
        finally:
            pass  # Don't close session here, handled by fixture

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_store] = lambda: session_store
    app.dependency_overrides[get_dictionary_client] = lambda: dictionary_client

    try:
        # Skip OpenTelemetry and the on-disk schema bootstrap in tests
        with patch('wordsapi.main.initialize_otel', return_value=False):
            with patch('wordsapi.main.init_db'):
                with TestClient(app) as test_client:
                    yield test_client
    finally:
        # Cleanup - always clear overrides
        app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def test_user(db_session: Session) -> User:
    """Create a test user"""
    return create_user("test_user", db_session)


@pytest.fixture(scope="function")
def test_user_2(db_session: Session) -> User:
    """Create a second test user for ownership tests"""
    return create_user("other_user", db_session)


@pytest.fixture(scope="function")
def authenticated_client(client: TestClient, test_user: User) -> TestClient:
    """Client logged in as test_user (session cookie set)"""
    response = client.post("/api/auth/login", json={"username": test_user.username})
    assert response.status_code == 200
    return client


def make_entry(word: str, definition: str = "A test definition.", part_of_speech: str = "noun") -> WordEntry:
    return WordEntry(
        word=word,
        meanings=[MeaningEntry(part_of_speech=part_of_speech, definitions=[DefinitionEntry(definition=definition)])],
        source_urls=[f"https://en.wiktionary.org/wiki/{word}"],
    )


def add_study_word(
    db: Session,
    user: User,
    word: str,
    next_review_date: datetime,
    interval_days: int = 1,
    ease_factor: float = 2.5,
    status: str = STATUS_LEARNING,
) -> UserWord:
    """Cache a word (if needed) and put it on the user's study list"""
    cached = db.query(Word).filter(Word.word == word).first() or save_word(make_entry(word), db)
    user_word = UserWord(
        user_id=user.id,
        word_id=cached.id,
        status=status,
        ease_factor=ease_factor,
        interval_days=interval_days,
        next_review_date=next_review_date,
        added_at=next_review_date - timedelta(hours=1),
    )
    db.add(user_word)
    db.commit()
    db.refresh(user_word)
    return user_word


def racing_dictionary_client(dictionary_api: DictionaryApiStub, db: Session, word: str) -> DictionaryClient:
    """Client whose fetch lets a concurrent request cache `word` before returning"""

    def handler(request: httpx.Request) -> httpx.Response:
        save_word(make_entry(word, "Cached by the other request."), db)
        return dictionary_api(request)

    return DictionaryClient(base_url=TEST_DICTIONARY_URL, timeout=2.0, transport=httpx.MockTransport(handler))

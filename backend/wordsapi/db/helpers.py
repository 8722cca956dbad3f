"""Database helper functions for learning-state records"""
import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from wordsapi.core.errors import Conflict, StorageFault, UserNotFound, WordNotFound
from wordsapi.models.review_history import ReviewHistory
from wordsapi.models.user import User
from wordsapi.models.user_word import UserWord
from wordsapi.models.word import (
    Antonym, Definition, Meaning, Phonetic, SourceUrl, Synonym, Word
)
from wordsapi.schemas.word import DefinitionEntry, MeaningEntry, PhoneticEntry, WordEntry

logger = logging.getLogger(__name__)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes (SQLite drops the offset) as UTC"""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def normalize_word(word: str) -> str:
    """Canonical lookup key for a headword"""
    return (word or "").strip().lower()


# ============================================================================
# USERS
# ============================================================================

def get_user_by_username(username: str, db: Session) -> User:
    """Get user by username, raising UserNotFound when absent"""
    try:
        user = db.query(User).filter(User.username == username).first()
    except SQLAlchemyError as e:
        raise StorageFault(f"failed to get user: {e}") from e
    if not user:
        raise UserNotFound(username)
    return user


def get_user_by_id(user_id: int, db: Session) -> User:
    """Get user by ID, raising UserNotFound when absent"""
    try:
        user = db.query(User).filter(User.id == user_id).first()
    except SQLAlchemyError as e:
        raise StorageFault(f"failed to get user: {e}") from e
    if not user:
        raise UserNotFound(str(user_id))
    return user


# ============================================================================
# WORDS
# ============================================================================

def get_word_by_key(key: str, db: Session) -> Word:
    """Load a word with every nested collection eagerly.

    Raises:
        WordNotFound: no row for the key (a plain cache miss)
        StorageFault: any other failure talking to the store
    """
    try:
        word = (
            db.query(Word)
            .options(
                selectinload(Word.phonetics),
                selectinload(Word.source_urls),
                selectinload(Word.meanings).selectinload(Meaning.synonyms),
                selectinload(Word.meanings).selectinload(Meaning.antonyms),
                selectinload(Word.meanings).selectinload(Meaning.definitions).selectinload(Definition.synonyms),
                selectinload(Word.meanings).selectinload(Meaning.definitions).selectinload(Definition.antonyms),
            )
            .filter(Word.word == key)
            .first()
        )
    except SQLAlchemyError as e:
        raise StorageFault(f"failed to retrieve word: {e}") from e
    if word is None:
        raise WordNotFound(key)
    return word


def get_word_id(key: str, db: Session) -> int:
    """ID of a cached word without loading its nested rows"""
    try:
        row = db.query(Word.id).filter(Word.word == key).first()
    except SQLAlchemyError as e:
        raise StorageFault(f"failed to retrieve word: {e}") from e
    if row is None:
        raise WordNotFound(key)
    return row[0]


def word_exists(key: str, db: Session) -> bool:
    try:
        return db.query(Word.id).filter(Word.word == key).first() is not None
    except SQLAlchemyError as e:
        raise StorageFault(f"failed to check word: {e}") from e


def build_word(entry: WordEntry, key: str) -> Word:
    """Build an unsaved Word graph (meanings, definitions, phonetics, URLs) from an entry"""
    now = datetime.now(timezone.utc)
    word = Word(word=key, phonetic=entry.phonetic or None, created_at=now, updated_at=now)

    for p in entry.phonetics:
        word.phonetics.append(Phonetic(text=p.text or "", audio=p.audio or None))

    for m in entry.meanings:
        meaning = Meaning(part_of_speech=m.part_of_speech)
        meaning.synonyms = [Synonym(synonym=s) for s in m.synonyms]
        meaning.antonyms = [Antonym(antonym=a) for a in m.antonyms]
        for d in m.definitions:
            definition = Definition(definition=d.definition, example=d.example or None)
            definition.synonyms = [Synonym(synonym=s) for s in d.synonyms]
            definition.antonyms = [Antonym(antonym=a) for a in d.antonyms]
            meaning.definitions.append(definition)
        word.meanings.append(meaning)

    for url in entry.source_urls:
        word.source_urls.append(SourceUrl(url=url))

    return word


def save_word(entry: WordEntry, db: Session, key: Optional[str] = None) -> Word:
    """Persist an entry and its nested rows in one transaction.

    Raises:
        Conflict: a word with the same key already exists
        StorageFault: any other persistence failure (nothing is written)
    """
    key = key or normalize_word(entry.word)
    word = build_word(entry, key)
    try:
        db.add(word)
        db.commit()
        db.refresh(word)
    except IntegrityError as e:
        db.rollback()
        raise Conflict(f"word '{key}' already exists") from e
    except SQLAlchemyError as e:
        db.rollback()
        raise StorageFault(f"failed to save word: {e}") from e
    return word


def word_to_entry(word: Word) -> WordEntry:
    """Reconstruct the full entry value from a loaded Word row"""
    return WordEntry(
        id=word.id,
        word=word.word,
        phonetic=word.phonetic,
        phonetics=[PhoneticEntry(text=p.text, audio=p.audio) for p in word.phonetics],
        meanings=[
            MeaningEntry(
                part_of_speech=m.part_of_speech,
                definitions=[
                    DefinitionEntry(
                        definition=d.definition,
                        example=d.example,
                        synonyms=[s.synonym for s in d.synonyms],
                        antonyms=[a.antonym for a in d.antonyms],
                    )
                    for d in m.definitions
                ],
                synonyms=[s.synonym for s in m.synonyms],
                antonyms=[a.antonym for a in m.antonyms],
            )
            for m in word.meanings
        ],
        source_urls=[u.url for u in word.source_urls],
        created_at=ensure_utc(word.created_at),
    )


# ============================================================================
# USER WORDS & REVIEW HISTORY
# ============================================================================

def get_user_word(user_id: int, word_id: int, db: Session, for_update: bool = False) -> Optional[UserWord]:
    """Get the learning record for a (user, word) pair, or None"""
    try:
        query = db.query(UserWord).filter(
            UserWord.user_id == user_id,
            UserWord.word_id == word_id
        )
        if for_update:
            query = query.with_for_update()
        return query.first()
    except SQLAlchemyError as e:
        raise StorageFault(f"failed to get user word: {e}") from e


def get_user_words(user_id: int, db: Session, status: Optional[str] = None) -> List[UserWord]:
    """All learning records for a user, newest first"""
    try:
        query = db.query(UserWord).filter(UserWord.user_id == user_id)
        if status:
            query = query.filter(UserWord.status == status)
        return query.order_by(UserWord.added_at.desc(), UserWord.id.desc()).all()
    except SQLAlchemyError as e:
        raise StorageFault(f"failed to get user words: {e}") from e


def get_due_user_words(user_id: int, now: datetime, db: Session) -> List[UserWord]:
    """Records with next_review_date <= now, earliest-overdue first"""
    try:
        return (
            db.query(UserWord)
            .filter(UserWord.user_id == user_id, UserWord.next_review_date <= now)
            .order_by(UserWord.next_review_date.asc(), UserWord.id.asc())
            .all()
        )
    except SQLAlchemyError as e:
        raise StorageFault(f"failed to get due words: {e}") from e


def append_review_history(
    user_id: int,
    word_id: int,
    quality: int,
    interval_days: int,
    ease_factor: float,
    reviewed_at: datetime,
    db: Session,
) -> ReviewHistory:
    """Stage one append-only history row; the caller's unit of work commits it"""
    entry = ReviewHistory(
        user_id=user_id,
        word_id=word_id,
        quality=quality,
        interval_days=interval_days,
        ease_factor=ease_factor,
        reviewed_at=reviewed_at,
    )
    db.add(entry)
    return entry


def get_review_history(user_id: int, word_id: int, db: Session) -> List[ReviewHistory]:
    """History rows for a pair, most recent first"""
    try:
        return (
            db.query(ReviewHistory)
            .filter(ReviewHistory.user_id == user_id, ReviewHistory.word_id == word_id)
            .order_by(ReviewHistory.reviewed_at.desc(), ReviewHistory.id.desc())
            .all()
        )
    except SQLAlchemyError as e:
        raise StorageFault(f"failed to get review history: {e}") from e

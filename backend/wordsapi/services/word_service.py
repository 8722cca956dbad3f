"""Word service - cache-aside resolution of dictionary entries"""
import logging
from typing import Optional

from sqlalchemy.orm import Session

from wordsapi.core.errors import Conflict, InvalidWord, StorageFault, WordNotFound, WordsError
from wordsapi.core.metrics import word_lookups_counter
from wordsapi.db.helpers import get_word_by_key, normalize_word, save_word, word_to_entry
from wordsapi.schemas.word import WordEntry
from wordsapi.services.dictionary_client import DictionaryClient, get_dictionary_client

logger = logging.getLogger(__name__)
dictionary_logger = logging.getLogger("dictionary")


def get_word(word: str, db: Session, client: Optional[DictionaryClient] = None) -> WordEntry:
    """Resolve a word to its full dictionary entry.

    Local storage is consulted first; on a miss the dictionary source is
    queried and the result cached under the normalized key. A failure to
    cache does not fail the lookup: the fetched entry is returned without
    a local id.

    Raises:
        InvalidWord: empty after normalization
        WordNotFound: unknown to the dictionary source (not cached)
        TransportFailure: dictionary source unreachable or misbehaving
        StorageFault: local lookup failed for a reason other than a miss
    """
    key = normalize_word(word)
    if not key:
        raise InvalidWord()

    try:
        cached = get_word_by_key(key, db)
    except WordNotFound:
        dictionary_logger.info(f"Cache miss for '{key}', fetching from dictionary API")
    except StorageFault:
        word_lookups_counter.labels(source="error").inc()
        raise
    else:
        word_lookups_counter.labels(source="cache").inc()
        dictionary_logger.info(f"Cache hit for '{key}'")
        return word_to_entry(cached)

    client = client or get_dictionary_client()
    try:
        fetched = client.fetch(key)
    except WordNotFound:
        word_lookups_counter.labels(source="not_found").inc()
        dictionary_logger.info(f"Word '{key}' not found in dictionary API")
        raise
    except WordsError:
        word_lookups_counter.labels(source="error").inc()
        raise

    word_lookups_counter.labels(source="upstream").inc()

    try:
        saved = save_word(fetched, db, key=key)
    except Conflict:
        # A concurrent lookup cached the word first; serve its row
        try:
            saved = get_word_by_key(key, db)
        except WordsError as e:
            dictionary_logger.warning(f"Failed to cache word '{key}': {e}")
            return fetched.model_copy(update={"word": key})
        dictionary_logger.info(f"Word '{key}' was cached concurrently, using id {saved.id}")
        return word_to_entry(saved)
    except StorageFault as e:
        dictionary_logger.warning(f"Failed to cache word '{key}': {e}")
        return fetched.model_copy(update={"word": key})

    dictionary_logger.info(f"Cached word '{key}' with id {saved.id}")
    return word_to_entry(saved)

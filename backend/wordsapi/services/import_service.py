"""Import service - bulk loading of dictionary data into the word cache"""
import json
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from wordsapi.core.config import settings
from wordsapi.core.errors import Conflict, WordsError
from wordsapi.db.helpers import normalize_word, save_word, word_exists
from wordsapi.schemas.word import DefinitionEntry, MeaningEntry, WordEntry

logger = logging.getLogger(__name__)

WORDSET_SOURCE_URL = "https://github.com/wordset/wordset-dictionary"


@dataclass
class ImportResult:
    imported: int = 0
    skipped: int = 0
    failed: int = 0

    @property
    def total(self) -> int:
        return self.imported + self.skipped + self.failed


class WordIndex:
    """Case-insensitive accumulator that merges duplicate headwords"""

    def __init__(self):
        self._words: Dict[str, WordEntry] = {}

    def __len__(self) -> int:
        return len(self._words)

    def __contains__(self, word: str) -> bool:
        return normalize_word(word) in self._words

    def get(self, word: str) -> Optional[WordEntry]:
        return self._words.get(normalize_word(word))

    def add_or_merge(self, entry: WordEntry) -> None:
        """Add an entry, or fold it into the one already held under its key.

        Meanings, phonetics and source URLs are appended; the phonetic is
        replaced only by a longer one.
        """
        key = normalize_word(entry.word)
        if not key:
            return

        existing = self._words.get(key)
        if existing is None:
            self._words[key] = entry.model_copy(update={"word": key}, deep=True)
            return

        existing.meanings.extend(m.model_copy(deep=True) for m in entry.meanings)
        existing.phonetics.extend(p.model_copy() for p in entry.phonetics)
        existing.source_urls.extend(entry.source_urls)
        if entry.phonetic and len(entry.phonetic) > len(existing.phonetic or ""):
            existing.phonetic = entry.phonetic

    def entries(self) -> List[WordEntry]:
        return list(self._words.values())


# ============================================================================
# WORDSET FORMAT
# ============================================================================

def convert_wordset_entry(raw: dict) -> WordEntry:
    """Convert one wordset record; meanings are grouped by part of speech in first-seen order

    Raises:
        ValueError: the record or one of its meanings is not a JSON object
    """
    if not isinstance(raw, dict):
        raise ValueError(f"expected a word record object, got {type(raw).__name__}")
    raw_meanings = raw.get("meanings") or []
    if not isinstance(raw_meanings, list):
        raise ValueError(f"'meanings' must be a list, got {type(raw_meanings).__name__}")

    meanings: Dict[str, MeaningEntry] = {}
    for raw_meaning in raw_meanings:
        if not isinstance(raw_meaning, dict):
            raise ValueError(f"expected a meaning object, got {type(raw_meaning).__name__}")
        pos = raw_meaning.get("speech_part") or ""
        meaning = meanings.get(pos)
        if meaning is None:
            meaning = MeaningEntry(part_of_speech=pos)
            meanings[pos] = meaning
        meaning.definitions.append(
            DefinitionEntry(
                definition=raw_meaning.get("def") or "",
                example=raw_meaning.get("example") or None,
                synonyms=list(raw_meaning.get("synonyms") or []),
            )
        )

    return WordEntry(
        word=normalize_word(raw.get("word", "")),
        meanings=list(meanings.values()),
        source_urls=[WORDSET_SOURCE_URL],
    )


def load_wordset_file(path: Path, index: WordIndex) -> int:
    """Load one wordset JSON file into the index; returns the number of records read

    The whole file is converted before anything is merged, so a malformed
    record leaves the index untouched.
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    if not isinstance(data, dict):
        raise ValueError(f"{path.name}: expected a JSON object of entries")

    entries = []
    for record_id, raw in data.items():
        try:
            entries.append(convert_wordset_entry(raw))
        except ValueError as e:
            raise ValueError(f"{path.name}: record '{record_id}': {e}") from e

    for entry in entries:
        index.add_or_merge(entry)
    return len(entries)


def load_wordset_dir(data_dir: Path) -> WordIndex:
    """Load every *.json file in a directory; unreadable files are logged and skipped"""
    index = WordIndex()
    files = sorted(Path(data_dir).glob("*.json"))
    total_loaded = 0

    for i, path in enumerate(files, start=1):
        try:
            count = load_wordset_file(path, index)
        except (OSError, ValueError) as e:
            logger.error(f"Error loading {path}: {e}")
            continue
        total_loaded += count
        logger.info(f"[{i}/{len(files)}] {path.name}: {count} entries")

    logger.info(f"Loaded {total_loaded} entries, deduplicated to {len(index)} unique words")
    return index


# ============================================================================
# PERSISTENCE
# ============================================================================

def import_words(entries: Iterable[WordEntry], db: Session, batch_size: Optional[int] = None) -> ImportResult:
    """Save entries one unit of work each; words already cached are skipped"""
    batch_size = batch_size or settings.IMPORT_BATCH_SIZE
    entries = list(entries)
    total = len(entries)
    result = ImportResult()
    started = time.monotonic()

    for start in range(0, total, batch_size):
        for entry in entries[start:start + batch_size]:
            key = normalize_word(entry.word)
            try:
                if word_exists(key, db):
                    result.skipped += 1
                    continue
                save_word(entry, db, key=key)
                result.imported += 1
            except Conflict:
                result.skipped += 1
            except WordsError as e:
                logger.error(f"Error importing '{key}': {e}")
                result.failed += 1

        done = min(start + batch_size, total)
        elapsed = time.monotonic() - started
        rate = done / elapsed if elapsed > 0 else 0.0
        logger.info(
            f"Progress: {done}/{total} ({done / total * 100:.1f}%) | "
            f"Rate: {rate:.0f} words/sec | Skipped: {result.skipped} | Errors: {result.failed}"
        )

    return result

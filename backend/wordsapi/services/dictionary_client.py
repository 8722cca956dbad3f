"""Client for the public dictionary API (dictionaryapi.dev)"""
import logging
import threading
from typing import List, Optional
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from wordsapi.core.config import settings
from wordsapi.core.errors import TransportFailure, WordNotFound
from wordsapi.schemas.word import DefinitionEntry, MeaningEntry, PhoneticEntry, WordEntry

logger = logging.getLogger(__name__)
dictionary_logger = logging.getLogger("dictionary")


# ============================================================================
# UPSTREAM PAYLOAD
# ============================================================================

class _ApiModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ApiDefinition(_ApiModel):
    definition: str = ""
    example: Optional[str] = None
    synonyms: List[str] = Field(default_factory=list)
    antonyms: List[str] = Field(default_factory=list)


class ApiMeaning(_ApiModel):
    part_of_speech: str = Field("", alias="partOfSpeech")
    definitions: List[ApiDefinition] = Field(default_factory=list)
    synonyms: List[str] = Field(default_factory=list)
    antonyms: List[str] = Field(default_factory=list)


class ApiPhonetic(_ApiModel):
    text: Optional[str] = None
    audio: Optional[str] = None


class ApiEntry(_ApiModel):
    word: str
    phonetic: Optional[str] = None
    phonetics: List[ApiPhonetic] = Field(default_factory=list)
    meanings: List[ApiMeaning] = Field(default_factory=list)
    source_urls: List[str] = Field(default_factory=list, alias="sourceUrls")


def convert_api_entry(api_entry: ApiEntry) -> WordEntry:
    """Convert an upstream entry into the local WordEntry shape"""
    return WordEntry(
        word=api_entry.word,
        phonetic=api_entry.phonetic or None,
        phonetics=[
            PhoneticEntry(text=p.text or "", audio=p.audio or None)
            for p in api_entry.phonetics
        ],
        meanings=[
            MeaningEntry(
                part_of_speech=m.part_of_speech,
                definitions=[
                    DefinitionEntry(
                        definition=d.definition,
                        example=d.example or None,
                        synonyms=d.synonyms,
                        antonyms=d.antonyms,
                    )
                    for d in m.definitions
                ],
                synonyms=m.synonyms,
                antonyms=m.antonyms,
            )
            for m in api_entry.meanings
        ],
        source_urls=api_entry.source_urls,
    )


# ============================================================================
# CLIENT
# ============================================================================

class DictionaryClient:
    """Synchronous HTTP client for word definitions.

    Pass ``transport`` (e.g. ``httpx.MockTransport``) to stub the network.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = (base_url or settings.DICTIONARY_API_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.DICTIONARY_API_TIMEOUT
        self._client = httpx.Client(timeout=self.timeout, transport=transport)

    def fetch(self, word: str) -> WordEntry:
        """Fetch one word from the dictionary source.

        Raises:
            WordNotFound: the source has no entry (HTTP 404)
            TransportFailure: network error, unexpected status, or unusable payload
        """
        url = f"{self.base_url}/{quote(word, safe='')}"
        try:
            response = self._client.get(url)
        except httpx.TimeoutException as e:
            dictionary_logger.error(f"Dictionary API timed out for '{word}' after {self.timeout}s")
            raise TransportFailure(f"failed to fetch word: timeout after {self.timeout}s") from e
        except httpx.HTTPError as e:
            dictionary_logger.error(f"Dictionary API request failed for '{word}': {e}")
            raise TransportFailure(f"failed to fetch word: {e}") from e

        if response.status_code == 404:
            raise WordNotFound(word)

        if response.status_code != 200:
            body = response.text[:200]
            dictionary_logger.error(f"Dictionary API returned {response.status_code} for '{word}': {body}")
            raise TransportFailure(f"API returned status {response.status_code}: {body}")

        try:
            payload = response.json()
        except ValueError as e:
            raise TransportFailure(f"failed to decode response: {e}") from e

        if not isinstance(payload, list):
            raise TransportFailure("unexpected response shape from dictionary API")
        if not payload:
            raise TransportFailure("no entries found")

        try:
            api_entry = ApiEntry.model_validate(payload[0])
        except ValidationError as e:
            raise TransportFailure(f"failed to decode response: {e.error_count()} validation errors") from e

        return convert_api_entry(api_entry)

    def close(self):
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()


_dictionary_client: Optional[DictionaryClient] = None
_dictionary_client_lock = threading.Lock()


def get_dictionary_client() -> DictionaryClient:
    """Shared client for the process (FastAPI dependency)"""
    global _dictionary_client
    if _dictionary_client is None:
        with _dictionary_client_lock:
            if _dictionary_client is None:
                _dictionary_client = DictionaryClient()
    return _dictionary_client


def close_dictionary_client():
    global _dictionary_client
    with _dictionary_client_lock:
        client, _dictionary_client = _dictionary_client, None
    if client is not None:
        client.close()

"""Pydantic schemas for dictionary entries"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class DefinitionEntry(BaseModel):
    definition: str
    example: Optional[str] = None
    synonyms: List[str] = Field(default_factory=list)
    antonyms: List[str] = Field(default_factory=list)


class MeaningEntry(BaseModel):
    part_of_speech: str
    definitions: List[DefinitionEntry] = Field(default_factory=list)
    synonyms: List[str] = Field(default_factory=list)
    antonyms: List[str] = Field(default_factory=list)


class PhoneticEntry(BaseModel):
    text: str = ""
    audio: Optional[str] = None


class WordEntry(BaseModel):
    """A complete dictionary entry.

    ``id`` is None for an entry fetched from the dictionary source that could
    not be cached locally.
    """
    id: Optional[int] = None
    word: str
    phonetic: Optional[str] = None
    phonetics: List[PhoneticEntry] = Field(default_factory=list)
    meanings: List[MeaningEntry] = Field(default_factory=list)
    source_urls: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None

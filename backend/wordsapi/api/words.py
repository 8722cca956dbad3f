"""Word lookup and study-list API routes"""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from wordsapi.core.security import require_auth
from wordsapi.db.session import get_db
from wordsapi.schemas.auth import UserResponse
from wordsapi.schemas.vocabulary import UserWordList, UserWordResponse
from wordsapi.schemas.word import WordEntry
from wordsapi.services.dictionary_client import DictionaryClient, get_dictionary_client
from wordsapi.services.vocabulary_service import add_word, get_user_words, user_word_to_response
from wordsapi.services.word_service import get_word

router = APIRouter(prefix="/api/words", tags=["words"])


@router.get("", response_model=UserWordList)
def list_user_words(
    status: Optional[str] = Query(None),
    user: UserResponse = Depends(require_auth),
    db: Session = Depends(get_db)
):
    """The current user's study list, newest first"""
    words = [user_word_to_response(uw) for uw in get_user_words(user.id, db, status=status)]
    return {"words": words, "count": len(words)}


@router.get("/{word}", response_model=WordEntry)
def lookup_word(
    word: str,
    db: Session = Depends(get_db),
    client: DictionaryClient = Depends(get_dictionary_client)
):
    """Full dictionary entry, fetched from the dictionary API on first lookup"""
    return get_word(word, db, client=client)


@router.post("/{word}", response_model=UserWordResponse, status_code=201)
def add_user_word(
    word: str,
    user: UserResponse = Depends(require_auth),
    db: Session = Depends(get_db),
    client: DictionaryClient = Depends(get_dictionary_client)
):
    """Add a word to the current user's study list"""
    return user_word_to_response(add_word(user.id, word, db, client=client))

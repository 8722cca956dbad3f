"""SQLAlchemy models package - imports all models so they register with Base.metadata"""
from wordsapi.models.base import Base
from wordsapi.models.user import User
from wordsapi.models.word import Word, Phonetic, Meaning, Definition, Synonym, Antonym, SourceUrl
from wordsapi.models.user_word import UserWord
from wordsapi.models.review_history import ReviewHistory

# Export all for convenience
__all__ = [
    "Base", "User", "Word", "Phonetic", "Meaning", "Definition",
    "Synonym", "Antonym", "SourceUrl", "UserWord", "ReviewHistory"
]

"""Dictionary entry models - Word and its nested meanings, definitions and phonetics"""
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from wordsapi.models.base import Base


class Word(Base):
    """Canonical dictionary entry, keyed by its lowercase headword"""
    __tablename__ = "words"

    id = Column(Integer, primary_key=True, index=True)
    word = Column(String(255), unique=True, nullable=False, index=True)
    phonetic = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)

    # Relationships (ordered by insertion so entries round-trip in source order)
    phonetics = relationship("Phonetic", back_populates="word", cascade="all, delete-orphan",
                             passive_deletes=True, order_by="Phonetic.id")
    meanings = relationship("Meaning", back_populates="word", cascade="all, delete-orphan",
                            passive_deletes=True, order_by="Meaning.id")
    source_urls = relationship("SourceUrl", back_populates="word", cascade="all, delete-orphan",
                               passive_deletes=True, order_by="SourceUrl.id")
    user_words = relationship("UserWord", back_populates="word", cascade="all, delete-orphan", passive_deletes=True)


class Phonetic(Base):
    __tablename__ = "phonetics"

    id = Column(Integer, primary_key=True)
    word_id = Column(Integer, ForeignKey("words.id", ondelete="CASCADE"), nullable=False, index=True)
    text = Column(String(255), nullable=False, default="")
    audio = Column(Text, nullable=True)

    word = relationship("Word", back_populates="phonetics")


class Meaning(Base):
    """One part of speech with its definitions and meaning-level synonym/antonym sets"""
    __tablename__ = "meanings"

    id = Column(Integer, primary_key=True)
    word_id = Column(Integer, ForeignKey("words.id", ondelete="CASCADE"), nullable=False, index=True)
    part_of_speech = Column(String(64), nullable=False)

    word = relationship("Word", back_populates="meanings")
    definitions = relationship("Definition", back_populates="meaning", cascade="all, delete-orphan",
                               passive_deletes=True, order_by="Definition.id")
    synonyms = relationship("Synonym", back_populates="meaning", cascade="all, delete-orphan",
                            passive_deletes=True, order_by="Synonym.id")
    antonyms = relationship("Antonym", back_populates="meaning", cascade="all, delete-orphan",
                            passive_deletes=True, order_by="Antonym.id")


class Definition(Base):
    __tablename__ = "definitions"

    id = Column(Integer, primary_key=True)
    meaning_id = Column(Integer, ForeignKey("meanings.id", ondelete="CASCADE"), nullable=False, index=True)
    definition = Column(Text, nullable=False)
    example = Column(Text, nullable=True)

    meaning = relationship("Meaning", back_populates="definitions")
    synonyms = relationship("Synonym", back_populates="definition", cascade="all, delete-orphan",
                            passive_deletes=True, order_by="Synonym.id")
    antonyms = relationship("Antonym", back_populates="definition", cascade="all, delete-orphan",
                            passive_deletes=True, order_by="Antonym.id")


class Synonym(Base):
    """Belongs to a meaning (meaning-level set) or to a definition (definition-level set)"""
    __tablename__ = "synonyms"

    id = Column(Integer, primary_key=True)
    meaning_id = Column(Integer, ForeignKey("meanings.id", ondelete="CASCADE"), nullable=True, index=True)
    definition_id = Column(Integer, ForeignKey("definitions.id", ondelete="CASCADE"), nullable=True, index=True)
    synonym = Column(String(255), nullable=False)

    meaning = relationship("Meaning", back_populates="synonyms")
    definition = relationship("Definition", back_populates="synonyms")

    __table_args__ = (
        CheckConstraint('meaning_id IS NOT NULL OR definition_id IS NOT NULL', name='ck_synonyms_owner'),
    )


class Antonym(Base):
    """Belongs to a meaning (meaning-level set) or to a definition (definition-level set)"""
    __tablename__ = "antonyms"

    id = Column(Integer, primary_key=True)
    meaning_id = Column(Integer, ForeignKey("meanings.id", ondelete="CASCADE"), nullable=True, index=True)
    definition_id = Column(Integer, ForeignKey("definitions.id", ondelete="CASCADE"), nullable=True, index=True)
    antonym = Column(String(255), nullable=False)

    meaning = relationship("Meaning", back_populates="antonyms")
    definition = relationship("Definition", back_populates="antonyms")

    __table_args__ = (
        CheckConstraint('meaning_id IS NOT NULL OR definition_id IS NOT NULL', name='ck_antonyms_owner'),
    )


class SourceUrl(Base):
    __tablename__ = "source_urls"

    id = Column(Integer, primary_key=True)
    word_id = Column(Integer, ForeignKey("words.id", ondelete="CASCADE"), nullable=False, index=True)
    url = Column(Text, nullable=False)

    word = relationship("Word", back_populates="source_urls")

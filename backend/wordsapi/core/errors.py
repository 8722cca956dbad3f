"""
Typed errors for the vocabulary engine.

Every failure the services raise belongs to one ErrorKind. The HTTP boundary
maps kinds to status codes (see STATUS_BY_KIND) instead of inspecting
message text.
"""
from enum import Enum


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    EXPIRED = "expired"
    INVALID_INPUT = "invalid_input"
    CONFLICT = "conflict"
    TRANSPORT_FAILURE = "transport_failure"
    STORAGE_FAULT = "storage_fault"


STATUS_BY_KIND = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.EXPIRED: 401,
    ErrorKind.INVALID_INPUT: 400,
    ErrorKind.CONFLICT: 409,
    ErrorKind.TRANSPORT_FAILURE: 502,
    ErrorKind.STORAGE_FAULT: 500,
}


class WordsError(Exception):
    """Base class for all engine errors."""

    kind: ErrorKind = ErrorKind.STORAGE_FAULT

    @property
    def status_code(self) -> int:
        return STATUS_BY_KIND[self.kind]


# ---------------------------------------------------------------------------
# Absence
# ---------------------------------------------------------------------------


class NotFound(WordsError):
    kind = ErrorKind.NOT_FOUND


class UserNotFound(NotFound):
    def __init__(self, username: str) -> None:
        self.username = username
        super().__init__("user not found")


class WordNotFound(NotFound):
    def __init__(self, word: str) -> None:
        self.word = word
        super().__init__("word not found")


class SessionNotFound(NotFound):
    def __init__(self) -> None:
        super().__init__("session not found")


class NotInStudyList(NotFound):
    """The (user, word) pair has no UserWord record."""

    def __init__(self, word: str) -> None:
        self.word = word
        super().__init__("word not in user's study list")


# ---------------------------------------------------------------------------
# Expiry
# ---------------------------------------------------------------------------


class Expired(WordsError):
    kind = ErrorKind.EXPIRED


class SessionExpired(Expired):
    def __init__(self) -> None:
        super().__init__("session expired")


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class InvalidInput(WordsError):
    kind = ErrorKind.INVALID_INPUT


class InvalidUsername(InvalidInput):
    """Username failed length or character validation."""


class InvalidQuality(InvalidInput):
    def __init__(self, quality) -> None:
        self.quality = quality
        super().__init__("quality must be between 0 and 5")


class InvalidWord(InvalidInput):
    def __init__(self) -> None:
        super().__init__("word cannot be empty")


# ---------------------------------------------------------------------------
# Uniqueness, transport, storage
# ---------------------------------------------------------------------------


class Conflict(WordsError):
    kind = ErrorKind.CONFLICT


class UsernameTaken(Conflict):
    def __init__(self, username: str) -> None:
        self.username = username
        super().__init__("username already exists")


class TransportFailure(WordsError):
    """External dictionary source unreachable or answered unexpectedly."""

    kind = ErrorKind.TRANSPORT_FAILURE


class StorageFault(WordsError):
    """Persistence-layer error unrelated to absence."""

    kind = ErrorKind.STORAGE_FAULT

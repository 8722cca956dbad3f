"""Application configuration using Pydantic BaseSettings"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Database
    DATABASE_URL: str = "sqlite:///./words.db"

    # Domain & URLs
    FRONTEND_URL: str = "http://localhost:5173"
    ENVIRONMENT: str = "development"

    # Logging
    LOG_LEVEL: str = "INFO"

    # OpenTelemetry
    OTEL_EXPORTER_OTLP_ENDPOINT: str = ""
    OTEL_SERVICE_NAME: str = "words-api"
    OTEL_ENVIRONMENT: str = "development"

    # External dictionary source
    DICTIONARY_API_URL: str = "https://api.dictionaryapi.dev/api/v2/entries/en"
    DICTIONARY_API_TIMEOUT: float = 10.0  # seconds

    # Sessions
    SESSION_TTL_HOURS: int = 24
    SESSION_CLEANUP_INTERVAL: int = 3600  # seconds
    SESSION_COOKIE_NAME: str = "words_session"
    SESSION_COOKIE_SECURE: bool = False  # set to True in production with HTTPS

    # Study list
    FIRST_REVIEW_DELAY_MINUTES: int = 60

    # Bulk import
    IMPORT_BATCH_SIZE: int = 100

    # Pydantic V2 Config
    model_config = SettingsConfigDict(
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    @field_validator("DICTIONARY_API_URL")
    @classmethod
    def strip_trailing_slash(cls, v):
        return v.rstrip("/")

    @field_validator("DICTIONARY_API_TIMEOUT")
    @classmethod
    def check_timeout(cls, v):
        if v <= 0:
            raise ValueError("DICTIONARY_API_TIMEOUT must be positive")
        return v

    @field_validator("SESSION_TTL_HOURS", "SESSION_CLEANUP_INTERVAL")
    @classmethod
    def check_positive(cls, v):
        if v <= 0:
            raise ValueError("session durations must be positive")
        return v


# Create global settings instance
settings = Settings()


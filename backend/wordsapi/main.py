"""FastAPI application entry point"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from wordsapi.core.config import settings
from wordsapi.core.errors import WordsError
from wordsapi.core.logging import setup_logging
from wordsapi.core.middleware import (
    access_log_middleware, global_exception_handler, setup_cors_middleware, words_error_handler
)
from wordsapi.core.otel import initialize_otel, instrument_fastapi, instrument_httpx, instrument_sqlalchemy
from wordsapi.core.security import session_store
from wordsapi.db.session import engine, init_db
from wordsapi.services.dictionary_client import close_dictionary_client

# Import routers
from wordsapi.api import auth, monitoring, review, users, words

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler for startup and shutdown"""
    # Startup
    if initialize_otel():
        instrument_sqlalchemy(engine)
        logger.info(f"OpenTelemetry initialized, exporting to {settings.OTEL_EXPORTER_OTLP_ENDPOINT}")
    else:
        logger.info("OpenTelemetry not configured - running without distributed tracing")

    logger.info("Initializing database...")
    try:
        init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise

    logger.info("Starting session cleanup task...")
    session_store.start_cleanup(settings.SESSION_CLEANUP_INTERVAL)

    yield

    # Shutdown
    logger.info("Shutting down...")
    await session_store.stop_cleanup()
    close_dictionary_client()


# Create FastAPI app
app = FastAPI(
    title="Words API",
    description="Vocabulary learning with spaced repetition",
    version="1.0.0",
    lifespan=lifespan
)

# Instrument FastAPI and HTTPX with OpenTelemetry
instrument_fastapi(app)
instrument_httpx()

setup_cors_middleware(app)
app.middleware("http")(access_log_middleware)

app.add_exception_handler(WordsError, words_error_handler)
app.add_exception_handler(Exception, global_exception_handler)

# Include routers
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(words.router)
app.include_router(review.router)
app.include_router(monitoring.router)


if __name__ == "__main__":
    import uvicorn

    config = {
        "host": "0.0.0.0",
        "port": 8000,
        "timeout_graceful_shutdown": 30,
    }

    if settings.ENVIRONMENT == "development":
        uvicorn.run("wordsapi.main:app", reload=True, **config)
    else:
        uvicorn.run(app, **config)

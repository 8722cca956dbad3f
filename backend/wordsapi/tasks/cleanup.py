"""Background task that sweeps expired sessions out of the in-memory store"""
import asyncio
import logging

from wordsapi.core.metrics import session_cleanup_runs_counter

cleanup_logger = logging.getLogger("cleanup")


async def session_cleanup_task(store, interval: float = 3600):
    """Evict expired sessions every `interval` seconds until cancelled

    Sessions that are never looked up again would otherwise stay in memory
    forever; lookups only evict the entry they touch.
    """
    while True:
        try:
            await asyncio.sleep(interval)

            # The store lock is a threading lock; keep it off the event loop
            removed = await asyncio.to_thread(store.cleanup_expired)
            session_cleanup_runs_counter.labels(status="success").inc()
            if removed:
                cleanup_logger.info(f"Removed {removed} expired sessions, {len(store)} remaining")
            else:
                cleanup_logger.debug("Session cleanup found nothing to remove")

        except Exception as e:
            cleanup_logger.error(f"Error in session cleanup task: {e}", exc_info=True)
            session_cleanup_runs_counter.labels(status="failure").inc()

"""Session Cleanup Job

Periodically drops POS sessions nobody is using:
- not the active session
- empty cart, no sale in progress
- untouched for config.SESSION_IDLE_MINUTES

The registry itself guarantees that at least one session survives.
"""

import asyncio
import logging
from datetime import timedelta

import config
from services.session import SessionRegistry

logger = logging.getLogger(__name__)


def run_cleanup_cycle(registry: SessionRegistry) -> list[str]:
    removed = registry.cleanup_idle_sessions(timedelta(minutes=config.SESSION_IDLE_MINUTES))
    if removed:
        logger.info(f"[Session Cleanup] Removed idle sessions: {', '.join(removed)}")
    return removed


async def session_cleanup_scheduler(registry: SessionRegistry, interval_minutes: int | None = None):
    """Run cleanup cycles forever. Start as a background task; cancel to stop."""
    interval_minutes = interval_minutes if interval_minutes is not None else config.SESSION_CLEANUP_INTERVAL_MINUTES
    if interval_minutes <= 0:
        logger.info("[Session Cleanup] Scheduler disabled")
        return

    logger.info(
        f"[Session Cleanup] Scheduler started "
        f"(interval: {interval_minutes} min, idle limit: {config.SESSION_IDLE_MINUTES} min)"
    )

    while True:
        try:
            await asyncio.sleep(interval_minutes * 60)
            run_cleanup_cycle(registry)
        except asyncio.CancelledError:
            logger.info("[Session Cleanup] Scheduler stopped")
            break
        except Exception as e:
            logger.error(f"[Session Cleanup] Scheduler error: {e}", exc_info=True)

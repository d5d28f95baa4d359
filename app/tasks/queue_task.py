"""Background task draining the deferred-delivery queue."""

from __future__ import annotations

from app.adapters.base import BasePlatformAdapter
from app.config import Settings
from app.core.queue_processor import DrainResult, QueueProcessor
from app.infra.logging_config import get_logger
from app.utils.db.db_session_helper import db_session

logger = get_logger("queue_task")


async def drain_message_queue(
    adapter: BasePlatformAdapter, settings: Settings
) -> DrainResult:
    """One drain pass with its own database session."""
    with db_session() as db:
        result = await QueueProcessor(db, adapter, settings).drain()
    if result.processed:
        logger.info("Queue drain processed %d messages", result.processed)
    return result

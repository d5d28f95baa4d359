"""Periodic housekeeping for matchmaking and the delivery queue."""

from __future__ import annotations

from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.adapters.base import BasePlatformAdapter
from app.config import Settings
from app.constants.notices import Notices
from app.core.notifier import Notifier
from app.infra.logging_config import get_logger
from app.services.message_queue_service import MessageQueueService
from app.services.participant_service import ParticipantService
from app.utils.db.db_session_helper import db_session

logger = get_logger("cleanup")


class CleanupResult(BaseModel):
    recent_partners_purged: int = 0
    queued_messages_purged: int = 0
    searches_expired: int = 0


async def run_cleanup(
    db: Session, adapter: BasePlatformAdapter, settings: Settings
) -> CleanupResult:
    """
    Purge expired recent-partner entries and old finished queue jobs. When a
    maximum wait is configured, also end searches that exceeded it and tell
    those participants.
    """
    participants = ParticipantService(db)
    result = CleanupResult(
        recent_partners_purged=participants.purge_recent_partners(
            settings.recent_partner_window_seconds
        ),
        queued_messages_purged=MessageQueueService(db).purge_finished(
            settings.queue_retention_days
        ),
    )
    if settings.matchmaking_max_wait_minutes:
        expired = participants.expire_waiting(settings.matchmaking_max_wait_minutes)
        notifier = Notifier(adapter)
        for participant_id in expired:
            await notifier.notify(participant_id, Notices.SEARCH_EXPIRED)
        result.searches_expired = len(expired)
    logger.info(
        "Cleanup: %d recent partners purged, %d queued messages purged, %d searches expired",
        result.recent_partners_purged,
        result.queued_messages_purged,
        result.searches_expired,
    )
    return result


async def cleanup_matchmaking(
    adapter: BasePlatformAdapter, settings: Settings
) -> CleanupResult:
    with db_session() as db:
        return await run_cleanup(db, adapter, settings)

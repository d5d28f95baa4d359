"""
Queue processor: retries deferred relay jobs.

A job is only delivered while sender and recipient are still paired with each
other; otherwise it is cancelled so stale content never reaches a new partner.
"""

from __future__ import annotations

import logging
from typing import Optional

from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.adapters.base import BasePlatformAdapter, TransportError
from app.config import Settings, get_settings
from app.constants.matchmaking import (
    CANCEL_REASON_CHAT_ENDED,
    ParticipantStatus,
    QueueStatus,
)
from app.constants.notices import Notices
from app.core.notifier import Notifier
from app.models.queued_message import QueuedMessage
from app.services.message_queue_service import MessageQueueService
from app.services.participant_service import ParticipantService

logger = logging.getLogger(__name__)

DRAIN_BATCH_SIZE = 100


class DrainResult(BaseModel):
    """Counts for one drain pass."""

    processed: int = 0
    delivered: int = 0
    cancelled: int = 0
    failed: int = 0
    failed_permanent: int = 0


class QueueProcessor:
    def __init__(
        self,
        db: Session,
        adapter: BasePlatformAdapter,
        settings: Optional[Settings] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.adapter = adapter
        self.participants = ParticipantService(db)
        self.queue = MessageQueueService(db)
        self.notifier = Notifier(adapter)

    @property
    def max_retries(self) -> int:
        return self.settings.queue_max_retries

    def _still_paired(self, queued: QueuedMessage) -> bool:
        sender = self.participants.get_participant(queued.sender)
        recipient = self.participants.get_participant(queued.recipient)
        return (
            sender is not None
            and recipient is not None
            and sender.status == ParticipantStatus.CHATTING
            and recipient.status == ParticipantStatus.CHATTING
            and sender.partner == recipient.id
            and recipient.partner == sender.id
        )

    async def drain(self) -> DrainResult:
        """Attempt delivery of every retryable job once."""
        jobs = self.queue.get_retryable(self.max_retries, limit=DRAIN_BATCH_SIZE)
        result = DrainResult()
        if not jobs:
            return result
        logger.info("Draining %d queued messages", len(jobs))

        for queued in jobs:
            result.processed += 1
            message_id = queued.id
            sender_id = queued.sender
            recipient_id = queued.recipient

            if not self._still_paired(queued):
                self.queue.mark_cancelled(message_id, CANCEL_REASON_CHAT_ENDED)
                result.cancelled += 1
                logger.info("Cancelled queued message %s: chat ended", message_id)
                continue

            content = self.queue.to_content(queued)
            note_inline = content.note_fits(Notices.LATE_DELIVERY_NOTE)
            try:
                if content.is_media and content.payload is None:
                    if not content.media_ref:
                        raise TransportError("Queued media has no payload or reference")
                    payload = await self.adapter.fetch_media(content.media_ref)
                    self.queue.store_payload(message_id, payload)
                    content = content.model_copy(update={"payload": payload})
                if note_inline:
                    content = content.with_note(Notices.LATE_DELIVERY_NOTE)
                await self.adapter.send_content(recipient_id, content)
            except TransportError as e:
                outcome = self.queue.record_failure(
                    message_id, str(e), self.max_retries
                )
                if outcome == QueueStatus.FAILED_PERMANENT:
                    result.failed_permanent += 1
                    logger.warning(
                        "Queued message %s failed permanently: %s", message_id, e
                    )
                    await self.notifier.notify(sender_id, Notices.DELIVERY_FAILED)
                elif outcome == QueueStatus.FAILED:
                    result.failed += 1
                    logger.info("Queued message %s failed, will retry: %s", message_id, e)
                continue

            self.queue.mark_delivered(message_id)
            result.delivered += 1
            if not note_inline:
                # no room left in the message itself
                await self.notifier.notify(recipient_id, Notices.LATE_DELIVERY_NOTICE)
            await self.notifier.notify(sender_id, Notices.DELIVERED_LATE)

        logger.info(
            "Drain finished: %d delivered, %d cancelled, %d failed, %d failed permanently",
            result.delivered,
            result.cancelled,
            result.failed,
            result.failed_permanent,
        )
        return result

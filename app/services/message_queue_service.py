"""
Message queue store: relay jobs that failed immediate delivery.

Jobs move pending -> delivered | cancelled | failed -> ... -> failed_permanent.
Each transition is one UPDATE guarded on the current status.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import List, Optional
from uuid import UUID

from sqlalchemy import and_, delete, or_, update
from sqlalchemy.orm import Session

from app.constants.matchmaking import (
    MAX_RETRIES_ERROR,
    QueueStatus,
)
from app.models.queued_message import QueuedMessage
from app.schemas.relay import MessageKind, RelayContent

RETRYABLE_STATUSES = (QueueStatus.PENDING.value, QueueStatus.FAILED.value)
FILENAME_KINDS = (MessageKind.DOCUMENT, MessageKind.AUDIO)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class MessageQueueService:
    def __init__(self, db: Session) -> None:
        self.db = db

    def enqueue(
        self, sender: str, recipient: str, content: RelayContent
    ) -> QueuedMessage:
        """Persist content for a later delivery attempt (status pending, retries 0)."""
        queued = QueuedMessage(
            sender=sender,
            recipient=recipient,
            message_type=content.kind.value,
            content=(
                content.text if content.kind == MessageKind.TEXT else content.filename
            ),
            caption=content.caption,
            media_payload=content.payload,
            media_ref=content.media_ref,
            mime_type=content.mime_type,
            voice=content.voice,
            data=content.data or None,
            status=QueueStatus.PENDING.value,
            retries=0,
            queued_at=_now(),
        )
        self.db.add(queued)
        self.db.commit()
        self.db.refresh(queued)
        return queued

    def get_queued_message(self, message_id: UUID) -> Optional[QueuedMessage]:
        return (
            self.db.query(QueuedMessage).filter(QueuedMessage.id == message_id).first()
        )

    def get_queued_messages(
        self,
        sender: Optional[str] = None,
        status: Optional[QueueStatus] = None,
    ) -> List[QueuedMessage]:
        q = self.db.query(QueuedMessage).order_by(QueuedMessage.queued_at.asc())
        if sender is not None:
            q = q.filter(QueuedMessage.sender == sender)
        if status is not None:
            q = q.filter(QueuedMessage.status == status.value)
        return q.all()

    def get_retryable(self, max_retries: int, limit: int = 100) -> List[QueuedMessage]:
        """Pending jobs plus failed jobs that still have retry budget."""
        return (
            self.db.query(QueuedMessage)
            .filter(
                or_(
                    QueuedMessage.status == QueueStatus.PENDING.value,
                    and_(
                        QueuedMessage.status == QueueStatus.FAILED.value,
                        QueuedMessage.retries < max_retries,
                    ),
                )
            )
            .order_by(QueuedMessage.queued_at.asc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def to_content(queued: QueuedMessage) -> RelayContent:
        kind = MessageKind(queued.message_type)
        return RelayContent(
            kind=kind,
            text=queued.content if kind == MessageKind.TEXT else None,
            filename=queued.content if kind in FILENAME_KINDS else None,
            caption=queued.caption,
            payload=queued.media_payload,
            media_ref=queued.media_ref,
            mime_type=queued.mime_type,
            voice=bool(queued.voice),
            data=dict(queued.data or {}),
        )

    def store_payload(self, message_id: UUID, payload: bytes) -> None:
        """Keep a payload fetched during a retry so later attempts skip the download."""
        self.db.execute(
            update(QueuedMessage)
            .where(QueuedMessage.id == message_id)
            .values(media_payload=payload)
        )
        self.db.commit()

    def _transition(self, message_id: UUID, **values) -> bool:
        result = self.db.execute(
            update(QueuedMessage)
            .where(
                QueuedMessage.id == message_id,
                QueuedMessage.status.in_(RETRYABLE_STATUSES),
            )
            .values(**values)
        )
        self.db.commit()
        return result.rowcount == 1

    def mark_delivered(self, message_id: UUID) -> bool:
        now = _now()
        return self._transition(
            message_id,
            status=QueueStatus.DELIVERED.value,
            delivered_at=now,
            last_attempt=now,
            error=None,
        )

    def mark_cancelled(self, message_id: UUID, reason: str) -> bool:
        return self._transition(
            message_id, status=QueueStatus.CANCELLED.value, reason=reason
        )

    def record_failure(
        self, message_id: UUID, error: str, max_retries: int
    ) -> Optional[QueueStatus]:
        """
        Count a failed attempt. Returns FAILED while budget remains,
        FAILED_PERMANENT when this attempt exhausted it, or None when the job
        was no longer retryable (already terminal or deleted).
        """
        changed = self._transition(
            message_id,
            retries=QueuedMessage.retries + 1,
            last_attempt=_now(),
            error=error,
        )
        if not changed:
            return None
        queued = self.get_queued_message(message_id)
        if queued is None:
            return None
        if queued.retries < max_retries:
            self._transition(message_id, status=QueueStatus.FAILED.value)
            return QueueStatus.FAILED
        self._transition(
            message_id,
            status=QueueStatus.FAILED_PERMANENT.value,
            error=MAX_RETRIES_ERROR,
        )
        return QueueStatus.FAILED_PERMANENT

    def purge_finished(self, retention_days: int) -> int:
        """Delete delivered and cancelled jobs older than the retention period.

        failed_permanent jobs are kept for audit.
        """
        cutoff = _now() - timedelta(days=retention_days)
        result = self.db.execute(
            delete(QueuedMessage).where(
                QueuedMessage.status.in_(
                    (QueueStatus.DELIVERED.value, QueueStatus.CANCELLED.value)
                ),
                QueuedMessage.queued_at < cutoff,
            ).execution_options(synchronize_session=False)
        )
        self.db.commit()
        return result.rowcount

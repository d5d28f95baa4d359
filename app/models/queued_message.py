"""
QueuedMessage model: a relay job persisted after an immediate delivery failed.

Terminal statuses (delivered, cancelled, failed_permanent) are never retried.
"""

from __future__ import annotations

import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Index,
    Integer,
    LargeBinary,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import JSONB, UUID

from app.constants.matchmaking import QueueStatus
from app.db import Base
from app.models.mixins import utcnow


class QueuedMessage(Base):
    __tablename__ = "queued_messages"

    __table_args__ = (
        Index("ix_queued_messages_status_queued_at", "status", "queued_at"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    sender = Column(String(255), nullable=False, index=True)
    recipient = Column(String(255), nullable=False)
    message_type = Column(String(16), nullable=False)
    content = Column(Text, nullable=True)  # text body or document file name
    caption = Column(Text, nullable=True)
    media_payload = Column(LargeBinary, nullable=True)
    media_ref = Column(String(512), nullable=True)  # platform file id, for re-fetch
    mime_type = Column(String(128), nullable=True)
    voice = Column(Boolean, nullable=False, default=False)
    data = Column(JSON().with_variant(JSONB(), "postgresql"), nullable=True)
    status = Column(String(24), nullable=False, default=QueueStatus.PENDING.value)
    retries = Column(Integer, nullable=False, default=0)
    error = Column(Text, nullable=True)
    reason = Column(String(64), nullable=True)
    queued_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    last_attempt = Column(DateTime(timezone=True), nullable=True)
    delivered_at = Column(DateTime(timezone=True), nullable=True)

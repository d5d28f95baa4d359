"""
Normalized message contracts.

Adapters convert platform updates into InboundMessage and send OutboundMessage
(plain notices) or RelayContent (forwarded user content). The core never sees
platform-specific payloads.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class Channel(str, Enum):
    """Supported chat channels."""

    TELEGRAM = "telegram"


class MessageMetadata(BaseModel):
    """Metadata for normalized messages (locale, timestamp)."""

    locale: Optional[str] = None
    timestamp: Optional[datetime] = None  # ISO8601


class InboundMessage(BaseModel):
    """Normalized inbound message (adapter -> core).

    attachments holds one dict per content part, keyed by "type" (photo, video,
    voice, audio, sticker, document, contact, location). Media parts carry a
    "file_id" that the adapter can fetch later.
    """

    channel: Channel
    external_user_id: str
    message_id: str
    text: str = ""
    caption: Optional[str] = None
    attachments: list[dict[str, Any]] = Field(default_factory=list)
    metadata: MessageMetadata = Field(default_factory=MessageMetadata)

    @property
    def body(self) -> str:
        """Text used for command detection: message text, else media caption."""
        return self.text or self.caption or ""


class OutboundMessage(BaseModel):
    """Normalized outbound text message (core -> adapter)."""

    channel: Channel
    external_user_id: str  # Telegram: chat_id
    text: str
    reply_to_message_id: Optional[str] = None
    parse_mode: Optional[str] = None
    attachments: list[dict[str, Any]] = Field(default_factory=list)


class OutboundSendResult(BaseModel):
    """Result of sending an outbound message (success + optional message_id)."""

    success: bool
    platform_message_id: Optional[str] = None

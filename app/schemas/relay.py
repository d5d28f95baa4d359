"""Tagged content value shared by immediate relay and the deferred queue."""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Optional

from pydantic import BaseModel, Field


class MessageKind(StrEnum):
    TEXT = "text"
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    STICKER = "sticker"
    DOCUMENT = "document"
    CONTACT = "contact"
    LOCATION = "location"
    UNSUPPORTED = "unsupported"


MEDIA_KINDS = frozenset(
    {
        MessageKind.IMAGE,
        MessageKind.VIDEO,
        MessageKind.AUDIO,
        MessageKind.STICKER,
        MessageKind.DOCUMENT,
    }
)

CAPTIONED_KINDS = frozenset({MessageKind.IMAGE, MessageKind.VIDEO, MessageKind.DOCUMENT})

# Telegram Bot API limits, in characters
TEXT_LIMIT = 4096
CAPTION_LIMIT = 1024


class RelayContent(BaseModel):
    """
    One piece of user content in platform-neutral form.

    text: body for TEXT. payload: downloaded bytes for media kinds; media_ref
    is the platform handle used to (re)download it. data: structured fields
    for CONTACT (phone_number, first_name, ...) and LOCATION (latitude, longitude).
    """

    kind: MessageKind
    text: Optional[str] = None
    caption: Optional[str] = None
    payload: Optional[bytes] = None
    media_ref: Optional[str] = None
    mime_type: Optional[str] = None
    filename: Optional[str] = None
    voice: bool = False
    data: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_media(self) -> bool:
        return self.kind in MEDIA_KINDS

    def note_fits(self, note: str) -> bool:
        """False when with_note(note) would exceed the text or caption limit."""
        if self.kind == MessageKind.TEXT:
            return len(self.text or "") + len(note) <= TEXT_LIMIT
        if self.kind in CAPTIONED_KINDS:
            if not self.caption:
                return len(note.strip()) <= CAPTION_LIMIT
            return len(self.caption) + len(note) <= CAPTION_LIMIT
        return True

    def with_note(self, note: str) -> "RelayContent":
        """Return a copy with note appended to the text, or to the caption for captioned media."""
        if self.kind == MessageKind.TEXT:
            return self.model_copy(update={"text": f"{self.text or ''}{note}"})
        if self.kind in CAPTIONED_KINDS:
            caption = f"{self.caption}{note}" if self.caption else note.strip()
            return self.model_copy(update={"caption": caption})
        return self

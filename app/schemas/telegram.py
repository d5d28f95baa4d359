"""
Telegram webhook payload schemas.

Validates the envelope Telegram sends to webhook endpoints. Content fields
(photo, voice, contact, ...) are kept as extras and parsed by TelegramAdapter.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class TelegramUser(BaseModel):
    """Telegram user (message.from)."""

    id: int
    is_bot: bool
    first_name: str
    last_name: Optional[str] = None
    language_code: Optional[str] = None

    model_config = {"extra": "allow"}


class TelegramChat(BaseModel):
    """Telegram chat (message.chat)."""

    id: int
    type: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    model_config = {"extra": "allow"}


class TelegramMessageEntity(BaseModel):
    """Telegram message entity (e.g. bot_command, mention)."""

    offset: int
    length: int
    type: str


class TelegramMessage(BaseModel):
    """Telegram message (update.message)."""

    message_id: int
    from_: Optional[TelegramUser] = Field(default=None, alias="from")
    chat: TelegramChat
    date: int
    text: Optional[str] = None
    caption: Optional[str] = None
    entities: Optional[list[TelegramMessageEntity]] = None

    model_config = {"populate_by_name": True, "extra": "allow"}


class TelegramWebhookUpdate(BaseModel):
    """Telegram webhook update payload (root object)."""

    update_id: int
    message: Optional[TelegramMessage] = None

    model_config = {"extra": "allow"}

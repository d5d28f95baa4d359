"""
Telegram platform adapter.

Uses python-telegram-bot for parsing webhook payloads, sending messages and
downloading media. Chat ids double as participant ids.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from telegram import Bot, Message, Update
from telegram.error import TelegramError

from app.adapters.base import BasePlatformAdapter, MediaDownloadError, TransportError
from app.schemas.messages import (
    Channel,
    InboundMessage,
    MessageMetadata,
    OutboundMessage,
    OutboundSendResult,
)
from app.schemas.relay import MessageKind, RelayContent

DEFAULT_DOCUMENT_NAME = "document"


def _attachments_from_message(msg: Message) -> list[dict[str, Any]]:
    """Normalize the content parts of a Telegram message into attachment dicts."""
    attachments: list[dict[str, Any]] = []
    if msg.photo:
        attachments.append({"type": "photo", "file_id": msg.photo[-1].file_id})
    if msg.video:
        attachments.append(
            {
                "type": "video",
                "file_id": msg.video.file_id,
                "mime_type": msg.video.mime_type,
            }
        )
    if msg.video_note:
        attachments.append({"type": "video", "file_id": msg.video_note.file_id})
    if msg.voice:
        attachments.append(
            {
                "type": "voice",
                "file_id": msg.voice.file_id,
                "mime_type": msg.voice.mime_type,
            }
        )
    if msg.audio:
        attachments.append(
            {
                "type": "audio",
                "file_id": msg.audio.file_id,
                "mime_type": msg.audio.mime_type,
                "file_name": msg.audio.file_name,
            }
        )
    if msg.sticker:
        attachments.append({"type": "sticker", "file_id": msg.sticker.file_id})
    if msg.document:
        attachments.append(
            {
                "type": "document",
                "file_id": msg.document.file_id,
                "mime_type": msg.document.mime_type,
                "file_name": msg.document.file_name,
            }
        )
    if msg.contact:
        attachments.append(
            {
                "type": "contact",
                "phone_number": msg.contact.phone_number,
                "first_name": msg.contact.first_name,
                "last_name": msg.contact.last_name,
                "vcard": msg.contact.vcard,
            }
        )
    if msg.location:
        attachments.append(
            {
                "type": "location",
                "latitude": msg.location.latitude,
                "longitude": msg.location.longitude,
            }
        )
    if not attachments and not msg.text:
        # polls, dice, games...
        attachments.append({"type": "unsupported"})
    return attachments


class TelegramAdapter(BasePlatformAdapter):
    """Telegram adapter: parse webhook updates, send and fetch via Bot API."""

    TELEGRAM_SECRET_HEADER = "X-Telegram-Bot-Api-Secret-Token"

    def __init__(self, bot_token: str, webhook_secret: Optional[str] = None) -> None:
        self._bot_token = bot_token
        self._webhook_secret = webhook_secret
        self._bot: Optional[Bot] = None

    def _get_bot(self) -> Bot:
        if self._bot is None:
            self._bot = Bot(token=self._bot_token)
        return self._bot

    def verify_webhook(
        self, secret: Optional[str], request_headers: Optional[dict[str, str]] = None
    ) -> bool:
        """Validate X-Telegram-Bot-Api-Secret-Token if webhook secret is configured."""
        expected = secret or self._webhook_secret
        if not expected:
            return True
        request_headers = request_headers or {}
        header_lower = self.TELEGRAM_SECRET_HEADER.lower()
        actual = None
        for key, value in request_headers.items():
            if key.lower() == header_lower:
                actual = value
                break
        return actual == expected

    def parse_webhook(self, raw_payload: dict[str, Any]) -> InboundMessage:
        """Parse Telegram webhook payload into normalized inbound message."""
        update = Update.de_json(raw_payload, self._get_bot())
        if update is None:
            raise ValueError("Invalid Telegram update: de_json returned None")
        if not update.message:
            raise ValueError("Telegram update has no message")
        msg = update.message
        from_user = msg.from_user
        chat_id = (
            str(msg.chat_id)
            if msg.chat_id
            else (str(from_user.id) if from_user else "")
        )
        locale = (
            from_user.language_code if from_user and from_user.language_code else None
        )
        ts = msg.date
        if ts:
            ts_utc = ts.replace(tzinfo=timezone.utc) if ts.tzinfo is None else ts
        else:
            ts_utc = datetime.now(timezone.utc)
        return InboundMessage(
            channel=Channel.TELEGRAM,
            external_user_id=chat_id,
            message_id=str(msg.message_id) if msg.message_id else "",
            text=msg.text or "",
            caption=msg.caption,
            attachments=_attachments_from_message(msg),
            metadata=MessageMetadata(locale=locale, timestamp=ts_utc),
        )

    async def send(self, outbound: OutboundMessage) -> OutboundSendResult:
        """Send a text message via Telegram Bot API. chat_id = external_user_id."""
        if outbound.channel != Channel.TELEGRAM:
            return OutboundSendResult(success=False, platform_message_id=None)

        send_kw: dict[str, Any] = {
            "chat_id": outbound.external_user_id,
            "text": outbound.text,
            "reply_to_message_id": (
                int(outbound.reply_to_message_id)
                if outbound.reply_to_message_id
                else None
            ),
        }
        if outbound.parse_mode:
            send_kw["parse_mode"] = outbound.parse_mode
        try:
            sent = await self._get_bot().send_message(**send_kw)
        except TelegramError as e:
            raise TransportError(f"Telegram send_message failed: {e}") from e
        return self._result(sent)

    async def send_content(
        self, recipient_id: str, content: RelayContent
    ) -> OutboundSendResult:
        """Send relayed content with the Bot API method matching its kind."""
        if content.is_media and content.payload is None:
            raise TransportError(f"No payload to send for {content.kind} content")
        bot = self._get_bot()
        chat_id = recipient_id
        try:
            if content.kind == MessageKind.TEXT:
                sent = await bot.send_message(chat_id=chat_id, text=content.text or "")
            elif content.kind == MessageKind.IMAGE:
                sent = await bot.send_photo(
                    chat_id=chat_id, photo=content.payload, caption=content.caption
                )
            elif content.kind == MessageKind.VIDEO:
                sent = await bot.send_video(
                    chat_id=chat_id, video=content.payload, caption=content.caption
                )
            elif content.kind == MessageKind.AUDIO and content.voice:
                sent = await bot.send_voice(chat_id=chat_id, voice=content.payload)
            elif content.kind == MessageKind.AUDIO:
                sent = await bot.send_audio(
                    chat_id=chat_id, audio=content.payload, filename=content.filename
                )
            elif content.kind == MessageKind.STICKER:
                sent = await bot.send_sticker(chat_id=chat_id, sticker=content.payload)
            elif content.kind == MessageKind.DOCUMENT:
                sent = await bot.send_document(
                    chat_id=chat_id,
                    document=content.payload,
                    filename=content.filename or DEFAULT_DOCUMENT_NAME,
                    caption=content.caption,
                )
            elif content.kind == MessageKind.CONTACT:
                sent = await bot.send_contact(
                    chat_id=chat_id,
                    phone_number=content.data.get("phone_number", ""),
                    first_name=content.data.get("first_name") or "Contact",
                    last_name=content.data.get("last_name"),
                    vcard=content.data.get("vcard"),
                )
            elif content.kind == MessageKind.LOCATION:
                sent = await bot.send_location(
                    chat_id=chat_id,
                    latitude=content.data["latitude"],
                    longitude=content.data["longitude"],
                )
            else:
                raise TransportError(f"Cannot send {content.kind} content")
        except TelegramError as e:
            raise TransportError(f"Telegram send failed: {e}") from e
        return self._result(sent)

    async def fetch_media(self, media_ref: str) -> bytes:
        """Download a file by Telegram file_id."""
        try:
            tg_file = await self._get_bot().get_file(media_ref)
            data = await tg_file.download_as_bytearray()
        except TelegramError as e:
            raise MediaDownloadError(f"Telegram file download failed: {e}") from e
        return bytes(data)

    async def fetch_profile_image(self, participant_id: str) -> Optional[bytes]:
        """Largest size of the user's current profile photo, or None."""
        try:
            photos = await self._get_bot().get_user_profile_photos(
                user_id=int(participant_id), limit=1
            )
        except TelegramError as e:
            raise TransportError(f"Telegram profile photo lookup failed: {e}") from e
        if not photos or not photos.photos:
            return None
        return await self.fetch_media(photos.photos[0][-1].file_id)

    @staticmethod
    def _result(sent: Optional[Message]) -> OutboundSendResult:
        return OutboundSendResult(
            success=True,
            platform_message_id=(
                str(sent.message_id) if sent and sent.message_id else None
            ),
        )

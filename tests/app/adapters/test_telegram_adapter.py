"""Tests for TelegramAdapter."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from telegram.error import NetworkError

from app.adapters.base import MediaDownloadError, TransportError
from app.adapters.telegram import TelegramAdapter
from app.schemas.messages import Channel, OutboundMessage, OutboundSendResult
from app.schemas.relay import MessageKind, RelayContent


def minimal_telegram_update(**message_fields):
    """Minimal valid Telegram webhook update (message with text by default)."""
    message = {
        "message_id": 456,
        "from": {
            "id": 789,
            "is_bot": False,
            "first_name": "Test",
            "last_name": "User",
            "language_code": "en",
        },
        "chat": {
            "id": 789,
            "type": "private",
            "first_name": "Test",
            "last_name": "User",
        },
        "date": 1609459200,  # Unix timestamp
    }
    message.update(message_fields or {"text": "hello"})
    return {"update_id": 123, "message": message}


# Token format: digits:rest (e.g. 123456:ABC). Used only for parse tests; no real API calls.
FAKE_TOKEN = "123456:AAHdqTcvCH1vGWJxfSeofSAs0K5P"


@pytest.fixture
def telegram_adapter():
    return TelegramAdapter(bot_token=FAKE_TOKEN, webhook_secret=None)


@pytest.fixture
def mock_bot(telegram_adapter):
    bot = MagicMock()
    sent = MagicMock()
    sent.message_id = 42
    for method in (
        "send_message",
        "send_photo",
        "send_video",
        "send_voice",
        "send_audio",
        "send_sticker",
        "send_document",
        "send_contact",
        "send_location",
    ):
        setattr(bot, method, AsyncMock(return_value=sent))
    with patch.object(telegram_adapter, "_get_bot", return_value=bot):
        yield bot


def test_verify_webhook_no_secret(telegram_adapter):
    assert telegram_adapter.verify_webhook(None, {}) is True
    assert (
        telegram_adapter.verify_webhook(None, {"X-Telegram-Bot-Api-Secret-Token": "x"})
        is True
    )


def test_verify_webhook_with_secret():
    adapter = TelegramAdapter(bot_token=FAKE_TOKEN, webhook_secret="secret")
    assert (
        adapter.verify_webhook("secret", {"X-Telegram-Bot-Api-Secret-Token": "secret"})
        is True
    )
    assert (
        adapter.verify_webhook("secret", {"X-Telegram-Bot-Api-Secret-Token": "wrong"})
        is False
    )
    assert adapter.verify_webhook("secret", {}) is False


def test_verify_webhook_case_insensitive_header():
    """Headers are case-insensitive; Starlette/FastAPI lowercases them."""
    adapter = TelegramAdapter(bot_token=FAKE_TOKEN, webhook_secret="my-secret")
    assert (
        adapter.verify_webhook(
            "my-secret", {"x-telegram-bot-api-secret-token": "my-secret"}
        )
        is True
    )


def test_parse_webhook(telegram_adapter):
    inbound = telegram_adapter.parse_webhook(minimal_telegram_update())
    assert inbound.channel == Channel.TELEGRAM
    assert inbound.external_user_id == "789"
    assert inbound.message_id == "456"
    assert inbound.text == "hello"
    assert inbound.attachments == []
    assert inbound.metadata.locale == "en"


def test_parse_webhook_no_message_raises(telegram_adapter):
    with pytest.raises(ValueError, match="no message"):
        telegram_adapter.parse_webhook({"update_id": 123})


def test_parse_webhook_photo_uses_largest_size(telegram_adapter):
    payload = minimal_telegram_update(
        photo=[
            {"file_id": "small", "file_unique_id": "s", "width": 90, "height": 90},
            {"file_id": "large", "file_unique_id": "l", "width": 800, "height": 800},
        ],
        caption="sunset",
    )

    inbound = telegram_adapter.parse_webhook(payload)

    assert inbound.text == ""
    assert inbound.caption == "sunset"
    assert inbound.body == "sunset"
    assert inbound.attachments == [{"type": "photo", "file_id": "large"}]


def test_parse_webhook_voice(telegram_adapter):
    payload = minimal_telegram_update(
        voice={
            "file_id": "voice-1",
            "file_unique_id": "v",
            "duration": 3,
            "mime_type": "audio/ogg",
        }
    )

    [attachment] = telegram_adapter.parse_webhook(payload).attachments

    assert attachment == {"type": "voice", "file_id": "voice-1", "mime_type": "audio/ogg"}


def test_parse_webhook_contact_and_location(telegram_adapter):
    contact = telegram_adapter.parse_webhook(
        minimal_telegram_update(contact={"phone_number": "+15550100", "first_name": "Ada"})
    )
    location = telegram_adapter.parse_webhook(
        minimal_telegram_update(location={"latitude": 52.5, "longitude": 13.4})
    )

    assert contact.attachments[0]["type"] == "contact"
    assert contact.attachments[0]["phone_number"] == "+15550100"
    assert contact.attachments[0]["first_name"] == "Ada"
    assert location.attachments == [
        {"type": "location", "latitude": 52.5, "longitude": 13.4}
    ]


def test_parse_webhook_unknown_content_is_unsupported(telegram_adapter):
    payload = minimal_telegram_update(dice={"emoji": "🎲", "value": 4})

    inbound = telegram_adapter.parse_webhook(payload)

    assert inbound.attachments == [{"type": "unsupported"}]


@pytest.mark.asyncio
async def test_send_returns_result():
    """Send returns OutboundSendResult; mocks Bot API to avoid real calls."""
    adapter = TelegramAdapter(bot_token=FAKE_TOKEN)
    outbound = OutboundMessage(
        channel=Channel.TELEGRAM,
        external_user_id="123",
        text="hi",
        parse_mode="Markdown",
    )
    mock_msg = MagicMock()
    mock_msg.message_id = 42
    mock_bot = MagicMock()
    mock_bot.send_message = AsyncMock(return_value=mock_msg)

    with patch.object(adapter, "_get_bot", return_value=mock_bot):
        result = await adapter.send(outbound)

    assert isinstance(result, OutboundSendResult)
    assert result.success is True
    assert result.platform_message_id == "42"
    assert mock_bot.send_message.await_args.kwargs["parse_mode"] == "Markdown"


@pytest.mark.asyncio
async def test_send_wraps_telegram_errors():
    adapter = TelegramAdapter(bot_token=FAKE_TOKEN)
    mock_bot = MagicMock()
    mock_bot.send_message = AsyncMock(side_effect=NetworkError("connection reset"))
    outbound = OutboundMessage(channel=Channel.TELEGRAM, external_user_id="1", text="hi")

    with patch.object(adapter, "_get_bot", return_value=mock_bot):
        with pytest.raises(TransportError):
            await adapter.send(outbound)


@pytest.mark.asyncio
async def test_send_content_text_has_no_parse_mode(telegram_adapter, mock_bot):
    await telegram_adapter.send_content(
        "123", RelayContent(kind=MessageKind.TEXT, text="*not bold*")
    )

    mock_bot.send_message.assert_awaited_once_with(chat_id="123", text="*not bold*")


@pytest.mark.asyncio
async def test_send_content_photo(telegram_adapter, mock_bot):
    result = await telegram_adapter.send_content(
        "123", RelayContent(kind=MessageKind.IMAGE, payload=b"jpeg", caption="hi")
    )

    assert result.platform_message_id == "42"
    mock_bot.send_photo.assert_awaited_once_with(
        chat_id="123", photo=b"jpeg", caption="hi"
    )


@pytest.mark.asyncio
async def test_send_content_voice_and_audio(telegram_adapter, mock_bot):
    await telegram_adapter.send_content(
        "123", RelayContent(kind=MessageKind.AUDIO, payload=b"ogg", voice=True)
    )
    await telegram_adapter.send_content(
        "123",
        RelayContent(kind=MessageKind.AUDIO, payload=b"mp3", filename="song.mp3"),
    )

    mock_bot.send_voice.assert_awaited_once_with(chat_id="123", voice=b"ogg")
    mock_bot.send_audio.assert_awaited_once_with(
        chat_id="123", audio=b"mp3", filename="song.mp3"
    )


@pytest.mark.asyncio
async def test_send_content_document_default_name(telegram_adapter, mock_bot):
    await telegram_adapter.send_content(
        "123", RelayContent(kind=MessageKind.DOCUMENT, payload=b"%PDF")
    )

    kwargs = mock_bot.send_document.await_args.kwargs
    assert kwargs["filename"] == "document"
    assert kwargs["document"] == b"%PDF"


@pytest.mark.asyncio
async def test_send_content_location(telegram_adapter, mock_bot):
    await telegram_adapter.send_content(
        "123",
        RelayContent(kind=MessageKind.LOCATION, data={"latitude": 1.5, "longitude": 2.5}),
    )

    mock_bot.send_location.assert_awaited_once_with(
        chat_id="123", latitude=1.5, longitude=2.5
    )


@pytest.mark.asyncio
async def test_send_content_media_without_payload(telegram_adapter, mock_bot):
    with pytest.raises(TransportError):
        await telegram_adapter.send_content(
            "123", RelayContent(kind=MessageKind.VIDEO, media_ref="vid")
        )
    mock_bot.send_video.assert_not_awaited()


@pytest.mark.asyncio
async def test_send_content_wraps_telegram_errors(telegram_adapter, mock_bot):
    mock_bot.send_sticker.side_effect = NetworkError("timed out")

    with pytest.raises(TransportError):
        await telegram_adapter.send_content(
            "123", RelayContent(kind=MessageKind.STICKER, payload=b"webp")
        )


@pytest.mark.asyncio
async def test_fetch_media(telegram_adapter):
    tg_file = MagicMock()
    tg_file.download_as_bytearray = AsyncMock(return_value=bytearray(b"bytes"))
    bot = MagicMock()
    bot.get_file = AsyncMock(return_value=tg_file)

    with patch.object(telegram_adapter, "_get_bot", return_value=bot):
        data = await telegram_adapter.fetch_media("file-1")

    assert data == b"bytes"
    bot.get_file.assert_awaited_once_with("file-1")


@pytest.mark.asyncio
async def test_fetch_media_failure(telegram_adapter):
    bot = MagicMock()
    bot.get_file = AsyncMock(side_effect=NetworkError("gone"))

    with patch.object(telegram_adapter, "_get_bot", return_value=bot):
        with pytest.raises(MediaDownloadError):
            await telegram_adapter.fetch_media("file-1")


@pytest.mark.asyncio
async def test_fetch_profile_image_without_photos(telegram_adapter):
    photos = MagicMock()
    photos.photos = []
    bot = MagicMock()
    bot.get_user_profile_photos = AsyncMock(return_value=photos)

    with patch.object(telegram_adapter, "_get_bot", return_value=bot):
        assert await telegram_adapter.fetch_profile_image("789") is None

    bot.get_user_profile_photos.assert_awaited_once_with(user_id=789, limit=1)


@pytest.mark.asyncio
async def test_fetch_profile_image_downloads_largest(telegram_adapter):
    small, large = MagicMock(file_id="small"), MagicMock(file_id="large")
    photos = MagicMock()
    photos.photos = [[small, large]]
    bot = MagicMock()
    bot.get_user_profile_photos = AsyncMock(return_value=photos)

    with patch.object(telegram_adapter, "_get_bot", return_value=bot), patch.object(
        telegram_adapter, "fetch_media", AsyncMock(return_value=b"avatar")
    ) as fetch_media:
        assert await telegram_adapter.fetch_profile_image("789") == b"avatar"

    fetch_media.assert_awaited_once_with("large")

"""
Relay engine: forwards a chatting participant's content to their partner.

Inbound messages are normalized once into a RelayContent value; the same value
feeds the immediate send and, when that fails, the deferred queue. Content is
never silently dropped: it is delivered, queued, or refused with a notice.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from sqlalchemy.orm import Session

from app.adapters.base import BasePlatformAdapter, TransportError
from app.constants.matchmaking import ParticipantStatus
from app.constants.notices import Notices
from app.core.notifier import Notifier
from app.schemas.messages import InboundMessage
from app.schemas.relay import MessageKind, RelayContent
from app.services.message_queue_service import MessageQueueService
from app.services.participant_service import ParticipantService

logger = logging.getLogger(__name__)

_ATTACHMENT_KINDS = {
    "photo": MessageKind.IMAGE,
    "video": MessageKind.VIDEO,
    "voice": MessageKind.AUDIO,
    "audio": MessageKind.AUDIO,
    "sticker": MessageKind.STICKER,
    "document": MessageKind.DOCUMENT,
    "contact": MessageKind.CONTACT,
    "location": MessageKind.LOCATION,
}

_CONTACT_FIELDS = ("phone_number", "first_name", "last_name", "vcard")


def _contact_data(attachment: dict[str, Any]) -> dict[str, Any]:
    return {k: attachment[k] for k in _CONTACT_FIELDS if attachment.get(k)}


def classify(inbound: InboundMessage) -> RelayContent:
    """Normalize an inbound message into a tagged RelayContent (payload not yet fetched)."""
    if not inbound.attachments:
        if inbound.text:
            return RelayContent(kind=MessageKind.TEXT, text=inbound.text)
        return RelayContent(kind=MessageKind.UNSUPPORTED)

    attachment = inbound.attachments[0]
    kind = _ATTACHMENT_KINDS.get(attachment.get("type", ""), MessageKind.UNSUPPORTED)
    if kind == MessageKind.CONTACT:
        return RelayContent(kind=kind, data=_contact_data(attachment))
    if kind == MessageKind.LOCATION:
        if attachment.get("latitude") is None or attachment.get("longitude") is None:
            return RelayContent(kind=MessageKind.UNSUPPORTED)
        return RelayContent(
            kind=kind,
            data={
                "latitude": attachment["latitude"],
                "longitude": attachment["longitude"],
            },
        )
    if kind == MessageKind.UNSUPPORTED or not attachment.get("file_id"):
        return RelayContent(kind=MessageKind.UNSUPPORTED)
    return RelayContent(
        kind=kind,
        caption=inbound.caption,
        media_ref=attachment["file_id"],
        mime_type=attachment.get("mime_type"),
        filename=attachment.get("file_name"),
        voice=attachment.get("type") == "voice",
    )


class RelayEngine:
    def __init__(self, db: Session, adapter: BasePlatformAdapter) -> None:
        self.adapter = adapter
        self.participants = ParticipantService(db)
        self.queue = MessageQueueService(db)
        self.notifier = Notifier(adapter)

    def active_partner(self, participant_id: str) -> Optional[str]:
        participant = self.participants.get_participant(participant_id)
        if (
            participant is None
            or participant.status != ParticipantStatus.CHATTING
            or not participant.partner
        ):
            return None
        return participant.partner

    async def relay(self, sender_id: str, inbound: InboundMessage) -> bool:
        """
        Forward inbound content to the sender's partner.

        Returns True when delivered or durably queued; False when the sender is
        not chatting or the content cannot be forwarded.
        """
        partner_id = self.active_partner(sender_id)
        if partner_id is None:
            return False

        content = classify(inbound)
        if content.kind == MessageKind.UNSUPPORTED:
            await self.notifier.notify(sender_id, Notices.UNSUPPORTED_CONTENT)
            return False

        self.participants.touch(sender_id)
        try:
            if content.is_media:
                content = content.model_copy(
                    update={"payload": await self.adapter.fetch_media(content.media_ref)}
                )
            await self.adapter.send_content(partner_id, content)
        except TransportError as e:
            queued = self.queue.enqueue(sender_id, partner_id, content)
            logger.warning(
                "Relay of %s from %s to %s failed, queued as %s: %s",
                content.kind,
                sender_id,
                partner_id,
                queued.id,
                e,
            )
            await self.notifier.notify(sender_id, Notices.DELIVERY_DEFERRED)
            return True

        logger.debug("Relayed %s from %s to %s", content.kind, sender_id, partner_id)
        return True

    async def send_profile_picture(self, sender_id: str) -> bool:
        """Send the sender's profile image to their partner (the sendpp command)."""
        partner_id = self.active_partner(sender_id)
        if partner_id is None:
            await self.notifier.notify(sender_id, Notices.SENDPP_NOT_CHATTING)
            return False
        try:
            image = await self.adapter.fetch_profile_image(sender_id)
            if image is not None:
                await self.adapter.send_content(
                    partner_id,
                    RelayContent(
                        kind=MessageKind.IMAGE,
                        payload=image,
                        caption=Notices.PROFILE_PICTURE_CAPTION,
                    ),
                )
        except TransportError as e:
            logger.warning("Profile picture of %s not sent: %s", sender_id, e)
            image = None
        if image is None:
            await self.notifier.notify(sender_id, Notices.PROFILE_PICTURE_UNAVAILABLE)
            return False
        await self.notifier.notify(sender_id, Notices.PROFILE_PICTURE_SENT)
        return True

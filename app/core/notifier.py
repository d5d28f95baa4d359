"""Best-effort delivery of bot notices to participants."""

from __future__ import annotations

import logging

from app.adapters.base import BasePlatformAdapter, TransportError
from app.schemas.messages import Channel, OutboundMessage

logger = logging.getLogger(__name__)

NOTICE_PARSE_MODE = "Markdown"


class Notifier:
    """
    Sends bot-authored text (never relayed user content).

    A failed notice is logged and reported as False; it must not abort the
    state transition that triggered it.
    """

    def __init__(
        self, adapter: BasePlatformAdapter, channel: Channel = Channel.TELEGRAM
    ) -> None:
        self._adapter = adapter
        self._channel = channel

    async def notify(self, participant_id: str, text: str) -> bool:
        outbound = OutboundMessage(
            channel=self._channel,
            external_user_id=participant_id,
            text=text,
            parse_mode=NOTICE_PARSE_MODE,
        )
        try:
            result = await self._adapter.send(outbound)
        except TransportError:
            logger.exception("Failed to send notice to %s", participant_id)
            return False
        return result.success

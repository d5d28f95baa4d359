"""
Platform adapter interface.

Adapters encapsulate platform-specific logic and expose a normalized
message format to the matchmaking and relay core.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional

from app.schemas.messages import InboundMessage, OutboundMessage, OutboundSendResult
from app.schemas.relay import RelayContent


class TransportError(Exception):
    """Sending to or reading from the platform failed."""


class MediaDownloadError(TransportError):
    """An inbound media payload could not be fetched."""


class BasePlatformAdapter(ABC):
    """Contract for platform adapters. New platforms implement this interface."""

    @abstractmethod
    def parse_webhook(self, raw_payload: dict[str, Any]) -> InboundMessage:
        """Parse raw webhook payload into normalized inbound message. Raise if invalid."""
        ...

    @abstractmethod
    async def send(self, outbound: OutboundMessage) -> OutboundSendResult:
        """Send a text message. Raise TransportError when the platform rejects it."""
        ...

    @abstractmethod
    async def send_content(
        self, recipient_id: str, content: RelayContent
    ) -> OutboundSendResult:
        """Send relayed user content. content.payload must be set for media kinds."""
        ...

    @abstractmethod
    async def fetch_media(self, media_ref: str) -> bytes:
        """Download an inbound media payload. Raise MediaDownloadError on failure."""
        ...

    @abstractmethod
    async def fetch_profile_image(self, participant_id: str) -> Optional[bytes]:
        """Return the participant's current profile image, or None if they have none."""
        ...

    def verify_webhook(
        self, secret: Optional[str], request_headers: Optional[dict[str, str]] = None
    ) -> bool:
        """
        Verify webhook request (e.g. secret token). Override if platform supports it.
        Return True if valid or verification not required; False to reject.
        """
        return True

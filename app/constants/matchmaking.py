"""Lifecycle states for participants and queued messages."""

from enum import StrEnum


class ParticipantStatus(StrEnum):
    """Pairing state of a participant. partner is set iff CHATTING."""

    IDLE = "idle"
    WAITING = "waiting"
    CHATTING = "chatting"


class QueueStatus(StrEnum):
    """Delivery state of a queued relay job."""

    PENDING = "pending"
    FAILED = "failed"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    FAILED_PERMANENT = "failed_permanent"


CANCEL_REASON_CHAT_ENDED = "chat_ended"
MAX_RETRIES_ERROR = "Max retries exceeded"

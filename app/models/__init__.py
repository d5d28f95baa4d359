from app.models.participant import Participant, RecentPartner
from app.models.queued_message import QueuedMessage

__all__ = [
    "Participant",
    "QueuedMessage",
    "RecentPartner",
]

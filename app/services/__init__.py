from app.services.message_queue_service import MessageQueueService
from app.services.participant_service import ParticipantService

__all__ = [
    "MessageQueueService",
    "ParticipantService",
]

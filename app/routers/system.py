from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.config import get_settings
from app.db import get_db
from app.models.participant import Participant
from app.models.queued_message import QueuedMessage
from app.schemas.system import HealthResponse, MatchmakingStats

router = APIRouter(
    prefix="/system",
    tags=["system"],
    responses={404: {"description": "Not found"}},
)


@router.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    s = get_settings()
    return HealthResponse(telegram_enabled=bool(s.telegram_enabled))


@router.get("/stats", response_model=MatchmakingStats)
def get_stats(db: Session = Depends(get_db)) -> MatchmakingStats:
    """Participant and queue counts grouped by status."""
    participants = dict(
        db.query(Participant.status, func.count(Participant.id))
        .group_by(Participant.status)
        .all()
    )
    queued = dict(
        db.query(QueuedMessage.status, func.count(QueuedMessage.id))
        .group_by(QueuedMessage.status)
        .all()
    )
    return MatchmakingStats(participants=participants, queued_messages=queued)

from datetime import datetime, timedelta, timezone

import pytest

from app.config import Settings
from app.constants.matchmaking import ParticipantStatus, QueueStatus
from app.constants.notices import Notices
from app.models.participant import RecentPartner
from app.schemas.relay import MessageKind, RelayContent
from app.services.message_queue_service import MessageQueueService
from app.services.participant_service import ParticipantService
from app.tasks import cleanup_matchmaking, drain_message_queue
from app.tasks.cleanup_task import run_cleanup


def _ago(**kwargs) -> datetime:
    return datetime.now(timezone.utc) - timedelta(**kwargs)


@pytest.mark.asyncio
async def test_run_cleanup_purges_expired_entries(db, adapter, settings, make_participant):
    make_participant("100")
    db.add(RecentPartner(participant_id="100", partner_id="200", matched_at=_ago(days=1)))
    db.commit()
    ParticipantService(db).add_recent_partner("100", "300")

    queue = MessageQueueService(db)
    old = queue.enqueue("100", "300", RelayContent(kind=MessageKind.TEXT, text="x"))
    queue.mark_delivered(old.id)
    queue.get_queued_message(old.id).queued_at = _ago(days=30)
    db.commit()

    result = await run_cleanup(db, adapter, settings)

    assert result.recent_partners_purged == 1
    assert result.queued_messages_purged == 1
    assert result.searches_expired == 0
    assert ParticipantService(db).recent_partner_ids("100", 7 * 86400) == {"300"}
    assert queue.get_queued_messages(status=QueueStatus.DELIVERED) == []


@pytest.mark.asyncio
async def test_run_cleanup_expires_long_searches(db, adapter, make_participant):
    settings = Settings(matchmaking_max_wait_minutes=15)
    make_participant("stale", ParticipantStatus.WAITING, last_search_time=_ago(hours=1))
    make_participant("fresh", ParticipantStatus.WAITING, last_search_time=_ago(minutes=2))

    result = await run_cleanup(db, adapter, settings)

    assert result.searches_expired == 1
    service = ParticipantService(db)
    assert service.get_participant("stale").status == ParticipantStatus.IDLE
    assert service.get_participant("fresh").status == ParticipantStatus.WAITING
    assert adapter.notices_for("stale") == [Notices.SEARCH_EXPIRED]
    assert adapter.notices_for("fresh") == []


@pytest.mark.asyncio
async def test_run_cleanup_keeps_searches_without_max_wait(
    db, adapter, settings, make_participant
):
    make_participant("100", ParticipantStatus.WAITING, last_search_time=_ago(days=2))

    result = await run_cleanup(db, adapter, settings)

    assert result.searches_expired == 0
    assert ParticipantService(db).get_participant("100").status == ParticipantStatus.WAITING


@pytest.mark.asyncio
async def test_background_jobs_use_their_own_session(
    db, adapter, settings, chatting_pair
):
    a, b = chatting_pair
    MessageQueueService(db).enqueue(
        a, b, RelayContent(kind=MessageKind.TEXT, text="late")
    )

    drained = await drain_message_queue(adapter, settings)
    cleaned = await cleanup_matchmaking(adapter, settings)

    assert drained.delivered == 1
    assert cleaned.searches_expired == 0
    assert len(adapter.delivered_to(b)) == 1

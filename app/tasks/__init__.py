from functools import partial

from app.adapters.base import BasePlatformAdapter
from app.config import Settings
from app.core.scheduler import RecurringTask, Scheduler
from app.tasks.cleanup_task import cleanup_matchmaking
from app.tasks.queue_task import drain_message_queue

QUEUE_DRAIN_TASK = "queue_drain"
CLEANUP_TASK = "matchmaking_cleanup"


def build_scheduler(adapter: BasePlatformAdapter, settings: Settings) -> Scheduler:
    """
    Recurring jobs for a running bot. The queue drain runs immediately on
    start, since start means the transport just (re)connected.
    """
    scheduler = Scheduler()
    scheduler.add(
        RecurringTask(
            QUEUE_DRAIN_TASK,
            settings.queue_drain_interval_seconds,
            partial(drain_message_queue, adapter, settings),
            run_immediately=True,
        )
    )
    scheduler.add(
        RecurringTask(
            CLEANUP_TASK,
            settings.cleanup_interval_seconds,
            partial(cleanup_matchmaking, adapter, settings),
        )
    )
    return scheduler


__all__ = [
    "CLEANUP_TASK",
    "QUEUE_DRAIN_TASK",
    "build_scheduler",
    "cleanup_matchmaking",
    "drain_message_queue",
]

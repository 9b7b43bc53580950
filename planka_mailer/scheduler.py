"""
APScheduler job runner for periodic mailbox synchronization.
"""

import threading

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from planka_mailer.config import settings
from planka_mailer.core.logging import get_logger

log = get_logger(__name__)

# Global scheduler instance
_scheduler: BackgroundScheduler | None = None

# Held while a batch runs; scheduled and manual runs must not overlap
_sync_lock = threading.Lock()


def run_sync() -> dict | None:
    """
    Run one mailbox batch unless another one is in progress.

    Returns:
        Batch statistics, or None if skipped or failed
    """
    from planka_mailer.processors.mailbox import MailboxSynchronizer

    if not _sync_lock.acquire(blocking=False):
        log.warning("sync_already_running")
        return None

    try:
        return MailboxSynchronizer().process()
    except Exception as e:
        log.error("sync_error", error=str(e))
        return None
    finally:
        _sync_lock.release()


def sync_mailbox_job():
    """Scheduled job: scan the mailbox, create cards, file messages."""
    log.info("scheduled_job_starting", job="sync_mailbox")
    stats = run_sync()
    if stats is not None:
        log.info("scheduled_job_complete", job="sync_mailbox", **stats)


def start_scheduler(interval_minutes: int | None = None) -> BackgroundScheduler:
    """
    Start the background scheduler.

    Args:
        interval_minutes: How often to run the sync job (default from settings)

    Returns:
        The scheduler instance
    """
    global _scheduler

    if _scheduler is not None:
        log.warning("scheduler_already_running")
        return _scheduler

    interval = interval_minutes or settings.scheduler_interval_minutes
    _scheduler = BackgroundScheduler()
    _scheduler.add_job(
        sync_mailbox_job,
        trigger=IntervalTrigger(minutes=interval),
        id="sync_mailbox",
        name="Sync mailbox to Planka",
        replace_existing=True,
        max_instances=1,
    )

    _scheduler.start()
    log.info("scheduler_started", interval_minutes=interval)

    return _scheduler


def stop_scheduler():
    """Stop the background scheduler."""
    global _scheduler

    if _scheduler is not None:
        _scheduler.shutdown(wait=False)
        _scheduler = None
        log.info("scheduler_stopped")


def get_scheduler() -> BackgroundScheduler | None:
    """Get the current scheduler instance."""
    return _scheduler


def run_now():
    """Manually trigger the sync job."""
    sync_mailbox_job()

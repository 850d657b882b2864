"""Scheduler service for delayed queue wake-ups."""

import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.date import DateTrigger

from mailqueue.logging import get_logger

logger = get_logger(__name__, component="scheduler")


class SchedulerService:
    """
    Wraps APScheduler to run one-off callbacks after a delay.

    The mail queue uses it to wake its dispatch loop once a retry backoff
    has elapsed. The BackgroundScheduler is started lazily on the first
    scheduled callback so idle queues spawn no threads.
    """

    def __init__(self, misfire_grace_seconds: int = 300):
        """
        Initialize the scheduler service.

        Args:
            misfire_grace_seconds: How late a wake-up may still fire
        """
        self._lock = threading.Lock()
        self.scheduler = BackgroundScheduler(
            job_defaults={
                "coalesce": True,
                "misfire_grace_time": misfire_grace_seconds,
            },
            timezone=timezone.utc,
        )

    def _ensure_started(self) -> None:
        with self._lock:
            if not self.scheduler.running:
                self.scheduler.start()
                logger.info("Scheduler started", extra={"event": "scheduler.started"})

    def schedule_once(
        self,
        callback: Callable[[], None],
        delay_seconds: float,
        job_id: Optional[str] = None,
    ) -> datetime:
        """
        Run a callback once after a delay.

        Args:
            callback: Function to call from the scheduler's worker thread
            delay_seconds: Delay before the call
            job_id: Optional id; a pending wake-up with the same id is replaced

        Returns:
            The UTC time the callback is due
        """
        self._ensure_started()

        run_date = datetime.now(timezone.utc) + timedelta(seconds=max(delay_seconds, 0))
        self.scheduler.add_job(
            func=callback,
            trigger=DateTrigger(run_date=run_date, timezone=timezone.utc),
            id=job_id,
            replace_existing=job_id is not None,
        )

        logger.debug(
            f"Scheduled wake-up in {delay_seconds} seconds",
            extra={
                "event": "scheduler.scheduled",
                "delay_seconds": delay_seconds,
                "run_date": run_date.isoformat(),
            },
        )
        return run_date

    def shutdown(self, wait: bool = False) -> None:
        """
        Shutdown the scheduler, dropping pending wake-ups.

        Args:
            wait: If True, wait for running callbacks to complete before returning
        """
        with self._lock:
            if not self.scheduler.running:
                return

            logger.info(
                "Shutting down scheduler",
                extra={"event": "scheduler.stopping", "wait_for_jobs": wait},
            )
            self.scheduler.shutdown(wait=wait)

        logger.info("Scheduler shutdown complete", extra={"event": "scheduler.stopped"})

    def is_running(self) -> bool:
        return self.scheduler.running

    def pending_count(self) -> int:
        """Number of wake-ups not yet fired."""
        if not self.scheduler.running:
            return 0
        return len(self.scheduler.get_jobs())

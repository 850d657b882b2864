"""Priority mail queue with bounded concurrency and linear retry backoff.

Jobs wait in a pending list sorted by priority (stable, so equal priorities
keep enqueue order). Up to ``concurrency`` jobs are handed to a thread pool
at once; each worker calls the mail transport and reports back, which frees
the slot and re-drives dispatch. Failed sends are re-queued with a boosted
priority until the job's retry budget is spent.

Lifecycle events (queued, started, completed, retry, failed, paused, resumed,
cleared) are delivered synchronously to registered listeners after the state
change they describe.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from mailqueue.domain.models import JobStatus, MailJob, QueueStats
from mailqueue.logging import get_logger
from mailqueue.logging.context import log_context
from mailqueue.notifications.smtp_client import MailTransport
from mailqueue.scheduler import SchedulerService
from mailqueue.utils.timestamps import utc_after, utc_now

logger = get_logger(__name__, component="queue")

QUEUE_EVENTS = (
    "queued",
    "started",
    "completed",
    "retry",
    "failed",
    "paused",
    "resumed",
    "cleared",
)

Listener = Callable[[Any], None]


class MailQueue:
    """
    In-process email queue.

    Thread-safe: the pending list, in-flight counter and stats are only
    touched while holding ``_lock``, so a job is never dispatched twice and
    at most ``concurrency`` sends are in flight.
    """

    def __init__(
        self,
        transport: MailTransport,
        concurrency: int = 3,
        retry_base_delay: float = 60.0,
        scheduler: Optional[SchedulerService] = None,
        logger_instance: Optional[Union[logging.Logger, logging.LoggerAdapter]] = None,
    ):
        """
        Initialize the queue.

        Args:
            transport: Mail transport used for every send
            concurrency: Maximum number of sends in flight
            retry_base_delay: Seconds of backoff per attempt already made
            scheduler: Wake-up scheduler for delayed retries (created if None)
            logger_instance: Logger override (tests pass a Mock)
        """
        if concurrency < 1:
            raise ValueError(f"concurrency must be at least 1, got {concurrency}")
        if retry_base_delay < 0:
            raise ValueError(f"retry_base_delay cannot be negative, got {retry_base_delay}")

        self.transport = transport
        self.concurrency = concurrency
        self.retry_base_delay = retry_base_delay
        self.scheduler = scheduler or SchedulerService()
        self.logger = logger_instance or logger

        self._lock = threading.RLock()
        self._idle = threading.Condition(self._lock)
        self._pending: List[MailJob] = []
        self._in_progress = 0
        self._paused = False
        self._closed = False
        self._stats = QueueStats()
        self._listeners: Dict[str, List[Listener]] = {event: [] for event in QUEUE_EVENTS}
        self._executor = ThreadPoolExecutor(
            max_workers=concurrency, thread_name_prefix="mailqueue-worker"
        )

    # Events

    def on(self, event: str, callback: Listener) -> None:
        """Register a listener; registering the same callback twice is a no-op."""
        listeners = self._listeners_for(event)
        with self._lock:
            if callback not in listeners:
                listeners.append(callback)

    def off(self, event: str, callback: Listener) -> None:
        listeners = self._listeners_for(event)
        with self._lock:
            if callback in listeners:
                listeners.remove(callback)

    def _listeners_for(self, event: str) -> List[Listener]:
        if event not in self._listeners:
            raise ValueError(
                f"Unknown queue event '{event}'. Expected one of: {', '.join(QUEUE_EVENTS)}"
            )
        return self._listeners[event]

    def _emit(self, event: str, payload: Any = None) -> None:
        with self._lock:
            listeners = list(self._listeners[event])

        for callback in listeners:
            try:
                callback(payload)
            except Exception as e:
                self.logger.error(
                    f"Queue listener for '{event}' raised: {e}",
                    exc_info=True,
                    extra={"event": "queue.listener.failed", "queue_event": event},
                )

    # Enqueue and dispatch

    def add(
        self,
        to: Union[str, Sequence[str]],
        subject: str,
        template: str,
        data: Optional[Dict[str, Any]] = None,
        priority: int = 0,
        retries: int = 3,
        html: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> str:
        """
        Enqueue an email and return its job id without waiting for the send.

        "queued" listeners run synchronously on the calling thread before this
        returns, and so do "started" listeners for any job dispatched here. With
        a DeliveryLogListener attached each of those is a database write, so on
        SQLite add() can wait up to the database lock timeout.

        Args:
            to: Recipient address or addresses
            subject: Final subject line
            template: Template identifier recorded on the job
            data: Template data
            priority: Higher values are dispatched first
            retries: Retry budget; the job fails after retries + 1 attempts
            html: Rendered body handed to the transport
            metadata: Free-form caller metadata

        Returns:
            The new job's id

        Raises:
            RuntimeError: If the queue has been shut down
            ValueError: If retries is negative
        """
        if retries < 0:
            raise ValueError(f"retries cannot be negative, got {retries}")

        job = MailJob(
            to=to if isinstance(to, str) else list(to),
            subject=subject,
            template=template,
            data=dict(data or {}),
            html=html,
            priority=priority,
            max_retries=retries,
            metadata=dict(metadata or {}),
        )

        with self._lock:
            if self._closed:
                raise RuntimeError("Mail queue has been shut down")
            self._stats.total += 1

        self.logger.info(
            f"Queued email job {job.id} ({template}) for {job.recipient_display}",
            extra={
                "event": "queue.job.queued",
                "job_id": job.id,
                "template": template,
                "priority": priority,
                "max_retries": retries,
            },
        )
        # Listeners see "queued" before a worker can pick the job up
        self._emit("queued", job)

        with self._lock:
            self._pending.append(job)
            self._sort_pending()

        self.process_queue()
        return job.id

    def _sort_pending(self) -> None:
        # list.sort is stable, so equal priorities keep their relative order
        self._pending.sort(key=lambda job: -job.priority)

    def _pop_ready_job(self) -> Optional[MailJob]:
        now = utc_now()
        for index, job in enumerate(self._pending):
            if job.is_ready(now):
                return self._pending.pop(index)
        return None

    def process_queue(self) -> None:
        """
        Dispatch ready jobs until the concurrency limit is reached.

        Safe to call from any thread and re-entrantly; each job is removed from
        the pending list under the lock before its send is submitted.
        """
        while True:
            with self._lock:
                if self._paused or self._closed or self._in_progress >= self.concurrency:
                    return

                job = self._pop_ready_job()
                if job is None:
                    return

                self._in_progress += 1
                job.status = JobStatus.PROCESSING
                job.attempts += 1
                job.started_at = utc_now()
                job.next_attempt_at = None

            self.logger.debug(
                f"Dispatching job {job.id} (attempt {job.attempts})",
                extra={
                    "event": "queue.job.started",
                    "job_id": job.id,
                    "attempt": job.attempts,
                    "priority": job.priority,
                },
            )
            self._emit("started", job)
            self._executor.submit(self._run_job, job)

    def _run_job(self, job: MailJob) -> None:
        with log_context(job_id=job.id, template=job.template, attempt=job.attempts):
            try:
                result = self.transport.send_mail(job.to, job.subject, job.html or "")
            except Exception as e:
                self._handle_failure(job, e)
            else:
                self._handle_success(job, result)
            finally:
                with self._lock:
                    self._in_progress -= 1
                    self._idle.notify_all()
                self.process_queue()

    def _handle_success(self, job: MailJob, result: Any) -> None:
        with self._lock:
            job.status = JobStatus.COMPLETED
            job.completed_at = utc_now()
            job.result = result
            job.error = None
            self._stats.success += 1

        self.logger.info(
            f"Email job {job.id} completed after {job.attempts} attempt(s)",
            extra={"event": "queue.job.completed", "job_id": job.id, "attempts": job.attempts},
        )
        self._emit("completed", job)

    def _handle_failure(self, job: MailJob, error: Exception) -> None:
        message = str(error) or error.__class__.__name__

        if job.attempts <= job.max_retries:
            delay = self.retry_base_delay * job.attempts
            with self._lock:
                job.status = JobStatus.RETRYING
                job.error = message
                job.next_attempt_at = utc_after(delay)
                job.priority += 1
                self._stats.retries += 1

            self.logger.warning(
                f"Email job {job.id} failed (attempt {job.attempts}/{job.max_retries + 1}), "
                f"retrying in {delay:g}s: {message}",
                extra={
                    "event": "queue.job.retry",
                    "job_id": job.id,
                    "attempt": job.attempts,
                    "delay_seconds": delay,
                    "error": message,
                },
            )
            self._emit("retry", job)

            with self._lock:
                self._pending.insert(0, job)
                self._sort_pending()

            if delay > 0 and not self._closed:
                self.scheduler.schedule_once(self.process_queue, delay)
            return

        with self._lock:
            job.status = JobStatus.FAILED
            job.error = message
            job.failed_at = utc_now()
            self._stats.failed += 1

        self.logger.error(
            f"Email job {job.id} failed permanently after {job.attempts} attempt(s): {message}",
            extra={
                "event": "queue.job.failed",
                "job_id": job.id,
                "attempts": job.attempts,
                "error": message,
            },
        )
        self._emit("failed", job)

    # Control

    def pause(self) -> None:
        """Stop dispatching new jobs; in-flight sends are not affected."""
        with self._lock:
            self._paused = True
        self.logger.info("Mail queue paused", extra={"event": "queue.paused"})
        self._emit("paused")

    def resume(self) -> None:
        with self._lock:
            self._paused = False
        self.logger.info("Mail queue resumed", extra={"event": "queue.resumed"})
        self._emit("resumed")
        self.process_queue()

    @property
    def is_paused(self) -> bool:
        return self._paused

    def clear(self) -> int:
        """
        Drop every job still waiting in the pending list.

        Jobs already being sent finish normally.

        Returns:
            Number of jobs removed
        """
        with self._lock:
            count = len(self._pending)
            self._pending.clear()
            self._idle.notify_all()

        self.logger.info(
            f"Cleared {count} pending job(s)",
            extra={"event": "queue.cleared", "count": count},
        )
        self._emit("cleared", {"count": count})
        return count

    def get_stats(self) -> QueueStats:
        """Snapshot of the running counters plus live queue state."""
        with self._lock:
            return QueueStats(
                total=self._stats.total,
                success=self._stats.success,
                failed=self._stats.failed,
                retries=self._stats.retries,
                queued=len(self._pending),
                in_progress=self._in_progress,
                is_paused=self._paused,
            )

    def pending_jobs(self) -> List[MailJob]:
        """Pending jobs in dispatch order (a copy)."""
        with self._lock:
            return list(self._pending)

    def join(self, timeout: Optional[float] = None) -> bool:
        """
        Block until nothing is pending or in flight.

        Args:
            timeout: Maximum seconds to wait (None waits forever)

        Returns:
            True if the queue drained, False on timeout
        """
        with self._idle:
            return self._idle.wait_for(
                lambda: not self._pending and self._in_progress == 0, timeout=timeout
            )

    def shutdown(self, wait: bool = True) -> None:
        """
        Stop accepting jobs and release worker threads.

        Args:
            wait: If True, wait for in-flight sends to finish
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True
            pending = len(self._pending)

        self.logger.info(
            "Shutting down mail queue",
            extra={"event": "queue.shutdown", "pending": pending, "wait": wait},
        )
        self.scheduler.shutdown(wait=False)
        self._executor.shutdown(wait=wait)

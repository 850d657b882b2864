"""Delivery log: the persisted audit trail of mail jobs.

DeliveryLog is what the notification service subscribes to queue events.
It opens a short session per event so concurrent workers never share one,
and it swallows persistence failures: losing an audit record must not
disturb mail delivery.
"""

from contextlib import AbstractContextManager
from typing import Callable, List, Optional, Union

from mailqueue.domain.models import DeliveryLogRecord, JobStatus, MailJob
from mailqueue.logging import get_logger

from .database import get_session
from .exceptions import RecordNotFoundError
from .repositories import DEFAULT_LIMIT, DeliveryLogRepository

logger = get_logger(__name__, component="delivery_log")

SessionFactory = Callable[[], AbstractContextManager]


class DeliveryLog:
    """Upserts one record per job id and answers observability queries."""

    def __init__(self, session_factory: SessionFactory = get_session):
        """
        Args:
            session_factory: Context manager factory yielding a Session that
                commits on exit (get_session by default)
        """
        self.session_factory = session_factory

    def log_event(
        self,
        job: MailJob,
        event_type: str,
        error: Optional[Union[str, BaseException]] = None,
    ) -> None:
        """
        Record a queue lifecycle event. Never raises.

        Args:
            job: Job whose state just changed
            event_type: queued, started, completed, retry or failed
            error: Error message or exception, if any
        """
        try:
            with self.session_factory() as session:
                DeliveryLogRepository(session).upsert_event(job, event_type, error)
        except Exception as e:
            logger.error(
                f"Failed to record {event_type} for job {job.id}: {e}",
                exc_info=True,
                extra={
                    "event": "delivery_log.write_failed",
                    "job_id": job.id,
                    "queue_event": event_type,
                    "error_type": type(e).__name__,
                },
            )
            return

        logger.debug(
            f"[{job.id}] {event_type}: {job.recipient_display} - {job.subject}",
            extra={"event": "delivery_log.recorded", "job_id": job.id, "queue_event": event_type},
        )

    def _read(self, query: Callable[[DeliveryLogRepository], object]):
        with self.session_factory() as session:
            return query(DeliveryLogRepository(session))

    def get(self, job_id: str) -> Optional[DeliveryLogRecord]:
        return self._read(lambda repo: repo.get(job_id))

    def require(self, job_id: str) -> DeliveryLogRecord:
        """
        Get a record that must exist.

        Raises:
            RecordNotFoundError: If no record exists for the job id
        """
        record = self.get(job_id)
        if record is None:
            raise RecordNotFoundError(f"No delivery log record for job {job_id}")
        return record

    def list_by_status(
        self, status: Union[JobStatus, str], limit: int = DEFAULT_LIMIT
    ) -> List[DeliveryLogRecord]:
        return self._read(lambda repo: repo.list_by_status(status, limit=limit))

    def list_by_recipient(self, recipient: str, limit: int = DEFAULT_LIMIT) -> List[DeliveryLogRecord]:
        return self._read(lambda repo: repo.list_by_recipient(recipient, limit=limit))

    def list_by_template(self, template: str, limit: int = DEFAULT_LIMIT) -> List[DeliveryLogRecord]:
        return self._read(lambda repo: repo.list_by_template(template, limit=limit))

    def list_recent(self, limit: int = DEFAULT_LIMIT) -> List[DeliveryLogRecord]:
        return self._read(lambda repo: repo.list_recent(limit=limit))

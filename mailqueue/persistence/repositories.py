"""Data access layer for the delivery log.

DeliveryLogRepository encapsulates the email_logs table and returns
DeliveryLogRecord domain models rather than ORM models.
"""

import logging
from typing import List, Optional, Union

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from mailqueue.domain.models import DeliveryLogRecord, JobStatus, MailJob
from mailqueue.utils.timestamps import utc_now

from .exceptions import DataIntegrityError, DeliveryLogWriteError, PersistenceError
from .schema import DeliveryLogModel, _dump_metadata, _format_datetime

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 50


class DeliveryLogRepository:
    """Repository for delivery log records."""

    def __init__(self, session: Session):
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy session for database operations
        """
        self.session = session

    def _find(self, job_id: str) -> Optional[DeliveryLogModel]:
        stmt = select(DeliveryLogModel).where(DeliveryLogModel.job_id == job_id)
        return self.session.execute(stmt).scalar_one_or_none()

    def upsert_event(
        self,
        job: MailJob,
        event_type: str,
        error: Optional[Union[str, BaseException]] = None,
    ) -> DeliveryLogRecord:
        """Record a lifecycle event for a job.

        The first event for a job id inserts the row with its creation fields
        (recipient, subject, template, priority, max_retries, created_at);
        later events only update status, attempts, timestamps and error, so
        creation fields are never overwritten.

        Args:
            job: Job the event belongs to (status already transitioned)
            event_type: Queue event name (queued, started, completed, retry, failed)
            error: Error message or exception to record

        Returns:
            The record as stored after this event

        Raises:
            DeliveryLogWriteError: If the write fails
        """
        now = _format_datetime(utc_now())
        try:
            model = self._find(job.id)

            if model is None:
                try:
                    with self.session.begin_nested():
                        model = DeliveryLogModel(
                            job_id=job.id,
                            recipient=job.recipient_display,
                            subject=job.subject,
                            template=job.template,
                            priority=job.priority,
                            max_retries=job.max_retries,
                            status=job.status.value,
                            attempts=job.attempts,
                            metadata_json=_dump_metadata(job.metadata),
                            created_at=now,
                            updated_at=now,
                        )
                        self.session.add(model)
                        self.session.flush()
                except IntegrityError as e:
                    # Another writer inserted the same job id first
                    logger.debug(f"Delivery log row for {job.id} already exists, updating")
                    model = self._find(job.id)
                    if model is None:
                        raise DataIntegrityError(f"Failed to insert delivery log for {job.id}: {e}") from e

            model.status = job.status.value
            model.attempts = job.attempts
            model.updated_at = now
            if event_type == "completed":
                model.completed_at = now
            else:
                model.sent_at = now

            if error is not None:
                model.error = str(error) or error.__class__.__name__

            if event_type == "started":
                model.metadata_json = _dump_metadata(job.metadata)

            self.session.flush()
            return model.to_domain()

        except SQLAlchemyError as e:
            logger.error(
                f"Error writing delivery log event {event_type} for job {job.id}: {e}",
                exc_info=True,
            )
            raise DeliveryLogWriteError(f"Failed to write delivery log: {e}") from e

    def get(self, job_id: str) -> Optional[DeliveryLogRecord]:
        """Retrieve the record for a job id.

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            model = self._find(job_id)
            return model.to_domain() if model is not None else None
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving delivery log for {job_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve delivery log: {e}") from e

    def _list(self, *criteria, limit: int = DEFAULT_LIMIT) -> List[DeliveryLogRecord]:
        try:
            stmt = (
                select(DeliveryLogModel)
                .where(*criteria)
                .order_by(DeliveryLogModel.created_at.desc(), DeliveryLogModel.id.desc())
                .limit(limit)
            )
            return [model.to_domain() for model in self.session.execute(stmt).scalars()]
        except SQLAlchemyError as e:
            logger.error(f"Error listing delivery log records: {e}", exc_info=True)
            raise PersistenceError(f"Failed to list delivery log records: {e}") from e

    def list_by_status(
        self, status: Union[JobStatus, str], limit: int = DEFAULT_LIMIT
    ) -> List[DeliveryLogRecord]:
        """Records with the given status, newest first."""
        return self._list(DeliveryLogModel.status == JobStatus(status).value, limit=limit)

    def list_by_recipient(self, recipient: str, limit: int = DEFAULT_LIMIT) -> List[DeliveryLogRecord]:
        """Records sent to the given address, newest first."""
        return self._list(DeliveryLogModel.recipient == recipient, limit=limit)

    def list_by_template(self, template: str, limit: int = DEFAULT_LIMIT) -> List[DeliveryLogRecord]:
        return self._list(DeliveryLogModel.template == template, limit=limit)

    def list_recent(self, limit: int = DEFAULT_LIMIT) -> List[DeliveryLogRecord]:
        return self._list(limit=limit)

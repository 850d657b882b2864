"""Database schema definition and ORM models.

This module defines the SQLAlchemy ORM model for the delivery log and the
conversion to the DeliveryLogRecord domain model.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import Column, Index, Integer, String, Text, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base

from mailqueue.domain.models import DeliveryLogRecord, JobStatus

logger = logging.getLogger(__name__)

Base = declarative_base()


class DeliveryLogModel(Base):
    """ORM model for the email_logs table.

    One row per queue job id, upserted on every lifecycle event.
    """

    __tablename__ = "email_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    job_id = Column(String(64), nullable=False, unique=True)

    # Creation fields, written once on insert
    recipient = Column(Text, nullable=False)
    subject = Column(Text, nullable=False)
    template = Column(String(100), nullable=False)
    priority = Column(Integer, nullable=False, default=0)
    max_retries = Column(Integer, nullable=False, default=3)

    # Lifecycle fields, updated on every event
    status = Column(String(20), nullable=False)
    attempts = Column(Integer, nullable=False, default=0)
    error = Column(Text, nullable=True)
    metadata_json = Column("metadata", Text, nullable=True)

    # Timestamps (stored as ISO 8601 strings)
    sent_at = Column(String(50), nullable=True)
    completed_at = Column(String(50), nullable=True)
    created_at = Column(String(50), nullable=False)
    updated_at = Column(String(50), nullable=False)

    __table_args__ = (
        Index("idx_email_logs_status", "status", "created_at"),
        Index("idx_email_logs_recipient", "recipient", "created_at"),
        Index("idx_email_logs_template", "template", "created_at"),
    )

    def to_domain(self) -> DeliveryLogRecord:
        """Convert ORM model to domain model."""
        return DeliveryLogRecord(
            job_id=self.job_id,
            to=self.recipient,
            subject=self.subject,
            template=self.template,
            status=JobStatus(self.status),
            priority=self.priority,
            attempts=self.attempts,
            max_retries=self.max_retries,
            error=self.error,
            metadata=_load_metadata(self.metadata_json),
            sent_at=_parse_datetime(self.sent_at),
            completed_at=_parse_datetime(self.completed_at),
            created_at=_parse_datetime(self.created_at),
            updated_at=_parse_datetime(self.updated_at),
        )


def _dump_metadata(metadata: Optional[Dict[str, Any]]) -> Optional[str]:
    if not metadata:
        return None
    return json.dumps(metadata, default=str, sort_keys=True)


def _load_metadata(raw: Optional[str]) -> Dict[str, Any]:
    if not raw:
        return {}
    return json.loads(raw)


def _format_datetime(dt: Optional[datetime]) -> Optional[str]:
    """Format datetime as ISO 8601 string for database storage.

    Strings sort chronologically, so ORDER BY on these columns is correct.
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    else:
        dt = dt.astimezone(timezone.utc)

    return dt.strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def _parse_datetime(dt_str: Optional[str]) -> Optional[datetime]:
    """Parse a stored ISO 8601 string back to a UTC datetime."""
    if not dt_str:
        return None

    dt_str = dt_str.rstrip("Z")
    try:
        dt = datetime.strptime(dt_str, "%Y-%m-%dT%H:%M:%S.%f")
    except ValueError:
        dt = datetime.strptime(dt_str, "%Y-%m-%dT%H:%M:%S")

    return dt.replace(tzinfo=timezone.utc)


def create_schema(engine: Engine) -> None:
    """Create all tables and indexes if they don't exist (idempotent)."""
    logger.info("Creating database schema if not exists")

    try:
        Base.metadata.create_all(engine, checkfirst=True)
        tables = inspect(engine).get_table_names()
        logger.info(f"Database schema ready. Tables: {', '.join(tables)}")
    except Exception as e:
        logger.error(f"Failed to create database schema: {e}", exc_info=True)
        raise

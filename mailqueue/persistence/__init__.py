"""Persistence layer for the delivery log.

Public API:
    # Database initialization and session management
    - init_database(database_url: str) -> None
    - get_session() -> ContextManager[Session]
    - close_database() -> None
    - get_engine() -> Engine
    - is_initialized() -> bool

    # Delivery log
    - DeliveryLog: event sink for queue events plus read helpers
    - DeliveryLogRepository: upsert and queries on the email_logs table

    # Exceptions
    - PersistenceError: Base exception for all persistence errors
    - DatabaseConnectionError: Database connection/initialization failures
    - RecordNotFoundError: Required record not found
    - DataIntegrityError: Constraint violations
    - DeliveryLogWriteError: A lifecycle event could not be written

Example usage:
    >>> from mailqueue.persistence import DeliveryLog, init_database
    >>>
    >>> init_database("sqlite:///./data/mailqueue.db")
    >>> delivery_log = DeliveryLog()
    >>> delivery_log.list_by_status("failed", limit=10)
"""

# Database initialization and session management
from .database import (
    close_database,
    get_engine,
    get_session,
    init_database,
    is_initialized,
)

# Delivery log
from .delivery_log import DeliveryLog
from .repositories import DeliveryLogRepository

# Exceptions
from .exceptions import (
    DatabaseConnectionError,
    DataIntegrityError,
    DeliveryLogWriteError,
    PersistenceError,
    RecordNotFoundError,
)

__all__ = [
    # Database functions
    "init_database",
    "get_session",
    "close_database",
    "get_engine",
    "is_initialized",
    # Delivery log
    "DeliveryLog",
    "DeliveryLogRepository",
    # Exceptions
    "PersistenceError",
    "DatabaseConnectionError",
    "RecordNotFoundError",
    "DataIntegrityError",
    "DeliveryLogWriteError",
]

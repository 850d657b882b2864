"""Delayed wake-ups for the mail queue's retry backoff."""

from .service import SchedulerService

__all__ = [
    "SchedulerService",
]

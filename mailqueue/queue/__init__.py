"""Priority mail queue with bounded concurrency and retry backoff."""

from .mail_queue import QUEUE_EVENTS, MailQueue

__all__ = [
    "MailQueue",
    "QUEUE_EVENTS",
]

"""Test helper utilities for mail queue tests."""

from .transports import (
    BlockingTransport,
    FailingTransport,
    FlakyTransport,
    RecordingTransport,
    wait_for,
)

__all__ = [
    "RecordingTransport",
    "FailingTransport",
    "FlakyTransport",
    "BlockingTransport",
    "wait_for",
]

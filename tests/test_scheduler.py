"""Unit tests for the scheduler service.

Tests the SchedulerService including:
- Lazy start on the first scheduled callback
- One-off callbacks firing after their delay
- Replacing a pending wake-up by id
- Idempotent shutdown
"""

import threading
from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import pytest

from mailqueue.scheduler import SchedulerService


@pytest.fixture
def scheduler():
    service = SchedulerService()
    yield service
    service.shutdown(wait=False)


class TestSchedulerService:
    """Test suite for SchedulerService."""

    def test_not_started_until_first_schedule(self, scheduler):
        assert not scheduler.is_running()
        assert scheduler.pending_count() == 0

    def test_schedule_once_runs_callback(self, scheduler):
        fired = threading.Event()

        scheduler.schedule_once(fired.set, 0.05)

        assert scheduler.is_running()
        assert fired.wait(timeout=5)

    def test_schedule_once_returns_run_date(self, scheduler):
        before = datetime.now(timezone.utc)

        run_date = scheduler.schedule_once(Mock(), 30)

        assert run_date.tzinfo is not None
        assert before + timedelta(seconds=29) < run_date < before + timedelta(seconds=31)
        assert scheduler.pending_count() == 1

    def test_same_job_id_replaces_pending_wakeup(self, scheduler):
        scheduler.schedule_once(Mock(), 60, job_id="wake")
        scheduler.schedule_once(Mock(), 120, job_id="wake")

        assert scheduler.pending_count() == 1

    def test_shutdown_drops_pending_wakeups(self):
        callback = Mock()
        scheduler = SchedulerService()
        scheduler.schedule_once(callback, 60)

        scheduler.shutdown(wait=False)

        assert not scheduler.is_running()
        assert scheduler.pending_count() == 0
        callback.assert_not_called()

    def test_shutdown_when_not_running_is_noop(self):
        scheduler = SchedulerService()

        scheduler.shutdown()
        scheduler.shutdown()

        assert not scheduler.is_running()

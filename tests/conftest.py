"""Shared fixtures for the mail queue test suite."""

from unittest.mock import Mock

import pytest

from mailqueue.config.models import SiteConfig
from mailqueue.logging.context import clear_log_context
from mailqueue.persistence import DeliveryLog, close_database, init_database
from mailqueue.queue import MailQueue
from mailqueue.scheduler import SchedulerService

ENV_VARS = (
    "SMTP_HOST",
    "SMTP_PORT",
    "SMTP_USER",
    "SMTP_PASS",
    "EMAIL_FROM_NAME",
    "EMAIL_FROM_ADDRESS",
    "EMAIL_ENABLED",
    "LOG_LEVEL",
    "DATABASE_URL",
)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every variable the service reads from the environment."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def mock_env_vars(clean_env):
    """Minimal valid SMTP environment."""
    clean_env.setenv("SMTP_HOST", "smtp.test.com")
    clean_env.setenv("SMTP_PORT", "587")
    clean_env.setenv("SMTP_USER", "shop@test.com")
    clean_env.setenv("SMTP_PASS", "secret")
    return clean_env


@pytest.fixture(autouse=True)
def reset_log_context():
    clear_log_context()
    yield
    clear_log_context()


@pytest.fixture
def site():
    return SiteConfig(
        name="Test Shop",
        url="https://shop.test",
        logo_url="https://shop.test/logo.png",
        support_email="help@example.com",
    )


@pytest.fixture
def database(tmp_path):
    """File-backed SQLite database initialized for the test."""
    init_database(f"sqlite:///{tmp_path / 'mailqueue.db'}")
    yield
    close_database()


@pytest.fixture
def delivery_log(database):
    return DeliveryLog()


@pytest.fixture
def mock_scheduler():
    return Mock(spec=SchedulerService)


@pytest.fixture
def make_queue(mock_scheduler):
    """Factory for queues that are shut down after the test."""
    queues = []

    def _make(transport, concurrency=3, retry_base_delay=0.0, scheduler=None):
        queue = MailQueue(
            transport=transport,
            concurrency=concurrency,
            retry_base_delay=retry_base_delay,
            scheduler=scheduler or mock_scheduler,
        )
        queues.append(queue)
        return queue

    yield _make

    for queue in queues:
        queue.shutdown(wait=True)

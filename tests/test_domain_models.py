"""Unit tests for domain models."""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from mailqueue.domain.models import (
    Address,
    Customer,
    DeliveryLogRecord,
    JobStatus,
    MailJob,
    Order,
    OrderItem,
    QueueStats,
    display_order_number,
)
from mailqueue.utils.timestamps import utc_now


class TestMailJob:
    def test_defaults(self):
        job = MailJob(to="a@test.com", subject="Hi", template="password-reset")

        assert job.status == JobStatus.QUEUED
        assert job.attempts == 0
        assert job.max_retries == 3
        assert job.priority == 0
        assert job.created_at.tzinfo == timezone.utc
        assert len(job.id) == 36

    def test_ids_unique(self):
        ids = {MailJob(to="a@test.com", subject="Hi", template="t").id for _ in range(100)}

        assert len(ids) == 100

    def test_recipients(self):
        single = MailJob(to="a@test.com", subject="Hi", template="t")
        many = MailJob(to=["a@test.com", "b@test.com"], subject="Hi", template="t")

        assert single.recipients == ["a@test.com"]
        assert many.recipient_display == "a@test.com, b@test.com"

    def test_is_ready_respects_backoff(self):
        job = MailJob(to="a@test.com", subject="Hi", template="t")
        now = utc_now()

        assert job.is_ready(now)

        job.next_attempt_at = now + timedelta(seconds=30)
        assert not job.is_ready(now)
        assert job.is_ready(now + timedelta(seconds=30))

    @pytest.mark.parametrize(
        "status,terminal",
        [
            (JobStatus.QUEUED, False),
            (JobStatus.PROCESSING, False),
            (JobStatus.RETRYING, False),
            (JobStatus.COMPLETED, True),
            (JobStatus.FAILED, True),
        ],
    )
    def test_is_terminal(self, status, terminal):
        job = MailJob(to="a@test.com", subject="Hi", template="t", status=status)

        assert job.is_terminal() is terminal


class TestQueueStats:
    def test_as_dict(self):
        stats = QueueStats(total=3, success=2, failed=1)

        assert stats.as_dict() == {
            "total": 3,
            "success": 2,
            "failed": 1,
            "retries": 0,
            "queued": 0,
            "in_progress": 0,
            "is_paused": False,
        }


class TestDeliveryLogRecord:
    def test_naive_timestamps_become_utc(self):
        record = DeliveryLogRecord(
            job_id="job-1",
            to="a@test.com",
            subject="Hi",
            template="t",
            status="completed",
            created_at=datetime(2025, 1, 1, 12),
            updated_at="2025-01-01T12:00:05Z",
        )

        assert record.status == JobStatus.COMPLETED
        assert record.created_at.tzinfo == timezone.utc
        assert record.updated_at == datetime(2025, 1, 1, 12, 0, 5, tzinfo=timezone.utc)

    def test_negative_attempts_rejected(self):
        with pytest.raises(ValidationError):
            DeliveryLogRecord(
                job_id="job-1",
                to="a@test.com",
                subject="Hi",
                template="t",
                status="queued",
                attempts=-1,
                created_at=utc_now(),
                updated_at=utc_now(),
            )


class TestPayloadModels:
    def test_customer_display_name(self):
        assert Customer(email="ann@test.com", name="Ann").display_name == "Ann"
        assert Customer(email="ann@test.com").display_name == "ann"

    def test_customer_requires_valid_email(self):
        with pytest.raises(ValidationError):
            Customer(email="not-an-email")

    def test_order_item_line_total(self):
        assert OrderItem(name="Cable", quantity=3, price=4.99).line_total == 14.97

    def test_order_item_quantity_positive(self):
        with pytest.raises(ValidationError):
            OrderItem(name="Cable", quantity=0, price=4.99)

    def test_order_display_number(self):
        assert Order(id="abc", order_number="ORD-1").display_number == "ORD-1"
        assert Order(id="64f1c2a9e4b0c1d2e3f4a5b6").display_number == "F4A5B6"

    def test_order_subtotal(self):
        assert Order(id="1", items_price=20).subtotal == 20
        assert Order(id="1", total_price=30, tax_price=2.5, shipping_price=5).subtotal == 22.5

    def test_order_requires_id(self):
        with pytest.raises(ValidationError):
            Order(id="")

    def test_address_one_line_skips_missing_parts(self):
        address = Address(address="1 Main St", city="Springfield")

        assert address.one_line() == "1 Main St, Springfield"

    def test_display_order_number_without_values(self):
        assert display_order_number(None, None) == ""

"""Unit tests for the NotificationService facade.

Tests:
- Template default priority and caller overrides
- Retry budget defaults (including an explicit zero)
- Validation errors raised before anything is enqueued
- Links built for the named operations
- Delivery log wiring and queue administration
"""

from unittest.mock import Mock

import pytest

from mailqueue.domain.models import JobStatus
from mailqueue.notifications.models import (
    InvalidPayloadError,
    MissingRequiredFieldError,
    UnknownTemplateError,
)
from mailqueue.notifications.samples import sample_order, sample_tracking
from mailqueue.notifications.service import LOGGED_EVENTS, DeliveryLogListener, NotificationService
from mailqueue.notifications.templates import TemplateResolver
from tests.helpers import RecordingTransport

USER = {"id": "user_1", "name": "Ann Buyer", "email": "ann@test.com"}


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def paused_queue(make_queue, transport):
    queue = make_queue(transport)
    queue.pause()
    return queue


@pytest.fixture
def service(paused_queue, site):
    return NotificationService(
        queue=paused_queue, resolver=TemplateResolver(site=site), site=site
    )


def only_pending(queue):
    jobs = queue.pending_jobs()
    assert len(jobs) == 1
    return jobs[0]


class TestSendTemplateEmail:
    def test_returns_job_id_and_enqueues_rendered_job(self, service, paused_queue):
        job_id = service.send_template_email(
            "PASSWORD_RESET", {"user": USER, "reset_url": "https://shop.test/r"}
        )

        job = only_pending(paused_queue)
        assert job.id == job_id
        assert job.to == "ann@test.com"
        assert job.subject == "Test Shop - Password Reset Request"
        assert job.template == "password-reset"
        assert job.status == JobStatus.QUEUED
        assert "https://shop.test/r" in job.html

    def test_template_default_priority(self, service, paused_queue):
        service.send_template_email(
            "PASSWORD_RESET", {"user": USER, "reset_url": "https://shop.test/r"}
        )

        assert only_pending(paused_queue).priority == 5

    def test_priority_override(self, service, paused_queue):
        service.send_template_email(
            "PASSWORD_RESET", {"user": USER, "reset_url": "https://shop.test/r"}, priority=50
        )

        assert only_pending(paused_queue).priority == 50

    def test_default_retries(self, service, paused_queue):
        service.send_template_email(
            "PASSWORD_RESET", {"user": USER, "reset_url": "https://shop.test/r"}
        )

        assert only_pending(paused_queue).max_retries == 3

    def test_zero_retries_honoured(self, service, paused_queue):
        service.send_template_email(
            "PASSWORD_RESET", {"user": USER, "reset_url": "https://shop.test/r"}, retries=0
        )

        assert only_pending(paused_queue).max_retries == 0

    def test_metadata_records_template_name(self, service, paused_queue):
        service.send_template_email(
            "PASSWORD_RESET",
            {"user": USER, "reset_url": "https://shop.test/r"},
            metadata={"request_id": "req-9"},
        )

        assert only_pending(paused_queue).metadata == {
            "request_id": "req-9",
            "template_name": "PASSWORD_RESET",
        }

    def test_unknown_template_not_enqueued(self, service, paused_queue):
        with pytest.raises(UnknownTemplateError):
            service.send_template_email("WELCOME", {"user": USER})

        assert paused_queue.get_stats().total == 0

    def test_missing_fields_not_enqueued(self, service, paused_queue):
        with pytest.raises(MissingRequiredFieldError) as exc_info:
            service.send_template_email("ORDER_SHIPPED", {"user": USER})

        assert exc_info.value.missing_fields == ["order", "tracking_info"]
        assert paused_queue.pending_jobs() == []

    def test_missing_recipient_email(self, service):
        with pytest.raises(MissingRequiredFieldError) as exc_info:
            service.send_template_email(
                "PASSWORD_RESET", {"user": {"name": "Ann"}, "reset_url": "https://x"}
            )

        assert exc_info.value.missing_fields == ["user.email"]

    def test_rejection_is_logged(self, paused_queue, site):
        logger = Mock()
        service = NotificationService(
            queue=paused_queue, resolver=TemplateResolver(site=site), logger_instance=logger
        )

        with pytest.raises(UnknownTemplateError):
            service.send_template_email("WELCOME", {"user": USER})

        extra = logger.error.call_args.kwargs["extra"]
        assert extra["event"] == "notification.rejected"
        assert extra["error_type"] == "UnknownTemplateError"


class TestNamedOperations:
    def test_order_confirmation(self, service, paused_queue):
        service.send_order_confirmation(sample_order(), USER)

        job = only_pending(paused_queue)
        assert job.template == "order-confirmation"
        assert job.priority == 10
        assert job.subject == "Test Shop - Order Confirmation - #ORD-12345"

    def test_order_from_mapping(self, service, paused_queue):
        order = {"id": "64f1c2a9e4b0c1d2e3f4a5b6", "total_price": 20, "items": []}

        service.send_order_confirmation(order, USER)

        assert only_pending(paused_queue).subject.endswith("#F4A5B6")

    def test_invalid_order_rejected(self, service, paused_queue):
        with pytest.raises(InvalidPayloadError, match="Invalid order"):
            service.send_order_confirmation({"total_price": 10}, USER)

        assert paused_queue.pending_jobs() == []

    def test_invalid_user_email_rejected(self, service):
        with pytest.raises(InvalidPayloadError, match="Invalid user"):
            service.send_password_reset({"email": "not-an-email"}, "tok")

    def test_payment_failed_builds_retry_url(self, service, paused_queue):
        service.send_payment_failed(sample_order(), USER, "Card declined")

        job = only_pending(paused_queue)
        assert job.priority == 20
        assert job.data["error"] == {"message": "Card declined"}
        assert (
            job.data["retry_url"] == "https://shop.test/orders/64f1c2a9e4b0c1d2e3f4a5b6/payment"
        )
        assert "Card declined" in job.html

    def test_payment_confirmation(self, service, paused_queue):
        service.send_payment_confirmation(
            sample_order(), USER, {"id": "pi_1", "amount": 146.36, "method": "card"}
        )

        job = only_pending(paused_queue)
        assert job.template == "payment-confirmation"
        assert job.priority == 15
        assert job.data["payment_details"]["id"] == "pi_1"

    def test_order_shipped_and_shipping_update(self, service, paused_queue):
        service.send_order_shipped(sample_order(), USER, sample_tracking())
        service.send_shipping_update(
            sample_order(), USER, {"number": "TRK1", "carrier": "DHL", "status": "Out for delivery"}
        )

        templates = {job.template: job for job in paused_queue.pending_jobs()}
        assert templates["order-shipped"].priority == 12
        assert templates["shipping-update"].priority == 8
        assert "Out for delivery" in templates["shipping-update"].html

    def test_invalid_tracking_rejected(self, service):
        with pytest.raises(InvalidPayloadError, match="Invalid tracking info"):
            service.send_order_shipped(sample_order(), USER, {"carrier": "UPS"})

    def test_password_reset_url(self, service, paused_queue):
        service.send_password_reset(USER, "abc123")

        job = only_pending(paused_queue)
        assert job.data["reset_url"] == "https://shop.test/reset-password?token=abc123"

    def test_verification_url(self, service, paused_queue):
        service.send_verification_email(USER, "v-9")

        job = only_pending(paused_queue)
        assert job.template == "account-verification"
        assert job.data["verification_url"] == "https://shop.test/verify-email?token=v-9"

    def test_options_forwarded(self, service, paused_queue):
        service.send_password_reset(USER, "abc123", priority=1, retries=0)

        job = only_pending(paused_queue)
        assert job.priority == 1
        assert job.max_retries == 0


class TestDeliveryLogWiring:
    def test_listeners_attached_for_logged_events(self, paused_queue, site):
        delivery_log = Mock()

        service = NotificationService(
            queue=paused_queue, resolver=TemplateResolver(site=site), delivery_log=delivery_log
        )
        service.send_password_reset(USER, "tok")

        job = only_pending(paused_queue)
        delivery_log.log_event.assert_called_once_with(job, "queued", None)
        for event in LOGGED_EVENTS:
            assert DeliveryLogListener(delivery_log, event) in paused_queue._listeners[event]

    def test_no_duplicate_listeners(self, paused_queue, site):
        delivery_log = Mock()
        resolver = TemplateResolver(site=site)

        NotificationService(queue=paused_queue, resolver=resolver, delivery_log=delivery_log)
        NotificationService(queue=paused_queue, resolver=resolver, delivery_log=delivery_log)

        assert len(paused_queue._listeners["queued"]) == 1

    def test_failed_listener_passes_job_error(self):
        delivery_log = Mock()
        job = Mock(error="SMTP connection refused")

        DeliveryLogListener(delivery_log, "failed")(job)
        DeliveryLogListener(delivery_log, "completed")(job)

        assert delivery_log.log_event.call_args_list[0].args == (
            job, "failed", "SMTP connection refused"
        )
        assert delivery_log.log_event.call_args_list[1].args == (job, "completed", None)

    def test_delivered_job_logged_end_to_end(self, make_queue, transport, site, delivery_log):
        queue = make_queue(transport)
        service = NotificationService(
            queue=queue, resolver=TemplateResolver(site=site), delivery_log=delivery_log
        )

        job_id = service.send_password_reset(USER, "tok")

        assert queue.join(timeout=5)
        record = delivery_log.require(job_id)
        assert record.status == JobStatus.COMPLETED
        assert record.attempts == 1
        assert record.completed_at is not None
        assert record.metadata["template_name"] == "PASSWORD_RESET"


class TestQueueAdministration:
    def test_pause_resume_and_stats(self, make_queue, transport, site):
        queue = make_queue(transport)
        service = NotificationService(queue=queue, resolver=TemplateResolver(site=site))

        service.pause_queue()
        service.send_password_reset(USER, "tok")
        stats = service.get_queue_stats()
        assert stats.is_paused is True
        assert stats.queued == 1

        service.resume_queue()
        assert queue.join(timeout=5)
        stats = service.get_queue_stats()
        assert stats.is_paused is False
        assert stats.success == 1
        assert len(transport.sent) == 1

    def test_clear_queue(self, service, paused_queue):
        service.send_password_reset(USER, "a")
        service.send_verification_email(USER, "b")

        assert service.clear_queue() == 2
        assert service.get_queue_stats().queued == 0

"""Notification service facade.

This module provides the NotificationService class that the rest of the
application calls to send transactional email: it validates payloads,
renders the template, computes priority and retry budget, and enqueues the
job on the mail queue. Delivery happens asynchronously; callers only get
the job id back.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError

from mailqueue.config.models import SiteConfig
from mailqueue.domain.models import Customer, MailJob, Order, PaymentDetails, QueueStats, TrackingInfo
from mailqueue.logging import get_logger
from mailqueue.logging.context import log_context
from mailqueue.persistence.delivery_log import DeliveryLog
from mailqueue.queue import MailQueue

from .models import InvalidPayloadError, MissingRequiredFieldError, NotificationError
from .payloads import build_link, build_order_context, build_user_payload
from .templates import TemplateResolver

logger = get_logger(__name__, component="notification")

ModelT = TypeVar("ModelT", bound=BaseModel)

LOGGED_EVENTS = ("queued", "started", "completed", "retry", "failed")


@dataclass(frozen=True)
class DeliveryLogListener:
    """Queue listener forwarding one event type to a delivery log.

    Equality is by (delivery_log, event_type), so MailQueue.on() ignores a
    second registration of the same forwarding.
    """

    delivery_log: DeliveryLog
    event_type: str

    def __call__(self, job: MailJob) -> None:
        error = job.error if self.event_type in ("retry", "failed") else None
        self.delivery_log.log_event(job, self.event_type, error)


def _validate(model: Type[ModelT], value: Union[ModelT, Mapping[str, Any]], label: str) -> ModelT:
    if isinstance(value, model):
        return value
    try:
        return model.model_validate(value)
    except ValidationError as e:
        raise InvalidPayloadError(f"Invalid {label}: {e}") from e


def _recipient(data: Mapping[str, Any]) -> Optional[str]:
    user = data.get("user")
    if isinstance(user, Mapping):
        return user.get("email")
    return getattr(user, "email", None)


class NotificationService:
    """Facade for sending transactional emails through the mail queue.

    Each named operation:
    1. Validates the order/user/tracking payloads
    2. Builds template data (links use the site URL)
    3. Renders subject and body through the TemplateResolver
    4. Enqueues the job with the template's default priority unless overridden
    5. Returns the job id without waiting for delivery
    """

    def __init__(
        self,
        queue: MailQueue,
        resolver: TemplateResolver,
        delivery_log: Optional[DeliveryLog] = None,
        site: Optional[SiteConfig] = None,
        default_retries: int = 3,
        logger_instance: Optional[logging.Logger] = None,
    ):
        """Initialize notification service.

        Args:
            queue: Mail queue jobs are enqueued on
            resolver: Template resolver for subject and body rendering
            delivery_log: Receives queue lifecycle events (not wired if None)
            site: Site settings for links (defaults to the resolver's site)
            default_retries: Retry budget used when a call gives none
            logger_instance: Logger instance (uses module logger if None)
        """
        self.queue = queue
        self.resolver = resolver
        self.delivery_log = delivery_log
        self.site = site or resolver.site
        self.default_retries = default_retries
        self.logger = logger_instance or logger

        if delivery_log is not None:
            self._attach_delivery_log(delivery_log)

    def _attach_delivery_log(self, delivery_log: DeliveryLog) -> None:
        for event_type in LOGGED_EVENTS:
            self.queue.on(event_type, DeliveryLogListener(delivery_log, event_type))

    def send_template_email(
        self,
        template_name: str,
        data: Mapping[str, Any],
        priority: Optional[int] = None,
        retries: Optional[int] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Render a registered template and enqueue it.

        Args:
            template_name: Registered template name (e.g. "PASSWORD_RESET")
            data: Template data; must contain user.email
            priority: Overrides the template's default priority
            retries: Overrides the default retry budget (0 disables retries)
            metadata: Extra metadata stored with the job

        Returns:
            Job id

        Raises:
            UnknownTemplateError: If the template is not registered
            MissingRequiredFieldError: If required fields or user.email are missing
            TemplateRenderError: If rendering fails
        """
        with log_context(template=template_name):
            try:
                config = self.resolver.get_config(template_name)
                self.resolver.check_required_fields(template_name, data)

                to = _recipient(data)
                if not to:
                    raise MissingRequiredFieldError(template_name, ["user.email"])

                rendered = self.resolver.render(template_name, data)
            except NotificationError as e:
                self.logger.error(
                    f"Failed to prepare {template_name} email: {e}",
                    extra={"event": "notification.rejected", "error_type": type(e).__name__},
                )
                raise

            job_id = self.queue.add(
                to=to,
                subject=rendered.subject,
                template=config.template,
                data=dict(data),
                priority=priority if priority is not None else config.priority,
                retries=retries if retries is not None else self.default_retries,
                html=rendered.html,
                metadata={**(metadata or {}), "template_name": template_name},
            )

            self.logger.info(
                f"Enqueued {template_name} email for {to}",
                extra={"event": "notification.enqueued", "job_id": job_id},
            )
            return job_id

    # Named operations

    def send_order_confirmation(self, order, user, **options) -> str:
        order, user = _validate(Order, order, "order"), _validate(Customer, user, "user")
        return self.send_template_email(
            "ORDER_CONFIRMATION", build_order_context(order, user), **options
        )

    def send_payment_confirmation(self, order, user, payment_details, **options) -> str:
        order, user = _validate(Order, order, "order"), _validate(Customer, user, "user")
        payment = _validate(PaymentDetails, payment_details, "payment details")
        return self.send_template_email(
            "PAYMENT_CONFIRMATION", build_order_context(order, user, payment=payment), **options
        )

    def send_payment_failed(self, order, user, error_message: str, **options) -> str:
        """Tell the customer a payment failed and link to the retry page."""
        order, user = _validate(Order, order, "order"), _validate(Customer, user, "user")
        data = {
            **build_order_context(order, user),
            "error": {"message": error_message or "Payment was declined"},
            "retry_url": build_link(self.site.url, f"/orders/{order.id}/payment"),
        }
        return self.send_template_email("PAYMENT_FAILED", data, **options)

    def send_order_shipped(self, order, user, tracking_info, **options) -> str:
        order, user = _validate(Order, order, "order"), _validate(Customer, user, "user")
        tracking = _validate(TrackingInfo, tracking_info, "tracking info")
        return self.send_template_email(
            "ORDER_SHIPPED", build_order_context(order, user, tracking=tracking), **options
        )

    def send_shipping_update(self, order, user, tracking_info, **options) -> str:
        order, user = _validate(Order, order, "order"), _validate(Customer, user, "user")
        tracking = _validate(TrackingInfo, tracking_info, "tracking info")
        return self.send_template_email(
            "SHIPPING_UPDATE", build_order_context(order, user, tracking=tracking), **options
        )

    def send_password_reset(self, user, token: str, **options) -> str:
        user = _validate(Customer, user, "user")
        data = {
            "user": build_user_payload(user),
            "reset_url": build_link(self.site.url, f"/reset-password?token={token}"),
        }
        return self.send_template_email("PASSWORD_RESET", data, **options)

    def send_verification_email(self, user, token: str, **options) -> str:
        user = _validate(Customer, user, "user")
        data = {
            "user": build_user_payload(user),
            "verification_url": build_link(self.site.url, f"/verify-email?token={token}"),
        }
        return self.send_template_email("ACCOUNT_VERIFICATION", data, **options)

    # Queue administration

    def get_queue_stats(self) -> QueueStats:
        return self.queue.get_stats()

    def pause_queue(self) -> None:
        self.queue.pause()

    def resume_queue(self) -> None:
        self.queue.resume()

    def clear_queue(self) -> int:
        """Drop pending jobs; returns how many were removed."""
        return self.queue.clear()

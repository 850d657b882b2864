"""Data models and exceptions for the notification pipeline.

Validation-class errors (unknown template, missing fields, render failures,
invalid payloads) are raised synchronously to the caller before anything is
enqueued. TransportError is raised by mail transports inside the queue's
worker threads and never reaches the original caller.
"""

from dataclasses import dataclass
from typing import Iterable, List


class NotificationError(Exception):
    """Base exception for notification-related errors."""

    pass


class UnknownTemplateError(NotificationError):
    """Raised when a template name is not in the registry."""

    def __init__(self, template_name: str):
        self.template_name = template_name
        super().__init__(f"Template {template_name} not found")


class MissingRequiredFieldError(NotificationError):
    """Raised when template data lacks one or more required fields.

    Attributes:
        template_name: Template whose requirements were not met
        missing_fields: Every absent field, in registry order
    """

    def __init__(self, template_name: str, missing_fields: Iterable[str]):
        self.template_name = template_name
        self.missing_fields: List[str] = list(missing_fields)
        super().__init__(
            f"Missing required fields for {template_name}: {', '.join(self.missing_fields)}"
        )


class TemplateRenderError(NotificationError):
    """Raised when the body renderer fails; wraps the original message."""

    pass


class InvalidPayloadError(NotificationError):
    """Raised when notification data (order, user, tracking info) fails validation."""

    pass


class TransportError(NotificationError):
    """Raised when a mail transport fails to hand off a message."""

    pass


@dataclass(frozen=True)
class RenderedEmail:
    """Subject and body produced by the template resolver."""

    subject: str
    html: str

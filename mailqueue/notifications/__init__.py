"""Transactional email notifications.

This package provides the pieces the mail queue and its facade build on:
- TemplateResolver / TEMPLATES: template registry, validation and rendering
- JinjaBodyRenderer: Jinja2 email body rendering
- SMTPTransport: SMTP delivery with TLS/SSL support
- Payload builders: template data from orders, customers and tracking info

The NotificationService facade lives in mailqueue.notifications.service.
"""

from .models import (
    InvalidPayloadError,
    MissingRequiredFieldError,
    NotificationError,
    RenderedEmail,
    TemplateRenderError,
    TransportError,
    UnknownTemplateError,
)
from .renderer import BodyRenderer, JinjaBodyRenderer
from .smtp_client import (
    MailTransport,
    SMTPTransport,
    build_sender_address,
    parse_recipients,
)
from .templates import TEMPLATES, TemplateConfig, TemplateResolver, get_template_names

__all__ = [
    # Templates
    "TEMPLATES",
    "TemplateConfig",
    "TemplateResolver",
    "get_template_names",
    "BodyRenderer",
    "JinjaBodyRenderer",
    "RenderedEmail",
    # Transport
    "MailTransport",
    "SMTPTransport",
    "build_sender_address",
    "parse_recipients",
    # Exceptions
    "NotificationError",
    "UnknownTemplateError",
    "MissingRequiredFieldError",
    "TemplateRenderError",
    "InvalidPayloadError",
    "TransportError",
]

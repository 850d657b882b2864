"""Template registry and resolver for transactional emails.

Maps symbolic template names (ORDER_CONFIRMATION, PASSWORD_RESET, ...) to a
static configuration, validates template data, renders the subject line and
delegates body rendering to a pluggable BodyRenderer.
"""

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from jinja2 import Environment, StrictUndefined, Template, TemplateError

from mailqueue.config.models import SiteConfig
from mailqueue.domain.models import display_order_number
from mailqueue.utils.formatting import format_currency, format_date

from .models import (
    MissingRequiredFieldError,
    RenderedEmail,
    TemplateRenderError,
    UnknownTemplateError,
)
from .renderer import BodyRenderer, JinjaBodyRenderer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TemplateConfig:
    """Static configuration of one email template.

    Attributes:
        name: Symbolic name used by callers
        template: Body template identifier handed to the renderer
        subject: Subject pattern; may reference {{ order_number }}
        priority: Default queue priority
        required_fields: Keys that must be present and non-null in the data
    """

    name: str
    template: str
    subject: str
    priority: int
    required_fields: Tuple[str, ...]


def _config(name, template, subject, priority, *required_fields) -> Tuple[str, TemplateConfig]:
    return name, TemplateConfig(name, template, subject, priority, tuple(required_fields))


TEMPLATES: Mapping[str, TemplateConfig] = MappingProxyType(dict([
    _config(
        "ORDER_CONFIRMATION", "order-confirmation",
        "Order Confirmation - #{{ order_number }}", 10,
        "order", "user",
    ),
    _config(
        "PAYMENT_CONFIRMATION", "payment-confirmation",
        "Payment Confirmed - Order #{{ order_number }}", 15,
        "order", "user", "payment_details",
    ),
    # Payment problems block revenue, so they outrank everything else
    _config(
        "PAYMENT_FAILED", "payment-failed",
        "Payment Failed - Order #{{ order_number }}", 20,
        "order", "user", "error",
    ),
    _config(
        "ORDER_SHIPPED", "order-shipped",
        "Your Order #{{ order_number }} Has Shipped", 12,
        "order", "user", "tracking_info",
    ),
    _config(
        "PASSWORD_RESET", "password-reset",
        "Password Reset Request", 5,
        "user", "reset_url",
    ),
    _config(
        "ACCOUNT_VERIFICATION", "account-verification",
        "Verify Your Email Address", 5,
        "user", "verification_url",
    ),
    _config(
        "SHIPPING_UPDATE", "shipping-update",
        "Shipping Update - Order #{{ order_number }}", 8,
        "order", "user", "tracking_info",
    ),
]))


def get_template_names(registry: Mapping[str, TemplateConfig] = TEMPLATES) -> List[str]:
    """Return all registered template names."""
    return list(registry.keys())


def _lookup(obj: Any, *keys: str) -> Any:
    """Read the first present key from a mapping or attribute from an object."""
    for key in keys:
        if isinstance(obj, Mapping):
            value = obj.get(key)
        else:
            value = getattr(obj, key, None)
        if value is not None:
            return value
    return None


def build_subject_context(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Extract the primitive values subject patterns may reference."""
    order = data.get("order")
    context: Dict[str, Any] = {}
    if order is not None:
        context["order_number"] = display_order_number(
            _lookup(order, "order_number", "orderNumber"),
            _lookup(order, "id", "_id"),
        )
    return context


class TemplateResolver:
    """Resolves template configuration and renders subject and body.

    Stateless apart from the static registry and a cache of compiled subject
    patterns, so a single instance is safe to share between threads.
    """

    def __init__(
        self,
        site: Optional[SiteConfig] = None,
        body_renderer: Optional[BodyRenderer] = None,
        registry: Optional[Mapping[str, TemplateConfig]] = None,
    ):
        """Initialize resolver.

        Args:
            site: Branding used for subject prefixes and template context
            body_renderer: Body renderer (JinjaBodyRenderer if None)
            registry: Template registry (module TEMPLATES if None)
        """
        self.site = site or SiteConfig()
        self.body_renderer = body_renderer or JinjaBodyRenderer()
        self.registry = registry if registry is not None else TEMPLATES
        self._subject_env = Environment(undefined=StrictUndefined, autoescape=False)
        self._subject_templates: Dict[str, Template] = {
            name: self._subject_env.from_string(config.subject)
            for name, config in self.registry.items()
        }

    def get_config(self, template_name: str) -> TemplateConfig:
        """Look up a template's configuration.

        Raises:
            UnknownTemplateError: If the name is not registered
        """
        config = self.registry.get(template_name)
        if config is None:
            raise UnknownTemplateError(template_name)
        return config

    def get_template_names(self) -> List[str]:
        return get_template_names(self.registry)

    def check_required_fields(self, template_name: str, data: Mapping[str, Any]) -> None:
        """Raise one MissingRequiredFieldError listing every absent field."""
        config = self.get_config(template_name)
        missing = [field for field in config.required_fields if data.get(field) is None]
        if missing:
            raise MissingRequiredFieldError(template_name, missing)

    def render_subject(self, template_name: str, data: Mapping[str, Any]) -> str:
        """Interpolate the subject pattern and add the site name prefix."""
        self.get_config(template_name)
        try:
            subject = self._subject_templates[template_name].render(
                build_subject_context(data)
            )
        except TemplateError as e:
            raise TemplateRenderError(f"Failed to render email subject: {e}") from e

        subject = " ".join(subject.split())
        if self.site.name not in subject:
            subject = f"{self.site.name} - {subject}"
        return subject

    def build_context(self, data: Mapping[str, Any], subject: str) -> Dict[str, Any]:
        """Merge template data with site settings and formatting helpers."""
        return {
            **data,
            "subject": subject,
            "site": self.site.model_dump(mode="json"),
            "format_currency": format_currency,
            "format_date": format_date,
        }

    def render(self, template_name: str, data: Optional[Mapping[str, Any]] = None) -> RenderedEmail:
        """Validate data and render subject and body for a template.

        Args:
            template_name: Registered template name
            data: Template data

        Returns:
            RenderedEmail with final subject and HTML body

        Raises:
            UnknownTemplateError: If the template is not registered
            MissingRequiredFieldError: If required fields are absent or None
            TemplateRenderError: If subject or body rendering fails
        """
        data = data or {}
        config = self.get_config(template_name)
        self.check_required_fields(template_name, data)

        subject = self.render_subject(template_name, data)

        try:
            html = self.body_renderer.render(config.template, self.build_context(data, subject))
        except Exception as e:
            logger.error(
                f"Error rendering template {template_name}: {e}",
                exc_info=True,
                extra={"event": "template.render.failed", "template": config.template},
            )
            raise TemplateRenderError(f"Failed to render email template: {e}") from e

        logger.debug(
            f"Rendered template {template_name}",
            extra={"event": "template.rendered", "template": config.template},
        )
        return RenderedEmail(subject=subject, html=html)

"""Email body rendering using Jinja2.

The template resolver only depends on the BodyRenderer protocol, so any
engine can be plugged in; JinjaBodyRenderer is the default and loads
``<template>.html.j2`` files from the package's email_templates directory.
"""

import logging
from typing import Any, Dict, Optional, Protocol

from jinja2 import BaseLoader, Environment, PackageLoader, StrictUndefined

from mailqueue.utils.formatting import format_currency, format_date

logger = logging.getLogger(__name__)


class BodyRenderer(Protocol):
    """Anything that turns a template identifier plus context into a body."""

    def render(self, template_id: str, context: Dict[str, Any]) -> str:
        ...


class JinjaBodyRenderer:
    """Renders HTML email bodies with Jinja2.

    Templates are cached by the Jinja2 environment after first load.
    Missing variables raise instead of rendering blanks.
    """

    def __init__(
        self,
        template_dir: str = "email_templates",
        suffix: str = ".html.j2",
        loader: Optional[BaseLoader] = None,
    ):
        """Initialize renderer with a Jinja2 environment.

        Args:
            template_dir: Directory name within the mailqueue.notifications package
            suffix: File suffix appended to template identifiers
            loader: Custom Jinja2 loader (tests pass a DictLoader)
        """
        self.suffix = suffix
        self.env = Environment(
            loader=loader or PackageLoader("mailqueue.notifications", template_dir),
            autoescape=True,
            undefined=StrictUndefined,
        )
        self.env.filters["currency"] = format_currency
        self.env.filters["date"] = format_date

        logger.debug(f"Initialized JinjaBodyRenderer with templates from {template_dir}")

    def template_filename(self, template_id: str) -> str:
        return f"{template_id}{self.suffix}"

    def render(self, template_id: str, context: Dict[str, Any]) -> str:
        """Render the body for a template identifier.

        Args:
            template_id: Identifier such as "order-confirmation"
            context: Template variables

        Returns:
            Rendered HTML body

        Raises:
            jinja2.TemplateError: If the template is missing or fails to render
        """
        template = self.env.get_template(self.template_filename(template_id))
        return template.render(context)

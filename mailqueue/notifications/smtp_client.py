"""SMTP transport for email delivery.

This module provides a thin wrapper around Python's smtplib with support
for TLS/SSL, authentication, and proper connection lifecycle management.
The mail queue depends only on the MailTransport protocol; SMTPTransport is
the production implementation.
"""

import logging
import smtplib
import ssl
from email.message import EmailMessage
from email.utils import make_msgid
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence, Union

from email_validator import EmailNotValidError, validate_email

from mailqueue.config.environment import EnvironmentConfig
from mailqueue.config.models import EmailConfig

from .models import TransportError

logger = logging.getLogger(__name__)

PLAIN_TEXT_FALLBACK = "This message contains HTML content. Please view it in an HTML-capable email client."


class MailTransport(Protocol):
    """Anything that can deliver one rendered email."""

    def send_mail(self, to: Union[str, Sequence[str]], subject: str, html: str) -> Dict[str, Any]:
        ...


class SMTPTransport:
    """Sends rendered emails over SMTP.

    Opens one connection per message: handles TLS/SSL negotiation,
    authentication and cleanup. Designed to be easily mockable for testing
    through the factory arguments.
    """

    def __init__(
        self,
        env_config: EnvironmentConfig,
        email_config: Optional[EmailConfig] = None,
        smtp_factory: Optional[Callable] = None,
        smtp_ssl_factory: Optional[Callable] = None,
    ):
        """Initialize SMTP transport.

        Args:
            env_config: Environment configuration with SMTP settings
            email_config: Email settings (TLS, timeout, enabled flag)
            smtp_factory: Factory function for creating SMTP instances (for mocking)
            smtp_ssl_factory: Factory function for creating SMTP_SSL instances (for mocking)
        """
        self.env_config = env_config
        self.email_config = email_config or EmailConfig()
        self.smtp_factory = smtp_factory or smtplib.SMTP
        self.smtp_ssl_factory = smtp_ssl_factory or smtplib.SMTP_SSL
        self.sender = build_sender_address(env_config)

    @property
    def enabled(self) -> bool:
        return self.email_config.enabled and self.env_config.email_enabled

    def build_message(self, recipients: List[str], subject: str, html: str) -> EmailMessage:
        """Build a multipart message with a plain-text fallback and HTML body."""
        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = self.sender
        message["To"] = ", ".join(recipients)
        message["Message-ID"] = make_msgid(domain=self.env_config.smtp_host)
        message.set_content(PLAIN_TEXT_FALLBACK)
        message.add_alternative(html, subtype="html")
        return message

    def send_mail(self, to: Union[str, Sequence[str]], subject: str, html: str) -> Dict[str, Any]:
        """Send one email.

        Args:
            to: Recipient address, comma-separated addresses or a list
            subject: Final subject line
            html: Rendered HTML body

        Returns:
            Dictionary with the generated ``message_id``

        Raises:
            TransportError: If recipients are invalid or delivery fails
        """
        if isinstance(to, str):
            recipient_string = to
        else:
            recipient_string = ",".join(to)

        try:
            recipients = parse_recipients(recipient_string)
        except ValueError as e:
            raise TransportError(str(e)) from e

        if not self.enabled:
            logger.info(
                f"Email delivery disabled; skipping send to {', '.join(recipients)}",
                extra={"event": "smtp.send.skipped", "subject": subject},
            )
            return {"message_id": "disabled", "skipped": True}

        message = self.build_message(recipients, subject, html)
        self._deliver(message)

        logger.debug(
            f"Message sent successfully to {message['To']}",
            extra={"event": "smtp.send.success", "message_id": message["Message-ID"]},
        )
        return {"message_id": message["Message-ID"]}

    def _deliver(self, message: EmailMessage) -> None:
        env_config = self.env_config
        timeout = self.email_config.smtp_timeout
        smtp = None
        try:
            if env_config.smtp_port == 465:
                # Port 465: Implicit TLS (SMTP_SSL)
                logger.debug(
                    f"Connecting to {env_config.smtp_host}:{env_config.smtp_port} with implicit TLS"
                )
                context = ssl.create_default_context()
                smtp = self.smtp_ssl_factory(
                    env_config.smtp_host, env_config.smtp_port, timeout=timeout, context=context
                )
            else:
                logger.debug(f"Connecting to {env_config.smtp_host}:{env_config.smtp_port}")
                smtp = self.smtp_factory(
                    env_config.smtp_host, env_config.smtp_port, timeout=timeout
                )

                if self.email_config.use_tls:
                    logger.debug("Upgrading connection with STARTTLS")
                    context = ssl.create_default_context()
                    smtp.starttls(context=context)

            if env_config.smtp_user and env_config.smtp_pass:
                logger.debug(f"Authenticating as {env_config.smtp_user}")
                smtp.login(env_config.smtp_user, env_config.smtp_pass)

            smtp.send_message(message)

        except smtplib.SMTPException as e:
            raise TransportError(f"SMTP error during message delivery: {e}") from e
        except OSError as e:
            raise TransportError(f"Network error during SMTP connection: {e}") from e
        finally:
            if smtp is not None:
                try:
                    smtp.quit()
                except (smtplib.SMTPException, OSError) as e:
                    logger.warning(f"Error closing SMTP connection: {e}")


def parse_recipients(recipient_string: str) -> List[str]:
    """Parse and validate comma-separated email addresses.

    Args:
        recipient_string: Comma-separated email addresses

    Returns:
        List of validated email addresses

    Raises:
        ValueError: If any email address is invalid or none are given
    """
    recipients = []
    for email in (part.strip() for part in recipient_string.split(",")):
        if not email:
            continue

        try:
            validated = validate_email(email, check_deliverability=False)
            recipients.append(validated.normalized)
        except EmailNotValidError as e:
            raise ValueError(f"Invalid recipient address: '{email}' - {e}") from e

    if not recipients:
        raise ValueError("No valid recipient addresses given")

    return recipients


def build_sender_address(env_config: EnvironmentConfig) -> str:
    """Build the 'From' address for outgoing emails.

    Uses EMAIL_FROM_ADDRESS, then SMTP_USER, then a noreply address at the
    SMTP host, labelled with EMAIL_FROM_NAME.

    Returns:
        Formatted sender address (e.g., "E-Commerce Store <shop@example.com>")
    """
    sender_email = (
        env_config.from_address
        or env_config.smtp_user
        or f"noreply@{env_config.smtp_host}"
    )
    return f"{env_config.from_name} <{sender_email}>"

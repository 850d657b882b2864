"""Wiring of the mail queue components.

create_notification_service() is the single place where the transport,
scheduler, queue, resolver and delivery log are constructed; nothing in the
package keeps a module-level queue instance.
"""

from typing import Optional

from mailqueue.config.environment import EnvironmentConfig
from mailqueue.config.models import AppConfig
from mailqueue.logging import get_logger
from mailqueue.notifications.renderer import BodyRenderer
from mailqueue.notifications.service import NotificationService
from mailqueue.notifications.smtp_client import MailTransport, SMTPTransport
from mailqueue.notifications.templates import TemplateResolver
from mailqueue.persistence.database import is_initialized
from mailqueue.persistence.delivery_log import DeliveryLog
from mailqueue.persistence.exceptions import DatabaseConnectionError
from mailqueue.queue import MailQueue
from mailqueue.scheduler import SchedulerService

logger = get_logger(__name__, component="factory")


def create_notification_service(
    app_config: AppConfig,
    env_config: EnvironmentConfig,
    transport: Optional[MailTransport] = None,
    delivery_log: Optional[DeliveryLog] = None,
    body_renderer: Optional[BodyRenderer] = None,
) -> NotificationService:
    """
    Build a NotificationService with its own queue.

    Args:
        app_config: Application configuration
        env_config: Environment configuration with SMTP settings
        transport: Mail transport (SMTPTransport from env_config if None)
        delivery_log: Delivery log (DeliveryLog over get_session if None)
        body_renderer: Body renderer (JinjaBodyRenderer if None)

    Returns:
        NotificationService wired to a fresh MailQueue

    Raises:
        DatabaseConnectionError: If no delivery_log is given and the database
            has not been initialized
    """
    if delivery_log is None and not is_initialized():
        raise DatabaseConnectionError(
            "Database not initialized. Call init_database() before "
            "create_notification_service() or pass a delivery_log"
        )

    transport = transport or SMTPTransport(env_config, app_config.email)

    queue = MailQueue(
        transport=transport,
        concurrency=app_config.queue.concurrency,
        retry_base_delay=app_config.queue.retry_base_delay_seconds,
        scheduler=SchedulerService(),
    )
    resolver = TemplateResolver(site=app_config.site, body_renderer=body_renderer)

    service = NotificationService(
        queue=queue,
        resolver=resolver,
        delivery_log=delivery_log or DeliveryLog(),
        site=app_config.site,
        default_retries=app_config.queue.default_retries,
    )

    logger.info(
        "Notification service initialized",
        extra={
            "event": "services.initialized",
            "concurrency": app_config.queue.concurrency,
            "retry_base_delay_seconds": app_config.queue.retry_base_delay_seconds,
            "default_retries": app_config.queue.default_retries,
            "email_enabled": app_config.email.enabled,
        },
    )
    return service

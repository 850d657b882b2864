"""Command-line entry point for the mail queue service."""

from dotenv import load_dotenv
load_dotenv()

import argparse
import os
import sys
import time
from pathlib import Path
from typing import List, Optional, Tuple

from mailqueue.config.environment import EnvironmentConfig
from mailqueue.config.exceptions import ConfigurationError
from mailqueue.config.loader import load_config
from mailqueue.config.models import AppConfig
from mailqueue.domain.models import DeliveryLogRecord, JobStatus
from mailqueue.factory import create_notification_service
from mailqueue.logging import get_logger
from mailqueue.logging.config import configure_logging
from mailqueue.notifications.models import NotificationError
from mailqueue.notifications.samples import build_sample_data
from mailqueue.notifications.templates import TEMPLATES
from mailqueue.persistence import DeliveryLog, PersistenceError, close_database, init_database
from mailqueue.utils.timestamps import format_timestamp

logger = get_logger(__name__, component="cli")


def load_runtime_config(
    config_path: Optional[Path], log_level_override: Optional[str]
) -> Tuple[AppConfig, EnvironmentConfig]:
    """
    Load configuration and resolve the effective log level.

    Log level priority: CLI > environment > config file.

    Raises:
        ConfigurationError: If configuration is invalid
    """
    app_config, env_config = load_config(config_path)

    if log_level_override:
        env_config.log_level = log_level_override
    elif not env_config.log_level:
        env_config.log_level = app_config.logging.level

    return app_config, env_config


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mailqueue",
        description="Mail queue - prioritized transactional email with retries and a delivery log",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: config.yaml or config/config.yaml)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides config and environment)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("templates", help="List registered email templates")

    send_test = subparsers.add_parser(
        "send-test", help="Send a template with sample data and wait for delivery"
    )
    send_test.add_argument("template", choices=sorted(TEMPLATES), help="Template name")
    send_test.add_argument("--to", required=True, help="Recipient address")
    send_test.add_argument(
        "--timeout",
        type=float,
        default=60.0,
        help="Seconds to wait for the queue to drain (default: 60)",
    )

    logs = subparsers.add_parser("logs", help="Show delivery log records")
    filters = logs.add_mutually_exclusive_group()
    filters.add_argument("--job-id", help="Show a single job")
    filters.add_argument("--status", choices=[status.value for status in JobStatus])
    filters.add_argument("--recipient", help="Filter by recipient address")
    filters.add_argument("--template", help="Filter by template identifier")
    logs.add_argument("--limit", type=int, default=20, help="Maximum records (default: 20)")

    return parser


def cmd_templates() -> int:
    for config in TEMPLATES.values():
        print(
            f"{config.name:<22} {config.template:<22} priority={config.priority:<3} "
            f"required={','.join(config.required_fields)}"
        )
    return 0


def cmd_send_test(args, app_config: AppConfig, env_config: EnvironmentConfig) -> int:
    init_database(env_config.database_url)
    service = create_notification_service(app_config, env_config)
    try:
        data = build_sample_data(args.template, args.to, site=app_config.site)
        job_id = service.send_template_email(args.template, data)
        print(f"Queued {args.template} as job {job_id}")

        drained = service.queue.join(timeout=args.timeout)
        stats = service.get_queue_stats()
        print(
            f"success={stats.success} failed={stats.failed} retries={stats.retries} "
            f"queued={stats.queued} in_progress={stats.in_progress}"
        )

        if not drained:
            print(f"Timed out after {args.timeout:g}s waiting for delivery", file=sys.stderr)
            return 1
        return 1 if stats.failed else 0
    finally:
        service.queue.shutdown(wait=False)
        close_database()


def _format_record(record: DeliveryLogRecord) -> str:
    line = (
        f"{format_timestamp(record.created_at)}  {record.job_id}  {record.status.value:<10} "
        f"attempts={record.attempts}/{record.max_retries + 1}  {record.template:<22} "
        f"{record.to}  {record.subject}"
    )
    if record.error:
        line += f"\n    error: {record.error}"
    return line


def cmd_logs(args, env_config: EnvironmentConfig) -> int:
    init_database(env_config.database_url)
    try:
        delivery_log = DeliveryLog()
        if args.job_id:
            records: List[DeliveryLogRecord] = [delivery_log.require(args.job_id)]
        elif args.status:
            records = delivery_log.list_by_status(args.status, limit=args.limit)
        elif args.recipient:
            records = delivery_log.list_by_recipient(args.recipient, limit=args.limit)
        elif args.template:
            records = delivery_log.list_by_template(args.template, limit=args.limit)
        else:
            records = delivery_log.list_recent(limit=args.limit)

        for record in records:
            print(_format_record(record))
        if not records:
            print("No delivery log records found")
        return 0
    finally:
        close_database()


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    start_time = time.time()
    args = build_parser().parse_args(argv)

    if args.command == "templates":
        return cmd_templates()

    try:
        app_config, env_config = load_runtime_config(args.config, args.log_level)

        environment = os.environ.get("ENVIRONMENT", "local")
        configure_logging(
            level=env_config.log_level,
            format_type=app_config.logging.format,
            environment=environment,
        )
        logger.info(
            "Mail queue command starting",
            extra={"event": "service.starting", "command": args.command},
        )

        if args.command == "send-test":
            exit_code = cmd_send_test(args, app_config, env_config)
        else:
            exit_code = cmd_logs(args, env_config)

        logger.info(
            "Mail queue command finished",
            extra={
                "event": "service.stopping",
                "command": args.command,
                "exit_code": exit_code,
                "uptime_seconds": round(time.time() - start_time, 2),
            },
        )
        return exit_code

    except ConfigurationError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        return 1
    except (NotificationError, PersistenceError) as e:
        print(f"Error: {e}", file=sys.stderr)
        logger.error(
            f"{args.command} failed: {e}",
            extra={"event": "service.command.failed", "error_type": type(e).__name__},
        )
        return 1
    except KeyboardInterrupt:
        print("\nShutdown requested by user", file=sys.stderr)
        return 0


if __name__ == "__main__":
    sys.exit(main())

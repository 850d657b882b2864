"""Environment variable loading and validation."""

import os
from typing import Optional

from email_validator import EmailNotValidError, validate_email

from .exceptions import ConfigurationError

DEFAULT_DATABASE_URL = "sqlite:///./data/mailqueue.db"


class EnvironmentConfig:
    """Environment variable configuration holder."""

    def __init__(
        self,
        smtp_host: str,
        smtp_port: int,
        smtp_user: Optional[str] = None,
        smtp_pass: Optional[str] = None,
        from_name: Optional[str] = None,
        from_address: Optional[str] = None,
        log_level: Optional[str] = None,
        database_url: Optional[str] = None,
        email_enabled: bool = True,
    ):
        """Initialize environment configuration."""
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.smtp_user = smtp_user
        self.smtp_pass = smtp_pass
        self.from_name = from_name or "E-Commerce Store"
        self.from_address = from_address
        self.log_level = log_level
        self.database_url = database_url or DEFAULT_DATABASE_URL
        self.email_enabled = email_enabled


def load_environment_config() -> EnvironmentConfig:
    """
    Load and validate environment variables.

    Required environment variables (unless EMAIL_ENABLED=false):
    - SMTP_HOST: SMTP server hostname
    - SMTP_PORT: SMTP server port (1-65535)

    Optional environment variables:
    - SMTP_USER / SMTP_PASS: SMTP credentials (both or neither)
    - EMAIL_FROM_NAME: Display name for the sender
    - EMAIL_FROM_ADDRESS: Sender address (defaults to SMTP_USER, then noreply@SMTP_HOST)
    - LOG_LEVEL: Override log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    - DATABASE_URL: Delivery log database URL (default: sqlite:///./data/mailqueue.db)
    - EMAIL_ENABLED: Set to "false" to log messages instead of sending them

    Returns:
        EnvironmentConfig object with validated values

    Raises:
        ConfigurationError: If required variables are missing or invalid
    """
    errors = []

    smtp_host = os.getenv("SMTP_HOST")
    smtp_port_str = os.getenv("SMTP_PORT")

    smtp_user = os.getenv("SMTP_USER")
    smtp_pass = os.getenv("SMTP_PASS")
    from_name = os.getenv("EMAIL_FROM_NAME")
    from_address = os.getenv("EMAIL_FROM_ADDRESS")
    log_level = os.getenv("LOG_LEVEL")
    database_url = os.getenv("DATABASE_URL")
    email_enabled = os.getenv("EMAIL_ENABLED", "true").strip().lower() != "false"

    # SMTP settings are only mandatory when mail actually leaves the process
    if email_enabled:
        if not smtp_host:
            errors.append("Missing required environment variable: SMTP_HOST")
        if not smtp_port_str:
            errors.append("Missing required environment variable: SMTP_PORT")
    else:
        smtp_host = smtp_host or "localhost"
        smtp_port_str = smtp_port_str or "25"

    smtp_port = None
    if smtp_port_str:
        try:
            smtp_port = int(smtp_port_str)
            if smtp_port < 1 or smtp_port > 65535:
                errors.append(
                    f"Invalid SMTP_PORT: {smtp_port}. Must be between 1 and 65535."
                )
        except ValueError:
            errors.append(
                f"Invalid SMTP_PORT: '{smtp_port_str}'. Must be a valid integer."
            )

    if from_address:
        try:
            from_address = validate_email(
                from_address.strip(), check_deliverability=False
            ).normalized
        except EmailNotValidError as e:
            errors.append(f"Invalid EMAIL_FROM_ADDRESS: '{from_address}' - {e}")

    if log_level:
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if log_level.upper() not in valid_levels:
            errors.append(
                f"Invalid LOG_LEVEL: '{log_level}'. Must be one of: {', '.join(valid_levels)}"
            )

    if smtp_user and not smtp_pass:
        errors.append(
            "SMTP_USER is set but SMTP_PASS is not. Both must be set for authentication."
        )
    elif smtp_pass and not smtp_user:
        errors.append(
            "SMTP_PASS is set but SMTP_USER is not. Both must be set for authentication."
        )

    if errors:
        raise ConfigurationError(
            "Environment variable validation failed",
            errors=errors,
            suggestions=[
                "Copy .env.example to .env and fill in your SMTP credentials",
                "Ensure SMTP_HOST and SMTP_PORT are set",
                "Set EMAIL_ENABLED=false to run without an SMTP server",
            ],
        )

    return EnvironmentConfig(
        smtp_host=smtp_host,
        smtp_port=smtp_port,
        smtp_user=smtp_user,
        smtp_pass=smtp_pass,
        from_name=from_name,
        from_address=from_address,
        log_level=log_level,
        database_url=database_url,
        email_enabled=email_enabled,
    )

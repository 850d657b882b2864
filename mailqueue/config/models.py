"""Configuration schema models using Pydantic."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from .duration import DurationParseError, parse_duration, validate_duration_range


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    KEY_VALUE = "key-value"


class SiteConfig(BaseModel):
    """Storefront branding and links used in subjects and email bodies."""

    name: str = Field("E-Commerce Store", min_length=1, description="Site/brand name")
    url: str = Field(
        "http://localhost:3000", min_length=1, description="Public frontend base URL"
    )
    logo_url: str = Field(
        "https://via.placeholder.com/150x50", description="Logo shown in email headers"
    )
    support_email: EmailStr = Field(
        "support@example.com", description="Support address shown in email footers"
    )

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        """Strip whitespace from the site name."""
        stripped = v.strip()
        if not stripped:
            raise ValueError("Site name cannot be empty or whitespace-only")
        return stripped

    @field_validator("url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize the base URL so paths can be appended safely."""
        stripped = v.strip().rstrip("/")
        if not stripped.startswith(("http://", "https://")):
            raise ValueError(f"Site URL must start with http:// or https://, got: {v}")
        return stripped


class QueueConfig(BaseModel):
    """Mail queue concurrency and retry settings."""

    concurrency: int = Field(
        3, ge=1, le=50, description="Maximum number of sends in flight at once"
    )
    default_retries: int = Field(
        3, ge=0, le=10, description="Retry budget applied when a caller gives none"
    )
    retry_base_delay: str = Field(
        "60s",
        description="Base delay for linear retry backoff (delay = base * attempts); "
        "'0s' re-dispatches failed jobs immediately",
    )

    # Computed field
    retry_base_delay_seconds: Optional[int] = None

    @field_validator("retry_base_delay")
    @classmethod
    def validate_retry_base_delay(cls, v: str) -> str:
        """Validate that the retry delay parses and stays within an hour."""
        try:
            seconds = parse_duration(v, allow_zero=True)
            validate_duration_range(
                seconds, min_seconds=0, max_seconds=3600, label="Retry base delay"
            )
            return v
        except DurationParseError as e:
            raise ValueError(str(e)) from e

    @model_validator(mode="after")
    def compute_retry_seconds(self):
        """Store the parsed retry delay in seconds."""
        self.retry_base_delay_seconds = parse_duration(self.retry_base_delay, allow_zero=True)
        return self


class EmailConfig(BaseModel):
    """Email delivery settings."""

    enabled: bool = Field(True, description="Disable to log sends instead of dialing out")
    use_tls: bool = Field(True, description="Use TLS/STARTTLS for secure connection")
    smtp_timeout: int = Field(
        30, ge=1, le=300, description="Socket timeout for a single SMTP send (seconds)"
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(LogLevel.INFO, description="Log level")
    format: LogFormat = Field(
        LogFormat.KEY_VALUE, description="Log output format (json or key-value)"
    )

    model_config = {"use_enum_values": True}


class AppConfig(BaseModel):
    """Root configuration object for the mail queue service."""

    site: SiteConfig = Field(default_factory=SiteConfig, description="Branding settings")
    queue: QueueConfig = Field(default_factory=QueueConfig, description="Queue settings")
    email: EmailConfig = Field(default_factory=EmailConfig, description="Email settings")
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )

"""Additional validation utilities for configuration."""

import warnings
from typing import Any, Dict, List


def check_for_warnings(config_dict: Dict[str, Any]) -> List[str]:
    """
    Check configuration for potential issues and return warnings.

    Args:
        config_dict: Raw configuration dictionary

    Returns:
        List of warning messages
    """
    warning_messages = []

    queue = config_dict.get("queue", {})
    if isinstance(queue, dict):
        concurrency = queue.get("concurrency", 3)
        if isinstance(concurrency, int) and concurrency > 10:
            warning_messages.append(
                f"High queue concurrency ({concurrency}) may trip SMTP provider rate limits"
            )

        retries = queue.get("default_retries", 3)
        if isinstance(retries, int) and retries == 0:
            warning_messages.append(
                "default_retries is 0: a single transport failure marks the email failed"
            )

    email = config_dict.get("email", {})
    if isinstance(email, dict) and email.get("enabled") is False:
        warning_messages.append(
            "Email sending is disabled; messages will be logged but not delivered"
        )

    site = config_dict.get("site", {})
    if isinstance(site, dict):
        url = site.get("url", "")
        if isinstance(url, str) and "localhost" in url:
            warning_messages.append(
                f"site.url ({url}) points at localhost; links in emails will not work for customers"
            )

    return warning_messages


def emit_warnings(warning_messages: List[str]) -> None:
    """
    Emit warning messages using Python's warnings module.

    Args:
        warning_messages: List of warning messages to emit
    """
    for message in warning_messages:
        warnings.warn(message, UserWarning, stacklevel=2)

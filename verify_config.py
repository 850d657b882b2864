#!/usr/bin/env python3
"""Check that config.example.yaml has the expected sections and types."""

import sys
from pathlib import Path

import yaml


def verify_config_structure(config_file: Path = Path("config.example.yaml")) -> bool:
    """Verify the example config's structure without loading the package."""
    if not config_file.exists():
        print(f"✗ {config_file} not found")
        return False

    try:
        with open(config_file, "r") as f:
            config = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        print(f"✗ Failed to parse {config_file}: {e}")
        return False

    errors = []

    for section in ("site", "queue", "email", "logging"):
        if section in config and not isinstance(config[section], dict):
            errors.append(f"'{section}' must be a mapping")

    site = config.get("site") or {}
    if not site.get("name"):
        errors.append("site.name is required")
    if not str(site.get("url", "")).startswith(("http://", "https://")):
        errors.append("site.url must start with http:// or https://")

    queue = config.get("queue") or {}
    concurrency = queue.get("concurrency", 3)
    if not isinstance(concurrency, int) or not 1 <= concurrency <= 50:
        errors.append("queue.concurrency must be an integer between 1 and 50")
    retries = queue.get("default_retries", 3)
    if not isinstance(retries, int) or not 0 <= retries <= 10:
        errors.append("queue.default_retries must be an integer between 0 and 10")
    if "retry_base_delay" in queue and not isinstance(queue["retry_base_delay"], str):
        errors.append("queue.retry_base_delay must be a duration string such as '60s'")

    log_format = (config.get("logging") or {}).get("format", "key-value")
    if log_format not in ("json", "key-value"):
        errors.append("logging.format must be 'json' or 'key-value'")

    if errors:
        print(f"✗ {config_file} validation failed:")
        for error in errors:
            print(f"  - {error}")
        return False

    print(f"✓ {config_file} structure is valid")
    print(f"  - Site: {site['name']} ({site['url']})")
    print(f"  - Concurrency: {concurrency}, default retries: {retries}")
    print(f"  - Retry base delay: {queue.get('retry_base_delay', '60s')}")
    return True


if __name__ == "__main__":
    sys.exit(0 if verify_config_structure() else 1)

#!/usr/bin/env python3
"""Render every registered email template with sample data.

Writes one HTML file per template so the layouts can be checked in a
browser without an SMTP server.

Usage:
    python scripts/preview_templates.py
    python scripts/preview_templates.py --output /tmp/previews --config config.yaml
"""

import argparse
import sys
from pathlib import Path

import yaml

from mailqueue.config.models import SiteConfig
from mailqueue.notifications.models import NotificationError
from mailqueue.notifications.samples import build_sample_data
from mailqueue.notifications.templates import TemplateResolver


def print_header(title: str):
    width = 80
    print("\n" + "=" * width)
    print(f" {title}")
    print("=" * width + "\n")


def load_site(config_path: Path) -> SiteConfig:
    """Read only the site section, so no .env is needed."""
    if not config_path.exists():
        return SiteConfig()
    with open(config_path, "r", encoding="utf-8") as f:
        config = yaml.safe_load(f) or {}
    return SiteConfig.model_validate(config.get("site") or {})


def main() -> int:
    parser = argparse.ArgumentParser(description="Render email template previews")
    parser.add_argument("--config", type=Path, default=Path("config.yaml"))
    parser.add_argument("--output", type=Path, default=Path("template-previews"))
    parser.add_argument("--to", default="test@example.com", help="Sample recipient")
    args = parser.parse_args()

    site = load_site(args.config)
    resolver = TemplateResolver(site=site)
    args.output.mkdir(parents=True, exist_ok=True)

    print_header(f"Rendering templates for {site.name}")

    failures = 0
    for name in resolver.get_template_names():
        try:
            rendered = resolver.render(name, build_sample_data(name, args.to, site=site))
        except NotificationError as e:
            failures += 1
            print(f"  ✗ {name:<22} {e}")
            continue

        target = args.output / f"{resolver.get_config(name).template}.html"
        target.write_text(rendered.html, encoding="utf-8")
        print(f"  ✓ {name:<22} {rendered.subject!r} -> {target}")

    print(f"\n{len(resolver.get_template_names()) - failures} rendered, {failures} failed")
    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())

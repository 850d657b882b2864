"""Priority email queue with retries, templates and a delivery log."""

__version__ = "0.1.0"

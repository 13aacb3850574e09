"""
Logging utilities for the API process and the chat command handler.

Provides a consistent logging format and configuration.
"""

import logging
import sys


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging and quiet per-request HTTP client chatter."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        stream=sys.stdout,
    )
    # httpx logs every request URL at INFO, including token refresh calls.
    logging.getLogger("httpx").setLevel(logging.WARNING)


__all__ = ["configure_logging"]

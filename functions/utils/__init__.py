"""Utility modules for Estimate Inbox."""

from utils.logging_config import configure_logging

__all__ = [
    "configure_logging",
]

"""
Core module - shared infrastructure.

This module contains:
- utils: ID generation and time helpers
- logging: Process-wide logging setup
"""

from libris.core.utils import generate_id, utc_now
from libris.core.logging import configure_logging

__all__ = [
    "generate_id",
    "utc_now",
    "configure_logging",
]

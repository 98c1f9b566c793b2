"""
Logging setup.

Modules log through `logging.getLogger(__name__)`; this installs the
single stdout handler they all end up on.
"""

from __future__ import annotations

import logging
import sys


def configure_logging(level: str = "INFO") -> None:
    """Install one stdout handler on the root logger at the given level."""
    root = logging.getLogger()
    root.setLevel(level.upper())

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        logging.Formatter(fmt="%(asctime)s %(levelname)s %(name)s %(message)s")
    )

    # Replace existing handlers to avoid duplicates under reload.
    root.handlers = [handler]

"""
Libris - Main entry point.

Runs the API with uvicorn using the configured host and port.
"""

from __future__ import annotations

import uvicorn

from libris.api.app import create_app
from libris.config import get_settings


def main():
    """Main entry point."""
    settings = get_settings()
    uvicorn.run(
        create_app(settings),
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()

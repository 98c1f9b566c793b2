"""HTTP API: app factory, middleware and error handlers."""

from libris.api.app import create_app

__all__ = ["create_app"]

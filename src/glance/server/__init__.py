"""HTTP server for Glance."""

from glance.server.app import GlanceServer, create_app

__all__ = [
    "GlanceServer",
    "create_app",
]

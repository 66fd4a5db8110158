"""CLI command modules."""

from glance.cli.commands import analyze, serve

__all__ = [
    "analyze",
    "serve",
]

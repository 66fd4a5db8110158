"""Shared console utilities for CLI commands."""

from __future__ import annotations

import json
from typing import Any

from rich.console import Console

# Shared console instance for all CLI commands
console = Console()


def error(msg: str) -> None:
    """Print an error message in red."""
    console.print(f"[red]{msg}[/red]")


def print_json(payload: dict[str, Any]) -> None:
    """Print a JSON document without Rich markup processing."""
    console.print_json(json.dumps(payload))

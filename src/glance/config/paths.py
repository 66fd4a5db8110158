"""Centralized path management for Glance.

State (config, logs) lives under a single base directory, overridable
with the GLANCE_HOME environment variable. Defaults to ~/.glance.
"""

import os
from functools import lru_cache
from pathlib import Path

ENV_VAR = "GLANCE_HOME"


@lru_cache(maxsize=1)
def get_glance_home() -> Path:
    """Get the base directory for all Glance data.

    Resolution order:
    1. GLANCE_HOME environment variable (if set)
    2. ~/.glance
    """
    if env_home := os.environ.get(ENV_VAR):
        return Path(env_home).expanduser().resolve()
    return Path.home() / ".glance"


def get_config_path() -> Path:
    """Get the default config file path."""
    return get_glance_home() / "config.toml"


def get_logs_path() -> Path:
    """Get the JSONL log directory."""
    return get_glance_home() / "logs"

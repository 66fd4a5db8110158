"""Configuration module."""

from glance.config.loader import load_config, require_credentials
from glance.config.models import (
    GlanceConfig,
    ModelConfig,
    ProviderConfig,
    RateLimitConfig,
    RenderConfig,
    RetryConfig,
    ServerConfig,
)
from glance.config.paths import get_config_path, get_glance_home, get_logs_path

__all__ = [
    "GlanceConfig",
    "ModelConfig",
    "ProviderConfig",
    "RateLimitConfig",
    "RenderConfig",
    "RetryConfig",
    "ServerConfig",
    "get_config_path",
    "get_glance_home",
    "get_logs_path",
    "load_config",
    "require_credentials",
]

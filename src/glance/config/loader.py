"""Configuration loading from TOML files and environment variables."""

import os
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import SecretStr
from pydantic import ValidationError as PydanticValidationError

from glance.config.models import PROVIDER_ENV_VARS, GlanceConfig
from glance.config.paths import get_config_path
from glance.errors import ConfigurationError

# (env var, config section, key) for numeric settings
INTEGER_ENV_VARS: list[tuple[str, str, str]] = [
    ("GEMINI_MAX_RETRIES", "retry", "max_attempts"),
    ("GEMINI_TIMEOUT", "retry", "timeout_ms"),
    ("PORT", "server", "port"),
    ("RATE_LIMIT_WINDOW", "rate_limit", "window_ms"),
    ("RATE_LIMIT_MAX", "rate_limit", "max_requests"),
]


def _get_default_config_paths() -> list[Path]:
    """Get ordered list of default config file locations."""
    return [
        Path("glance.toml"),  # Current directory
        get_config_path(),  # ~/.glance/config.toml (or GLANCE_HOME)
    ]


def _section(config: dict[str, Any], key: str) -> dict[str, Any]:
    section = config.get(key)
    if section is None:
        section = config[key] = {}
    return section


def _apply_env_overrides(
    config: dict[str, Any], environ: Mapping[str, str]
) -> list[str]:
    """Overlay environment variables onto raw config.

    Returns:
        One message per environment variable that could not be parsed.
    """
    errors: list[str] = []

    for provider, env_var in PROVIDER_ENV_VARS.items():
        value = environ.get(env_var)
        section = _section(config, provider)
        if value and section.get("api_key") is None:
            section["api_key"] = SecretStr(value)

    if endpoint := environ.get("GEMINI_API_ENDPOINT"):
        _section(config, "model").setdefault("api_endpoint", endpoint)

    for env_var, section_name, key in INTEGER_ENV_VARS:
        raw = environ.get(env_var)
        if raw is None or raw.strip() == "":
            continue
        try:
            _section(config, section_name)[key] = int(raw.strip(), 10)
        except ValueError:
            errors.append(f"Invalid integer value for {env_var}: {raw}")

    return errors


def _format_validation_error(error: PydanticValidationError) -> list[str]:
    messages = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"]) or "config"
        messages.append(f"{location}: {item['msg']}")
    return messages


def load_config(
    path: Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> GlanceConfig:
    """Load configuration from an optional TOML file plus the environment.

    Args:
        path: Explicit path to config file. If None, searches default
            locations and falls back to environment-only configuration.
        environ: Environment mapping (defaults to ``os.environ``).

    Returns:
        Validated, frozen GlanceConfig instance.

    Raises:
        ConfigurationError: If the file is missing or unreadable, or any
            setting is invalid. All problems are reported together.
    """
    environ = os.environ if environ is None else environ
    config_path: Path | None = None

    if path is not None:
        config_path = Path(path).expanduser()
        if not config_path.exists():
            raise ConfigurationError(f"Config file not found: {config_path}")
    else:
        for default_path in _get_default_config_paths():
            expanded = default_path.expanduser()
            if expanded.exists():
                config_path = expanded
                break

    raw_config: dict[str, Any] = {}
    if config_path is not None:
        try:
            with config_path.open("rb") as f:
                raw_config = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise ConfigurationError(
                f"Could not read config file {config_path}", details=str(e)
            ) from e

    errors: list[str] = []
    for key in GlanceConfig.model_fields:
        if key in raw_config and not isinstance(raw_config[key], dict):
            errors.append(f"{key}: must be a table")
            del raw_config[key]

    errors.extend(_apply_env_overrides(raw_config, environ))

    # Drop sections that only exist because no secret was found.
    for provider in PROVIDER_ENV_VARS:
        if raw_config.get(provider) == {}:
            del raw_config[provider]

    config: GlanceConfig | None = None
    try:
        config = GlanceConfig.model_validate(raw_config)
    except PydanticValidationError as e:
        errors.extend(_format_validation_error(e))

    if errors or config is None:
        raise ConfigurationError(
            "Invalid configuration", details="\n".join(errors) or None
        )
    return config


def require_credentials(config: GlanceConfig) -> SecretStr:
    """Return the provider API key or fail startup.

    Raises:
        ConfigurationError: If no key is configured for the provider.
    """
    api_key = config.resolve_api_key()
    if api_key is None or not api_key.get_secret_value():
        env_var = PROVIDER_ENV_VARS[config.model.provider]
        raise ConfigurationError(
            f"Missing required environment variable: {env_var}",
            details=f"Set {env_var} or [{config.model.provider}].api_key",
        )
    return api_key

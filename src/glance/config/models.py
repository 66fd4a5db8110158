"""Configuration models using Pydantic.

Configuration is loaded once at startup and frozen; components receive it
by reference and never mutate it.
"""

import os
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, SecretStr, model_validator

from glance.images.screenshot import (
    DEFAULT_MAX_CONCURRENT_RENDERS,
    DEFAULT_NAVIGATION_TIMEOUT_MS,
    DEFAULT_USER_AGENT,
)
from glance.llm.invoker import DEFAULT_MAX_OUTPUT_TOKENS, PLACEHOLDER_CONFIDENCE
from glance.llm.retry import RetryPolicy

PROVIDER_ENV_VARS = {
    "gemini": "GEMINI_API_KEY",
    "openai": "OPENAI_API_KEY",
}

DEFAULT_MODELS = {
    "gemini": "gemini-2.0-flash",
    "openai": "gpt-4o-mini",
}


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class ModelConfig(_Frozen):
    """Which vision model answers questions.

    ``placeholder_confidence`` is attached verbatim to every answer; it is
    not computed from the model output.
    """

    provider: Literal["gemini", "openai"] = "gemini"
    model: str | None = None  # None = provider default
    max_output_tokens: int = Field(default=DEFAULT_MAX_OUTPUT_TOKENS, ge=1, le=8192)
    placeholder_confidence: float | None = Field(
        default=PLACEHOLDER_CONFIDENCE, ge=0.0, le=1.0
    )
    api_endpoint: str | None = None

    @property
    def model_id(self) -> str:
        return self.model or DEFAULT_MODELS[self.provider]


class ProviderConfig(_Frozen):
    """Provider-level configuration."""

    api_key: SecretStr | None = None


class RetryConfig(_Frozen):
    """Retry behavior around model calls."""

    max_attempts: int = Field(default=3, ge=1)
    initial_delay_ms: int = Field(default=1000, ge=0)
    max_delay_ms: int = Field(default=10000, ge=0)
    backoff_multiplier: float = Field(default=2.0, ge=1.0)
    jitter_ms: int = Field(default=200, ge=0)
    # Checked after each call returns; slow calls are not interrupted.
    timeout_ms: int | None = Field(default=30000, ge=1)

    def to_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.max_attempts,
            initial_delay_ms=self.initial_delay_ms,
            max_delay_ms=self.max_delay_ms,
            backoff_multiplier=self.backoff_multiplier,
            jitter_ms=self.jitter_ms,
            timeout_ms=self.timeout_ms,
        )


class RenderConfig(_Frozen):
    """Headless browser settings for webpage screenshots."""

    max_concurrent_renders: int = Field(default=DEFAULT_MAX_CONCURRENT_RENDERS, ge=1)
    navigation_timeout_ms: int = Field(default=DEFAULT_NAVIGATION_TIMEOUT_MS, ge=1)
    user_agent: str = DEFAULT_USER_AGENT
    headless: bool = True


class ServerConfig(_Frozen):
    """Configuration for HTTP server."""

    host: str = "127.0.0.1"
    port: int = Field(default=7777, ge=1, le=65535)
    cors_origins: list[str] = ["*"]
    max_body_bytes: int = Field(default=10 * 1024 * 1024, ge=1)
    # Only enable behind a proxy that overwrites X-Forwarded-For.
    trust_forwarded_for: bool = False


class RateLimitConfig(_Frozen):
    """Fixed-window request limit per client."""

    enabled: bool = True
    window_ms: int = Field(default=900000, ge=1)
    max_requests: int = Field(default=100, ge=1)


class GlanceConfig(_Frozen):
    """Root configuration model."""

    model: ModelConfig = Field(default_factory=ModelConfig)
    gemini: ProviderConfig | None = None
    openai: ProviderConfig | None = None
    retry: RetryConfig = Field(default_factory=RetryConfig)
    render: RenderConfig = Field(default_factory=RenderConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)

    @model_validator(mode="after")
    def _validate_delays(self) -> "GlanceConfig":
        if self.retry.initial_delay_ms > self.retry.max_delay_ms:
            raise ValueError("retry.initial_delay_ms must not exceed retry.max_delay_ms")
        return self

    def resolve_api_key(self) -> SecretStr | None:
        """Resolve the API key for the configured provider.

        Resolution order:
        1. Provider-level config api_key
        2. Environment variable (GEMINI_API_KEY or OPENAI_API_KEY)
        """
        provider = self.model.provider
        section = self.gemini if provider == "gemini" else self.openai
        if section and section.api_key:
            return section.api_key

        env_value = os.environ.get(PROVIDER_ENV_VARS[provider])
        if env_value:
            return SecretStr(env_value)
        return None

"""Vision provider factory."""

from __future__ import annotations

from typing import Literal

from pydantic import SecretStr

from glance.llm.base import VisionProvider
from glance.llm.gemini import GeminiVisionProvider
from glance.llm.openai import OpenAIVisionProvider

ProviderName = Literal["gemini", "openai"]


def create_vision_provider(
    provider: ProviderName,
    api_key: str | SecretStr | None = None,
    *,
    base_url: str | None = None,
) -> VisionProvider:
    """Create a vision provider instance.

    Args:
        provider: Provider name.
        api_key: API key for the provider.
        base_url: Override for the provider API endpoint.

    Raises:
        ValueError: If provider name is unknown.
    """
    key = api_key.get_secret_value() if isinstance(api_key, SecretStr) else api_key

    if provider == "gemini":
        return GeminiVisionProvider(api_key=key, base_url=base_url)
    if provider == "openai":
        return OpenAIVisionProvider(api_key=key, base_url=base_url)

    raise ValueError(f"Unknown vision provider: {provider}")

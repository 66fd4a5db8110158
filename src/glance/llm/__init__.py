"""Vision model provider layer."""

from glance.llm.base import GenerationParams, VisionProvider
from glance.llm.registry import ProviderName, create_vision_provider
from glance.llm.retry import (
    AttemptTimeoutError,
    RetryExhaustedError,
    RetryPolicy,
    with_retry,
)

__all__ = [
    # Base
    "GenerationParams",
    "VisionProvider",
    # Registry
    "ProviderName",
    "create_vision_provider",
    # Retry
    "AttemptTimeoutError",
    "RetryExhaustedError",
    "RetryPolicy",
    "with_retry",
]

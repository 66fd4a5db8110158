"""Builds the multimodal prompt and calls the vision model with retries."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from glance.core.types import StageResult
from glance.errors import classify_provider_error, describe_error
from glance.images.types import ImageAsset
from glance.llm.base import GenerationParams, VisionProvider
from glance.llm.retry import RetryExhaustedError, RetryPolicy, with_retry

logger = logging.getLogger(__name__)

DEFAULT_MAX_OUTPUT_TOKENS = 1024

# Not a measured quantity: providers return no calibrated confidence, so
# every answer carries this constant unless configuration overrides it.
PLACEHOLDER_CONFIDENCE = 0.9

PROMPT_INSTRUCTION = "Please be concise and accurate in your response."


def build_prompt(question: str, context: str | None = None) -> str:
    prompt = f"Answer the following question about the image: {question}\n"
    if context:
        prompt += f"Context: {context}\n"
    return prompt + PROMPT_INSTRUCTION


@dataclass(frozen=True, slots=True)
class ModelAnswer:
    text: str
    model_id: str
    confidence: float | None


class ModelInvoker:
    """Calls one vision provider under a retry policy."""

    def __init__(
        self,
        *,
        provider: VisionProvider,
        model: str,
        retry_policy: RetryPolicy | None = None,
        default_max_tokens: int = DEFAULT_MAX_OUTPUT_TOKENS,
        placeholder_confidence: float | None = PLACEHOLDER_CONFIDENCE,
    ) -> None:
        self._provider = provider
        self._model = model
        self._retry_policy = retry_policy or RetryPolicy()
        self._default_max_tokens = default_max_tokens
        self._placeholder_confidence = placeholder_confidence

    @property
    def model(self) -> str:
        return self._model

    def generation_params(self, max_tokens: int | None = None) -> GenerationParams:
        return GenerationParams(max_output_tokens=max_tokens or self._default_max_tokens)

    async def invoke(
        self,
        *,
        question: str,
        image: ImageAsset,
        context: str | None = None,
        max_tokens: int | None = None,
    ) -> StageResult[ModelAnswer]:
        prompt = build_prompt(question, context)
        params = self.generation_params(max_tokens)

        async def call() -> str:
            try:
                return await self._provider.generate(
                    model=self._model,
                    prompt=prompt,
                    image=image,
                    params=params,
                )
            except Exception as e:
                raise classify_provider_error(e) from e

        logger.debug(
            "model_call_starting",
            extra={
                "provider": self._provider.name,
                "model": self._model,
                "mime_type": str(image.mime_type),
                "bytes": image.size_bytes,
            },
        )
        try:
            text = await with_retry(
                call,
                self._retry_policy,
                operation_name=f"{self._provider.name}.generate",
            )
        except RetryExhaustedError as e:
            return StageResult.failure(describe_error(e))

        return StageResult.success(
            ModelAnswer(
                text=text,
                model_id=self._model,
                confidence=self._placeholder_confidence,
            )
        )

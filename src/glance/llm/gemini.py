"""Google Gemini vision provider."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from google import genai
from google.genai import types

from glance.llm.base import GenerationParams, VisionProvider

if TYPE_CHECKING:
    from glance.images.types import ImageAsset

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.0-flash"


def _image_part(image: ImageAsset) -> types.Part:
    # The SDK base64-encodes inline bytes on the wire.
    return types.Part.from_bytes(data=image.data, mime_type=str(image.mime_type))


class GeminiVisionProvider(VisionProvider):
    """Gemini ``generate_content`` with an inline image part."""

    def __init__(self, api_key: str | None = None, *, base_url: str | None = None) -> None:
        http_options = types.HttpOptions(base_url=base_url) if base_url else None
        self._client = genai.Client(api_key=api_key, http_options=http_options)

    @property
    def name(self) -> str:
        return "gemini"

    def _build_config(self, params: GenerationParams) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            temperature=params.temperature,
            top_p=params.top_p,
            top_k=params.top_k,
            max_output_tokens=params.max_output_tokens,
        )

    async def generate(
        self,
        *,
        model: str,
        prompt: str,
        image: ImageAsset,
        params: GenerationParams,
    ) -> str:
        contents: list[Any] = [prompt, _image_part(image)]
        response = await self._client.aio.models.generate_content(
            model=model,
            contents=contents,
            config=self._build_config(params),
        )
        text = (response.text or "").strip()
        if not text:
            raise ValueError("gemini_empty_response")
        logger.debug("gemini_response", extra={"model": model, "chars": len(text)})
        return text

"""OpenAI-backed vision provider (Responses API)."""

from __future__ import annotations

import base64
from typing import TYPE_CHECKING, Any

import openai

from glance.llm.base import GenerationParams, VisionProvider

if TYPE_CHECKING:
    from glance.images.types import ImageAsset

DEFAULT_MODEL = "gpt-4o-mini"


def _extract_output_text(response: Any) -> str:
    parts: list[str] = []
    for item in getattr(response, "output", []) or []:
        if getattr(item, "type", None) != "message":
            continue
        for part in getattr(item, "content", []) or []:
            if getattr(part, "type", None) == "output_text":
                parts.append(part.text)
    return "\n".join(parts).strip()


def _image_url(image: ImageAsset) -> str:
    image_data = base64.b64encode(image.data).decode("ascii")
    return f"data:{image.mime_type};base64,{image_data}"


class OpenAIVisionProvider(VisionProvider):
    """OpenAI Responses API image question answering.

    The Responses API has no top-k control; ``params.top_k`` is ignored.
    """

    def __init__(self, api_key: str | None = None, *, base_url: str | None = None) -> None:
        self._client = openai.AsyncOpenAI(api_key=api_key, base_url=base_url)

    @property
    def name(self) -> str:
        return "openai"

    def _build_request_kwargs(
        self,
        *,
        model: str,
        prompt: str,
        image: ImageAsset,
        params: GenerationParams,
    ) -> dict[str, Any]:
        return {
            "model": model,
            "input": [
                {
                    "role": "user",
                    "content": [
                        {"type": "input_text", "text": prompt},
                        {"type": "input_image", "image_url": _image_url(image)},
                    ],
                }
            ],
            "temperature": params.temperature,
            "top_p": params.top_p,
            "max_output_tokens": params.max_output_tokens,
        }

    async def generate(
        self,
        *,
        model: str,
        prompt: str,
        image: ImageAsset,
        params: GenerationParams,
    ) -> str:
        kwargs = self._build_request_kwargs(
            model=model, prompt=prompt, image=image, params=params
        )
        response = await self._client.responses.create(**kwargs)
        text = _extract_output_text(response)
        if not text:
            raise ValueError("openai_empty_response")
        return text

"""Tests for vision providers and the provider registry."""

import base64
from types import SimpleNamespace
from typing import Any

import pytest
from pydantic import SecretStr

from conftest import PNG_BYTES

from glance.images.types import ImageAsset, ImageMimeType, ImageSourceKind
from glance.llm.base import GenerationParams
from glance.llm.gemini import GeminiVisionProvider
from glance.llm.openai import OpenAIVisionProvider, _extract_output_text
from glance.llm.registry import create_vision_provider


@pytest.fixture
def image() -> ImageAsset:
    return ImageAsset(
        data=PNG_BYTES,
        mime_type=ImageMimeType.PNG,
        source_kind=ImageSourceKind.SCREENSHOT,
    )


class RecordingCall:
    def __init__(self, response: Any):
        self.response = response
        self.kwargs: dict[str, Any] = {}

    async def __call__(self, **kwargs: Any) -> Any:
        self.kwargs = kwargs
        return self.response


class TestGeminiVisionProvider:
    def test_build_config(self):
        provider = GeminiVisionProvider(api_key="test-key")
        config = provider._build_config(GenerationParams(max_output_tokens=300))
        assert config.temperature == 0.4
        assert config.top_p == 0.8
        assert config.top_k == 40
        assert config.max_output_tokens == 300

    async def test_generate_sends_prompt_and_image(self, image):
        provider = GeminiVisionProvider(api_key="test-key")
        call = RecordingCall(SimpleNamespace(text="  red \n"))
        provider._client = SimpleNamespace(
            aio=SimpleNamespace(models=SimpleNamespace(generate_content=call))
        )

        text = await provider.generate(
            model="gemini-2.0-flash",
            prompt="What color?",
            image=image,
            params=GenerationParams(),
        )

        assert text == "red"
        assert call.kwargs["model"] == "gemini-2.0-flash"
        prompt, part = call.kwargs["contents"]
        assert prompt == "What color?"
        assert part.inline_data.data == PNG_BYTES
        assert part.inline_data.mime_type == "image/png"

    async def test_empty_response_raises(self, image):
        provider = GeminiVisionProvider(api_key="test-key")
        call = RecordingCall(SimpleNamespace(text=None))
        provider._client = SimpleNamespace(
            aio=SimpleNamespace(models=SimpleNamespace(generate_content=call))
        )
        with pytest.raises(ValueError, match="gemini_empty_response"):
            await provider.generate(
                model="m", prompt="p", image=image, params=GenerationParams()
            )


class TestOpenAIVisionProvider:
    def test_request_kwargs(self, image):
        provider = OpenAIVisionProvider(api_key="test-key")
        kwargs = provider._build_request_kwargs(
            model="gpt-4o-mini",
            prompt="What color?",
            image=image,
            params=GenerationParams(max_output_tokens=128),
        )

        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["temperature"] == 0.4
        assert kwargs["top_p"] == 0.8
        assert kwargs["max_output_tokens"] == 128
        assert "top_k" not in kwargs

        content = kwargs["input"][0]["content"]
        assert content[0] == {"type": "input_text", "text": "What color?"}
        expected_url = "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode()
        assert content[1] == {"type": "input_image", "image_url": expected_url}

    def test_extract_output_text(self):
        response = SimpleNamespace(
            output=[
                SimpleNamespace(type="reasoning", content=[]),
                SimpleNamespace(
                    type="message",
                    content=[
                        SimpleNamespace(type="output_text", text="It is "),
                        SimpleNamespace(type="refusal", text="ignored"),
                        SimpleNamespace(type="output_text", text="blue."),
                    ],
                ),
            ]
        )
        assert _extract_output_text(response) == "It is \nblue."

    async def test_generate(self, image):
        provider = OpenAIVisionProvider(api_key="test-key")
        response = SimpleNamespace(
            output=[
                SimpleNamespace(
                    type="message",
                    content=[SimpleNamespace(type="output_text", text="blue")],
                )
            ]
        )
        call = RecordingCall(response)
        provider._client = SimpleNamespace(responses=SimpleNamespace(create=call))

        text = await provider.generate(
            model="gpt-4o-mini", prompt="p", image=image, params=GenerationParams()
        )
        assert text == "blue"
        assert call.kwargs["model"] == "gpt-4o-mini"

    async def test_empty_response_raises(self, image):
        provider = OpenAIVisionProvider(api_key="test-key")
        call = RecordingCall(SimpleNamespace(output=[]))
        provider._client = SimpleNamespace(responses=SimpleNamespace(create=call))
        with pytest.raises(ValueError, match="openai_empty_response"):
            await provider.generate(
                model="m", prompt="p", image=image, params=GenerationParams()
            )


class TestRegistry:
    def test_gemini(self):
        provider = create_vision_provider("gemini", SecretStr("test-key"))
        assert isinstance(provider, GeminiVisionProvider)
        assert provider.name == "gemini"

    def test_openai(self):
        provider = create_vision_provider("openai", "test-key")
        assert isinstance(provider, OpenAIVisionProvider)
        assert provider.name == "openai"

    def test_unknown(self):
        with pytest.raises(ValueError, match="Unknown vision provider"):
            create_vision_provider("llava", "key")  # type: ignore[arg-type]

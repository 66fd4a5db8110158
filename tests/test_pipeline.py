"""End-to-end tests for the analysis pipeline with fake collaborators."""

from conftest import (
    JPEG_B64,
    PNG_B64,
    PNG_BYTES,
    SCREENSHOT_BYTES,
    FakeBrowser,
    FakeVisionProvider,
)

from glance.core.pipeline import create_pipeline
from glance.core.types import AnalysisRequest
from glance.errors import ErrorKind
from glance.images.types import ImageMimeType, InlineImageSource, WebpageSource


class TestInlineRequests:
    async def test_answers_question(self, pipeline, fake_provider):
        response = await pipeline.run(
            {"question": "What color is this?", "image": PNG_B64, "mimeType": "image/png"},
            request_id="req-1",
        )

        assert response.ok
        payload = response.to_dict()
        assert payload["answer"] == "red"
        assert payload["confidence"] == 0.9
        assert payload["modelUsed"] == "gemini-2.0-flash"
        assert payload["processingTimeMs"] >= 0

        image = fake_provider.calls[0]["image"]
        assert image.data == PNG_BYTES
        assert image.mime_type == ImageMimeType.PNG

    async def test_jpeg_answer_carries_placeholder_confidence(self, pipeline, fake_provider):
        response = await pipeline.run(
            {"question": "What color is the car?", "image": JPEG_B64}
        )

        payload = response.to_dict()
        assert payload["answer"] == "red"
        assert payload["confidence"] == 0.9
        assert fake_provider.calls[0]["image"].mime_type == ImageMimeType.JPEG

    async def test_analyze_prebuilt_request(self, pipeline):
        request = AnalysisRequest(
            question="What is shown?",
            image_source=InlineImageSource(data=f"data:image/png;base64,{PNG_B64}"),
            context="A test fixture",
        )
        response = await pipeline.analyze(request)
        assert response.result.answer == "red"

    async def test_context_reaches_prompt(self, pipeline, fake_provider):
        await pipeline.run(
            {"question": "Who?", "image": PNG_B64, "context": "A team photo"}
        )
        assert "Context: A team photo" in fake_provider.calls[0]["prompt"]


class TestWebpageRequests:
    async def test_screenshot_is_png(self, pipeline, fake_provider, fake_browser):
        response = await pipeline.run(
            {"question": "What is the headline?", "url": "https://example.com", "waitFor": 0}
        )

        assert response.ok
        image = fake_provider.calls[0]["image"]
        assert image.data == SCREENSHOT_BYTES
        assert image.mime_type == ImageMimeType.PNG
        assert fake_browser.launches == fake_browser.closes == 1

    async def test_browser_closed_when_provider_fails(self, config, fake_browser):
        provider = FakeVisionProvider([RuntimeError("upstream exploded")])
        pipeline = create_pipeline(
            config, provider=provider, launcher=fake_browser.launcher()
        )

        response = await pipeline.run(
            {"question": "Headline?", "url": "https://example.com", "waitFor": 0},
            request_id="req-9",
        )

        assert not response.ok
        assert response.error.kind == ErrorKind.PROVIDER
        assert response.error.request_id == "req-9"
        assert fake_browser.launches == fake_browser.closes == 1

    async def test_render_failure(self, config, fake_provider):
        from playwright.async_api import Error as PlaywrightError

        browser = FakeBrowser(goto_error=PlaywrightError("net::ERR_CONNECTION_REFUSED"))
        pipeline = create_pipeline(
            config, provider=fake_provider, launcher=browser.launcher()
        )

        response = await pipeline.analyze(
            AnalysisRequest(
                question="Headline?",
                image_source=WebpageSource(url="http://localhost:1"),
            )
        )

        assert response.error.code == "render_failed"
        assert response.http_status == 500
        assert fake_provider.calls == []
        assert browser.closes == 1


class TestFailures:
    async def test_validation_short_circuits(self, pipeline, fake_provider, fake_browser):
        response = await pipeline.run({"question": "", "url": "not a url"})

        assert response.http_status == 400
        assert response.error.code == "validation_failed"
        assert fake_provider.calls == []
        assert fake_browser.launches == 0

    async def test_missing_file(self, pipeline, fake_provider, tmp_path):
        response = await pipeline.run(
            {"question": "What?", "imagePath": str(tmp_path / "missing.png")}
        )
        assert response.error.code == "image_not_found"
        assert fake_provider.calls == []

    async def test_retries_exhausted(self, config, fake_browser):
        provider = FakeVisionProvider([RuntimeError("Quota exceeded")])
        pipeline = create_pipeline(
            config, provider=provider, launcher=fake_browser.launcher()
        )

        response = await pipeline.run({"question": "What?", "image": PNG_B64})

        assert len(provider.calls) == config.retry.max_attempts
        payload = response.to_dict()
        assert payload["code"] == "provider_quota"
        assert "after 3 attempt(s)" in payload["details"]

    async def test_unexpected_error_is_internal(self, pipeline, monkeypatch):
        async def explode(source):
            raise RuntimeError("bug")

        monkeypatch.setattr(pipeline._images, "acquire", explode)
        response = await pipeline.run({"question": "What?", "image": PNG_B64})

        assert response.error.kind == ErrorKind.INTERNAL
        assert response.to_dict()["error"] == "Internal server error"

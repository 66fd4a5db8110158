"""Shared test fixtures and fakes."""

import base64
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import pytest

from glance.config.models import GlanceConfig, ProviderConfig, RetryConfig
from glance.core.pipeline import AnalysisPipeline, create_pipeline
from glance.llm.base import GenerationParams

# 1x1 transparent PNG
PNG_B64 = (
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)
PNG_BYTES = base64.b64decode(PNG_B64)
JPEG_BYTES = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00fake-jpeg-body"
JPEG_B64 = base64.b64encode(JPEG_BYTES).decode("ascii")
SCREENSHOT_BYTES = b"\x89PNG\r\n\x1a\nfake-screenshot"


# =============================================================================
# Vision Provider Fakes
# =============================================================================


class FakeVisionProvider:
    """Vision provider that replays scripted answers and errors."""

    def __init__(self, outcomes: list[Any] | None = None, name: str = "fake"):
        self.outcomes = list(outcomes) if outcomes is not None else ["red"]
        self.calls: list[dict[str, Any]] = []
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    async def generate(
        self,
        *,
        model: str,
        prompt: str,
        image: Any,
        params: GenerationParams,
    ) -> str:
        self.calls.append(
            {"model": model, "prompt": prompt, "image": image, "params": params}
        )
        index = min(len(self.calls) - 1, len(self.outcomes) - 1)
        outcome = self.outcomes[index]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


# =============================================================================
# Browser Fakes
# =============================================================================


class FakePage:
    def __init__(self, browser: "FakeBrowser"):
        self._browser = browser

    async def goto(self, url: str, *, wait_until: str, timeout: int) -> None:
        self._browser.events.append(("goto", url, wait_until, timeout))
        if self._browser.goto_error is not None:
            raise self._browser.goto_error

    async def screenshot(self, *, type: str, full_page: bool) -> bytes:
        self._browser.events.append(("screenshot", type, full_page))
        if self._browser.screenshot_error is not None:
            raise self._browser.screenshot_error
        return self._browser.screenshot_bytes


class FakeContext:
    def __init__(self, browser: "FakeBrowser"):
        self._browser = browser

    async def new_page(self) -> FakePage:
        return FakePage(self._browser)


class FakeBrowser:
    def __init__(
        self,
        *,
        screenshot_bytes: bytes = SCREENSHOT_BYTES,
        goto_error: BaseException | None = None,
        screenshot_error: BaseException | None = None,
    ):
        self.screenshot_bytes = screenshot_bytes
        self.goto_error = goto_error
        self.screenshot_error = screenshot_error
        self.events: list[tuple[Any, ...]] = []
        self.launches = 0
        self.closes = 0
        self.context_kwargs: dict[str, Any] = {}

    async def new_context(self, **kwargs: Any) -> FakeContext:
        self.context_kwargs = kwargs
        return FakeContext(self)

    def launcher(self):
        @asynccontextmanager
        async def launch() -> AsyncIterator["FakeBrowser"]:
            self.launches += 1
            try:
                yield self
            finally:
                self.closes += 1

        return launch


# =============================================================================
# Configuration / Pipeline Fixtures
# =============================================================================


@pytest.fixture
def config() -> GlanceConfig:
    """Configuration with fast retries."""
    return GlanceConfig(
        gemini=ProviderConfig(api_key="test-key"),
        retry=RetryConfig(
            max_attempts=3,
            initial_delay_ms=1,
            max_delay_ms=5,
            jitter_ms=0,
        ),
    )


@pytest.fixture
def fake_provider() -> FakeVisionProvider:
    return FakeVisionProvider(["red"])


@pytest.fixture
def fake_browser() -> FakeBrowser:
    return FakeBrowser()


@pytest.fixture
def pipeline(
    config: GlanceConfig,
    fake_provider: FakeVisionProvider,
    fake_browser: FakeBrowser,
) -> AnalysisPipeline:
    return create_pipeline(
        config, provider=fake_provider, launcher=fake_browser.launcher()
    )


@pytest.fixture
def cli_runner():
    """Create a Typer CLI test runner with colors disabled."""
    from typer.testing import CliRunner

    return CliRunner(env={"NO_COLOR": "1"})

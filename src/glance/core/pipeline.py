"""Request-to-answer orchestration.

validate -> acquire image -> invoke model (with retries) -> assemble.
Each stage hands back a ``StageResult``; the first failure becomes the
error envelope and later stages never run.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any

from glance.core.types import (
    AnalysisRequest,
    AnalysisResponse,
    AnalysisResult,
    ErrorEnvelope,
)
from glance.core.validation import validate_payload, validate_request
from glance.errors import ErrorInfo, describe_error

if TYPE_CHECKING:
    from glance.config import GlanceConfig
    from glance.images.screenshot import BrowserLauncher
    from glance.images.service import ImageAcquisitionService
    from glance.llm.base import VisionProvider
    from glance.llm.invoker import ModelInvoker

logger = logging.getLogger(__name__)


class AnalysisPipeline:
    """Answers questions about images for one request at a time.

    Holds no per-request state, so one instance serves concurrent requests.
    """

    def __init__(
        self,
        *,
        images: ImageAcquisitionService,
        invoker: ModelInvoker,
    ) -> None:
        self._images = images
        self._invoker = invoker

    async def run(
        self,
        payload: Any,
        *,
        request_id: str | None = None,
        expected_source: str | None = None,
    ) -> AnalysisResponse:
        """Validate a raw request object and answer it."""
        started = time.monotonic()
        parsed = validate_payload(payload, expected_source=expected_source)
        if parsed.error is not None:
            return self._fail(parsed.error, request_id)
        return await self._answer(parsed.unwrap(), started, request_id)

    async def analyze(
        self,
        request: AnalysisRequest,
        *,
        request_id: str | None = None,
    ) -> AnalysisResponse:
        """Answer an already-built request."""
        started = time.monotonic()
        validation = validate_request(request)
        if not validation.valid:
            return self._fail(validation.to_error().to_info(), request_id)
        return await self._answer(request, started, request_id)

    async def _answer(
        self,
        request: AnalysisRequest,
        started: float,
        request_id: str | None,
    ) -> AnalysisResponse:
        try:
            acquired = await self._images.acquire(request.image_source)
            if acquired.error is not None:
                return self._fail(acquired.error, request_id)

            answered = await self._invoker.invoke(
                question=request.question,
                image=acquired.unwrap(),
                context=request.context,
                max_tokens=request.max_tokens,
            )
            if answered.error is not None:
                return self._fail(answered.error, request_id)
        except Exception as e:
            logger.exception("analysis_unexpected_error", extra={"request_id": request_id})
            return self._fail(describe_error(e), request_id)

        answer = answered.unwrap()
        elapsed_ms = int((time.monotonic() - started) * 1000)
        logger.info(
            "analysis_completed",
            extra={
                "request_id": request_id,
                "model": answer.model_id,
                "processing_time_ms": elapsed_ms,
            },
        )
        return AnalysisResponse(
            result=AnalysisResult(
                answer=answer.text,
                confidence=answer.confidence,
                processing_time_ms=elapsed_ms,
                model_id=answer.model_id,
            )
        )

    def _fail(self, error: ErrorInfo, request_id: str | None) -> AnalysisResponse:
        logger.info(
            "analysis_failed",
            extra={"request_id": request_id, "code": error.code},
        )
        return AnalysisResponse(
            error=ErrorEnvelope.from_info(error, request_id=request_id)
        )


def create_pipeline(
    config: GlanceConfig,
    *,
    provider: VisionProvider | None = None,
    launcher: BrowserLauncher | None = None,
) -> AnalysisPipeline:
    """Wire a pipeline from configuration.

    Args:
        config: Loaded configuration.
        provider: Vision provider override; built from config when omitted.
        launcher: Browser launcher override for screenshots.
    """
    from glance.images.screenshot import WebpageScreenshotter, chromium_launcher
    from glance.images.service import ImageAcquisitionService
    from glance.llm.invoker import ModelInvoker
    from glance.llm.registry import create_vision_provider

    if provider is None:
        provider = create_vision_provider(
            config.model.provider,
            config.resolve_api_key(),
            base_url=config.model.api_endpoint,
        )

    screenshotter = WebpageScreenshotter(
        launcher=launcher or chromium_launcher(headless=config.render.headless),
        max_concurrent_renders=config.render.max_concurrent_renders,
        navigation_timeout_ms=config.render.navigation_timeout_ms,
        user_agent=config.render.user_agent,
    )
    invoker = ModelInvoker(
        provider=provider,
        model=config.model.model_id,
        retry_policy=config.retry.to_policy(),
        default_max_tokens=config.model.max_output_tokens,
        placeholder_confidence=config.model.placeholder_confidence,
    )
    return AnalysisPipeline(
        images=ImageAcquisitionService(screenshot=screenshotter),
        invoker=invoker,
    )

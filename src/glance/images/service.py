"""Image acquisition dispatch."""

from __future__ import annotations

import logging

from glance.core.types import StageResult
from glance.errors import GlanceError
from glance.images.base import ImageSourceStrategy
from glance.images.file import FileImageReader
from glance.images.inline import InlineImageDecoder
from glance.images.screenshot import WebpageScreenshotter
from glance.images.types import (
    FileImageSource,
    ImageAsset,
    ImageSource,
    InlineImageSource,
    WebpageSource,
)

logger = logging.getLogger(__name__)


class ImageAcquisitionService:
    """Picks the strategy for a source and reports the outcome as a ``StageResult``."""

    def __init__(
        self,
        *,
        inline: ImageSourceStrategy[InlineImageSource] | None = None,
        file: ImageSourceStrategy[FileImageSource] | None = None,
        screenshot: ImageSourceStrategy[WebpageSource] | None = None,
    ) -> None:
        self._inline: ImageSourceStrategy[InlineImageSource] = (
            inline or InlineImageDecoder()
        )
        self._file: ImageSourceStrategy[FileImageSource] = file or FileImageReader()
        self._screenshot: ImageSourceStrategy[WebpageSource] = (
            screenshot or WebpageScreenshotter()
        )

    async def acquire(self, source: ImageSource) -> StageResult[ImageAsset]:
        try:
            match source:
                case InlineImageSource():
                    asset = await self._inline.acquire(source)
                case FileImageSource():
                    asset = await self._file.acquire(source)
                case WebpageSource():
                    asset = await self._screenshot.acquire(source)
                case _:
                    raise TypeError(f"unsupported image source: {type(source).__name__}")
        except GlanceError as e:
            logger.warning(
                "image_acquisition_failed",
                extra={"code": e.code, "error.message": e.message},
            )
            return StageResult.failure(e.to_info())

        logger.debug(
            "image_acquired",
            extra={
                "source": str(asset.source_kind),
                "bytes": asset.size_bytes,
                "mime_type": str(asset.mime_type),
            },
        )
        return StageResult.success(asset)

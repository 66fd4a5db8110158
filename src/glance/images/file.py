"""Local image file reader."""

from __future__ import annotations

import logging
from pathlib import Path

import aiofiles
import aiofiles.os

from glance.errors import AcquisitionFailure, ImageAcquisitionError
from glance.images.types import (
    FileImageSource,
    ImageAsset,
    ImageSourceKind,
    mime_type_for_path,
)

logger = logging.getLogger(__name__)


class FileImageReader:
    """Reads an image from the local filesystem."""

    async def acquire(self, source: FileImageSource) -> ImageAsset:
        path = Path(source.path).expanduser()

        if not await aiofiles.os.path.isfile(path):
            raise ImageAcquisitionError(
                AcquisitionFailure.NOT_FOUND,
                f"Image file not found: {source.path}",
            )

        try:
            async with aiofiles.open(path, "rb") as f:
                data = await f.read()
        except OSError as e:
            raise ImageAcquisitionError(
                AcquisitionFailure.READ_FAILURE,
                f"Failed to read image file: {source.path}",
                details=f"{type(e).__name__}: {e}",
            ) from e

        if not data:
            raise ImageAcquisitionError(
                AcquisitionFailure.READ_FAILURE,
                f"Image file is empty: {source.path}",
            )

        mime_type = mime_type_for_path(path)
        logger.debug(
            "image_file_loaded",
            extra={"bytes": len(data), "mime_type": str(mime_type)},
        )
        return ImageAsset(
            data=data,
            mime_type=mime_type,
            source_kind=ImageSourceKind.FILE,
        )

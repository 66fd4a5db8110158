"""Inline base64 image decoding."""

from __future__ import annotations

import base64
import binascii
import logging
import re

from glance.errors import AcquisitionFailure, ImageAcquisitionError
from glance.images.types import (
    ImageAsset,
    ImageMimeType,
    ImageSourceKind,
    InlineImageSource,
    normalize_mime_type,
)

logger = logging.getLogger(__name__)

DATA_URL_PATTERN = re.compile(r"^data:image/([a-zA-Z0-9.+-]+);base64,", re.IGNORECASE)


def split_data_url(data: str) -> tuple[str | None, str]:
    """Split an optional ``data:image/<type>;base64,`` prefix from the payload.

    Returns:
        Tuple of (declared image subtype or None, base64 payload).
    """
    match = DATA_URL_PATTERN.match(data)
    if match is None:
        return None, data
    return match.group(1), data[match.end() :]


class InlineImageDecoder:
    """Decodes base64 image data supplied directly in the request."""

    async def acquire(self, source: InlineImageSource) -> ImageAsset:
        declared, payload = split_data_url(source.data.strip())
        # Line breaks are common in wrapped base64.
        payload = "".join(payload.split())

        try:
            data = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ImageAcquisitionError(
                AcquisitionFailure.DECODE_FAILURE,
                "Image data is not valid base64",
                details=str(e),
            ) from e
        if not data:
            raise ImageAcquisitionError(
                AcquisitionFailure.DECODE_FAILURE,
                "Image data is empty",
            )

        mime_type = normalize_mime_type(source.mime_type or declared)
        if mime_type is None:
            if source.mime_type or declared:
                logger.warning(
                    "inline_image_unknown_mime",
                    extra={"declared": source.mime_type or declared},
                )
            mime_type = ImageMimeType.JPEG

        return ImageAsset(
            data=data,
            mime_type=mime_type,
            source_kind=ImageSourceKind.INLINE,
        )

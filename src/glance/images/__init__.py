"""Image acquisition subsystem."""

from glance.images.file import FileImageReader
from glance.images.inline import InlineImageDecoder
from glance.images.screenshot import WebpageScreenshotter, chromium_launcher
from glance.images.service import ImageAcquisitionService
from glance.images.types import (
    FileImageSource,
    ImageAsset,
    ImageMimeType,
    ImageSource,
    ImageSourceKind,
    InlineImageSource,
    WebpageSource,
)

__all__ = [
    "FileImageReader",
    "ImageAcquisitionService",
    "InlineImageDecoder",
    "WebpageScreenshotter",
    "chromium_launcher",
    "FileImageSource",
    "ImageAsset",
    "ImageMimeType",
    "ImageSource",
    "ImageSourceKind",
    "InlineImageSource",
    "WebpageSource",
]

"""Types for image acquisition."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from pathlib import PurePath

DEFAULT_WAIT_FOR_MS = 3000
DEFAULT_VIEWPORT_WIDTH = 1280
DEFAULT_VIEWPORT_HEIGHT = 720


class ImageMimeType(StrEnum):
    JPEG = "image/jpeg"
    PNG = "image/png"
    GIF = "image/gif"
    WEBP = "image/webp"


class ImageSourceKind(StrEnum):
    INLINE = "inline"
    FILE = "file"
    SCREENSHOT = "screenshot"


EXTENSION_MIME_TYPES: dict[str, ImageMimeType] = {
    ".jpg": ImageMimeType.JPEG,
    ".jpeg": ImageMimeType.JPEG,
    ".png": ImageMimeType.PNG,
    ".gif": ImageMimeType.GIF,
    ".webp": ImageMimeType.WEBP,
}


def mime_type_for_path(path: str | PurePath) -> ImageMimeType:
    """Map a file extension to a mime type, defaulting to JPEG."""
    suffix = PurePath(path).suffix.lower()
    return EXTENSION_MIME_TYPES.get(suffix, ImageMimeType.JPEG)


def normalize_mime_type(declared: str | None) -> ImageMimeType | None:
    """Resolve a declared type (``png``, ``image/jpg``...) to a known mime type."""
    if not declared:
        return None
    value = declared.strip().lower()
    if not value.startswith("image/"):
        value = f"image/{value}"
    if value == "image/jpg":
        value = "image/jpeg"
    try:
        return ImageMimeType(value)
    except ValueError:
        return None


@dataclass(frozen=True, slots=True)
class ImageAsset:
    """Raw image bytes ready to hand to a vision model.

    Built fresh for every request and never cached.
    """

    data: bytes
    mime_type: ImageMimeType
    source_kind: ImageSourceKind

    def __post_init__(self) -> None:
        if not self.data:
            raise ValueError("image asset must not be empty")

    @property
    def size_bytes(self) -> int:
        return len(self.data)


@dataclass(frozen=True, slots=True)
class InlineImageSource:
    """Base64 image data, optionally prefixed with a data URL header."""

    data: str
    mime_type: str | None = None


@dataclass(frozen=True, slots=True)
class FileImageSource:
    """Image file on the local filesystem."""

    path: str


@dataclass(frozen=True, slots=True)
class WebpageSource:
    """Web page to render and screenshot."""

    url: str
    wait_for_ms: int = DEFAULT_WAIT_FOR_MS
    viewport_width: int = DEFAULT_VIEWPORT_WIDTH
    viewport_height: int = DEFAULT_VIEWPORT_HEIGHT
    full_page: bool = False


ImageSource = InlineImageSource | FileImageSource | WebpageSource

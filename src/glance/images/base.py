"""Image source strategy interface."""

from __future__ import annotations

from typing import Protocol

from glance.images.types import ImageAsset


class ImageSourceStrategy[S](Protocol):
    """Strategy contract for turning one kind of source into an image."""

    async def acquire(self, source: S) -> ImageAsset:
        """Produce an image asset or raise ``ImageAcquisitionError``."""
        ...

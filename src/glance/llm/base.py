"""Vision provider interface."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from glance.images.types import ImageAsset


@dataclass(frozen=True, slots=True)
class GenerationParams:
    """Sampling parameters sent with every model call.

    Kept low-temperature so repeated questions get stable answers.
    """

    temperature: float = 0.4
    top_p: float = 0.8
    top_k: int = 40
    max_output_tokens: int = 1024


class VisionProvider(Protocol):
    """Provider contract for answering a prompt about one image."""

    @property
    def name(self) -> str:
        """Stable provider name."""
        ...

    async def generate(
        self,
        *,
        model: str,
        prompt: str,
        image: ImageAsset,
        params: GenerationParams,
    ) -> str:
        """Return the model's plain-text answer."""
        ...

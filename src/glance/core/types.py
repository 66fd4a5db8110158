"""Core request, result and envelope types."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from glance.errors import ErrorInfo, ErrorKind

if TYPE_CHECKING:
    from glance.images.types import ImageSource


def utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True)
class AnalysisRequest:
    """A question about exactly one image source."""

    question: str
    image_source: ImageSource
    context: str | None = None
    max_tokens: int | None = None


@dataclass(frozen=True, slots=True)
class StageResult[T]:
    """Outcome of one pipeline stage: a value or an error, never both."""

    value: T | None = None
    error: ErrorInfo | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> StageResult[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, error: ErrorInfo) -> StageResult[T]:
        return cls(error=error)

    def unwrap(self) -> T:
        if self.error is not None or self.value is None:
            raise RuntimeError("unwrap() called on a failed stage result")
        return self.value


@dataclass(frozen=True, slots=True)
class AnalysisResult:
    """Successful answer.

    ``confidence`` is a fixed placeholder supplied by configuration; the
    providers do not return a calibrated score.
    """

    answer: str
    confidence: float | None
    processing_time_ms: int
    model_id: str

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"answer": self.answer}
        if self.confidence is not None:
            payload["confidence"] = self.confidence
        payload["processingTimeMs"] = self.processing_time_ms
        payload["modelUsed"] = self.model_id
        return payload


@dataclass(frozen=True, slots=True)
class ErrorEnvelope:
    """Failure response returned to callers."""

    kind: ErrorKind
    code: str
    message: str
    details: str | None = None
    timestamp: datetime | None = None
    request_id: str | None = None

    @classmethod
    def from_info(
        cls, info: ErrorInfo, *, request_id: str | None = None
    ) -> ErrorEnvelope:
        return cls(
            kind=info.kind,
            code=info.code,
            message=info.message,
            details=info.details,
            timestamp=utc_now(),
            request_id=request_id,
        )

    @property
    def http_status(self) -> int:
        if self.kind == ErrorKind.VALIDATION:
            return 400
        if self.kind == ErrorKind.RATE_LIMITED:
            return 429
        return 500

    def to_dict(self) -> dict[str, Any]:
        timestamp = self.timestamp or utc_now()
        payload: dict[str, Any] = {
            "error": self.message,
            "code": self.code,
        }
        if self.details:
            payload["details"] = self.details
        payload["timestamp"] = timestamp.isoformat().replace("+00:00", "Z")
        if self.request_id:
            payload["requestId"] = self.request_id
        return payload


@dataclass(frozen=True, slots=True)
class AnalysisResponse:
    """What the pipeline hands back: a result or an error envelope."""

    result: AnalysisResult | None = None
    error: ErrorEnvelope | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def http_status(self) -> int:
        return 200 if self.error is None else self.error.http_status

    def to_dict(self) -> dict[str, Any]:
        if self.error is not None:
            return self.error.to_dict()
        assert self.result is not None
        return self.result.to_dict()

"""Error taxonomy and mapping of failures to stable error codes.

Every failure the pipeline can produce is described by an ``ErrorInfo``:
a kind, a stable machine-readable code, a human message and optional
details carrying the original cause. Stages raise ``GlanceError``
subclasses internally; ``describe_error`` converts anything raised into
an ``ErrorInfo`` at stage boundaries.
"""

from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass
from enum import StrEnum

from glance.llm.retry import AttemptTimeoutError, RetryExhaustedError


class ErrorKind(StrEnum):
    VALIDATION = "validation_error"
    IMAGE_ACQUISITION = "image_acquisition_error"
    PROVIDER = "provider_error"
    CONFIGURATION = "configuration_error"
    RATE_LIMITED = "rate_limited"
    INTERNAL = "internal_error"


class AcquisitionFailure(StrEnum):
    NOT_FOUND = "not-found"
    READ_FAILURE = "read-failure"
    DECODE_FAILURE = "decode-failure"
    RENDER_TIMEOUT = "render-timeout"
    RENDER_FAILURE = "render-failure"


class ProviderFailure(StrEnum):
    AUTH = "auth"
    QUOTA = "quota"
    TIMEOUT = "timeout"
    UNKNOWN = "unknown"


_ACQUISITION_CODES: dict[AcquisitionFailure, str] = {
    AcquisitionFailure.NOT_FOUND: "image_not_found",
    AcquisitionFailure.READ_FAILURE: "image_read_failed",
    AcquisitionFailure.DECODE_FAILURE: "image_decode_failed",
    AcquisitionFailure.RENDER_TIMEOUT: "render_timeout",
    AcquisitionFailure.RENDER_FAILURE: "render_failed",
}

_PROVIDER_CODES: dict[ProviderFailure, str] = {
    ProviderFailure.AUTH: "provider_auth",
    ProviderFailure.QUOTA: "provider_quota",
    ProviderFailure.TIMEOUT: "provider_timeout",
    ProviderFailure.UNKNOWN: "provider_error",
}


@dataclass(frozen=True, slots=True)
class ErrorInfo:
    """Normalized description of a failure."""

    kind: ErrorKind
    code: str
    message: str
    details: str | None = None


class GlanceError(Exception):
    """Base class for typed pipeline failures."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str, *, details: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    @property
    def code(self) -> str:
        return "internal_error"

    def to_info(self) -> ErrorInfo:
        return ErrorInfo(
            kind=self.kind,
            code=self.code,
            message=self.message,
            details=self.details,
        )


class ValidationError(GlanceError):
    """Client input is malformed. Raised before any I/O happens."""

    kind = ErrorKind.VALIDATION

    def __init__(self, message: str, *, violations: list[str] | None = None) -> None:
        self.violations = list(violations or [])
        super().__init__(message, details="; ".join(self.violations) or None)

    @property
    def code(self) -> str:
        return "validation_failed"


class ImageAcquisitionError(GlanceError):
    """An image could not be decoded, read or rendered."""

    kind = ErrorKind.IMAGE_ACQUISITION

    def __init__(
        self,
        reason: AcquisitionFailure,
        message: str,
        *,
        details: str | None = None,
    ) -> None:
        super().__init__(message, details=details)
        self.reason = reason

    @property
    def code(self) -> str:
        return _ACQUISITION_CODES[self.reason]


class ProviderError(GlanceError):
    """The vision model provider failed or returned nothing usable."""

    kind = ErrorKind.PROVIDER

    def __init__(
        self,
        reason: ProviderFailure,
        message: str,
        *,
        details: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, details=details)
        self.reason = reason
        self.status_code = status_code

    @property
    def code(self) -> str:
        return _PROVIDER_CODES[self.reason]


class ConfigurationError(GlanceError):
    """Startup configuration is missing or invalid. Fatal."""

    kind = ErrorKind.CONFIGURATION

    @property
    def code(self) -> str:
        return "configuration_error"


AUTH_PATTERN = re.compile(
    r"api.?key|unauthori[sz]ed|unauthenticated|permission.?denied|forbidden|"
    r"invalid.?credentials|\b401\b|\b403\b",
    re.IGNORECASE,
)
QUOTA_PATTERN = re.compile(
    r"quota|rate.?limit|too many requests|resource.?exhausted|\b429\b",
    re.IGNORECASE,
)
TIMEOUT_PATTERN = re.compile(
    r"timed?.?out|deadline.?exceeded|\b408\b|\b504\b",
    re.IGNORECASE,
)


def _status_code_of(error: BaseException) -> int | None:
    # openai exposes status_code, google-genai exposes code
    for attr in ("status_code", "code"):
        value = getattr(error, attr, None)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return None


def classify_provider_error(error: BaseException) -> ProviderError:
    """Map an exception raised by a provider SDK onto a ``ProviderError``."""
    if isinstance(error, ProviderError):
        return error

    status_code = _status_code_of(error)
    error_text = str(error) or type(error).__name__
    details = f"{type(error).__name__}: {error_text}"

    reason = ProviderFailure.UNKNOWN
    if status_code in (401, 403):
        reason = ProviderFailure.AUTH
    elif status_code == 429:
        reason = ProviderFailure.QUOTA
    elif status_code in (408, 504):
        reason = ProviderFailure.TIMEOUT
    elif isinstance(error, (TimeoutError, asyncio.TimeoutError)):
        reason = ProviderFailure.TIMEOUT
    elif "timeout" in type(error).__name__.lower():
        reason = ProviderFailure.TIMEOUT
    elif AUTH_PATTERN.search(error_text):
        reason = ProviderFailure.AUTH
    elif QUOTA_PATTERN.search(error_text):
        reason = ProviderFailure.QUOTA
    elif TIMEOUT_PATTERN.search(error_text):
        reason = ProviderFailure.TIMEOUT

    messages = {
        ProviderFailure.AUTH: "Vision provider rejected the credentials",
        ProviderFailure.QUOTA: "Vision provider quota or rate limit exceeded",
        ProviderFailure.TIMEOUT: "Vision provider did not respond in time",
        ProviderFailure.UNKNOWN: "Failed to analyze image with the vision provider",
    }
    return ProviderError(
        reason,
        messages[reason],
        details=details,
        status_code=status_code,
    )


def describe_error(error: BaseException) -> ErrorInfo:
    """Describe any exception as an ``ErrorInfo``.

    ``RetryExhaustedError`` is unwrapped to its last cause, with the
    attempt count added to the details.
    """
    if isinstance(error, RetryExhaustedError):
        info = describe_error(error.last_error)
        suffix = f"after {error.attempts} attempt(s)"
        details = f"{info.details} ({suffix})" if info.details else suffix
        return ErrorInfo(
            kind=info.kind,
            code=info.code,
            message=info.message,
            details=details,
        )
    if isinstance(error, GlanceError):
        return error.to_info()
    if isinstance(error, AttemptTimeoutError):
        return classify_provider_error(error).to_info()
    return ErrorInfo(
        kind=ErrorKind.INTERNAL,
        code="internal_error",
        message="Internal server error",
        details=type(error).__name__,
    )

"""Request validation.

Checks never stop at the first problem: every rule is evaluated and all
violations are returned together, so a caller with several mistakes
sees them all in one response.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlparse

from glance.core.types import AnalysisRequest, StageResult
from glance.errors import ValidationError
from glance.images.inline import split_data_url
from glance.images.types import (
    DEFAULT_VIEWPORT_HEIGHT,
    DEFAULT_VIEWPORT_WIDTH,
    DEFAULT_WAIT_FOR_MS,
    FileImageSource,
    ImageSource,
    InlineImageSource,
    WebpageSource,
)

MAX_QUESTION_CHARS = 1000
MAX_CONTEXT_CHARS = 2000
MIN_MAX_TOKENS = 1
MAX_MAX_TOKENS = 2048
MAX_WAIT_FOR_MS = 60000
MAX_VIEWPORT_DIMENSION = 8192

BASE64_PATTERN = re.compile(r"^[A-Za-z0-9+/]+={0,2}$")

# Payload keys that select an image source, mapped to the source they build.
SOURCE_KEYS: dict[str, type] = {
    "image": InlineImageSource,
    "imagePath": FileImageSource,
    "url": WebpageSource,
}


@dataclass(frozen=True, slots=True)
class Violation:
    field: str
    code: str
    message: str

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


@dataclass(frozen=True, slots=True)
class ValidationResult:
    violations: tuple[Violation, ...] = ()

    @property
    def valid(self) -> bool:
        return not self.violations

    def merge(self, *others: ValidationResult) -> ValidationResult:
        violations = list(self.violations)
        for other in others:
            violations.extend(other.violations)
        return ValidationResult(tuple(violations))

    def to_error(self) -> ValidationError:
        return ValidationError(
            "Invalid input",
            violations=[str(v) for v in self.violations],
        )


def _fail(field: str, code: str, message: str) -> ValidationResult:
    return ValidationResult((Violation(field, code, message),))


OK = ValidationResult()


def validate_question(text: Any) -> ValidationResult:
    if not isinstance(text, str):
        return _fail("question", "invalid_type", "must be a string")
    if not text.strip():
        return _fail("question", "required", "must not be empty")
    if len(text) > MAX_QUESTION_CHARS:
        return _fail(
            "question",
            "too_long",
            f"must be at most {MAX_QUESTION_CHARS} characters",
        )
    return OK


def validate_context(text: Any) -> ValidationResult:
    if text is None:
        return OK
    if not isinstance(text, str):
        return _fail("context", "invalid_type", "must be a string")
    if len(text) > MAX_CONTEXT_CHARS:
        return _fail(
            "context",
            "too_long",
            f"must be at most {MAX_CONTEXT_CHARS} characters",
        )
    return OK


def validate_max_tokens(value: Any) -> ValidationResult:
    if value is None:
        return OK
    if isinstance(value, bool) or not isinstance(value, int | float):
        return _fail("maxTokens", "invalid_type", "must be a number")
    if isinstance(value, float) and not value.is_integer():
        return _fail("maxTokens", "invalid_type", "must be a whole number")
    if not MIN_MAX_TOKENS <= value <= MAX_MAX_TOKENS:
        return _fail(
            "maxTokens",
            "out_of_range",
            f"must be between {MIN_MAX_TOKENS} and {MAX_MAX_TOKENS}",
        )
    return OK


def _is_base64_image(data: str) -> bool:
    _, payload = split_data_url(data.strip())
    payload = "".join(payload.split())
    return bool(BASE64_PATTERN.match(payload))


def _validate_webpage(source: WebpageSource) -> ValidationResult:
    result = OK
    parsed = urlparse(source.url)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        result = result.merge(
            _fail("url", "invalid_url", "must be an absolute http(s) URL")
        )
    if not 0 <= source.wait_for_ms <= MAX_WAIT_FOR_MS:
        result = result.merge(
            _fail(
                "waitFor",
                "out_of_range",
                f"must be between 0 and {MAX_WAIT_FOR_MS} ms",
            )
        )
    for name, value in (
        ("viewportWidth", source.viewport_width),
        ("viewportHeight", source.viewport_height),
    ):
        if not 1 <= value <= MAX_VIEWPORT_DIMENSION:
            result = result.merge(
                _fail(
                    name,
                    "out_of_range",
                    f"must be between 1 and {MAX_VIEWPORT_DIMENSION}",
                )
            )
    return result


def validate_image_source(source: ImageSource | None) -> ValidationResult:
    match source:
        case None:
            return _fail(
                "image",
                "required",
                "one of image, imagePath or url is required",
            )
        case InlineImageSource(data=data):
            if not data or not _is_base64_image(data):
                return _fail("image", "invalid_image", "must be base64 encoded image data")
            return OK
        case FileImageSource(path=path):
            if not path.strip():
                return _fail("imagePath", "required", "must not be empty")
            return OK
        case WebpageSource():
            return _validate_webpage(source)
    return _fail("image", "invalid_type", "unsupported image source")


def validate_request(request: AnalysisRequest) -> ValidationResult:
    return validate_question(request.question).merge(
        validate_image_source(request.image_source),
        validate_context(request.context),
        validate_max_tokens(request.max_tokens),
    )


def _optional_int(
    payload: Mapping[str, Any], key: str, default: int, problems: list[Violation]
) -> int:
    value = payload.get(key)
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int | float):
        problems.append(Violation(key, "invalid_type", "must be a number"))
        return default
    if isinstance(value, float) and not value.is_integer():
        problems.append(Violation(key, "invalid_type", "must be a whole number"))
        return default
    return int(value)


def _build_source(
    payload: Mapping[str, Any], key: str, problems: list[Violation]
) -> ImageSource | None:
    value = payload.get(key)
    if not isinstance(value, str):
        problems.append(Violation(key, "invalid_type", "must be a string"))
        return None

    if key == "image":
        mime_type = payload.get("mimeType")
        if mime_type is not None and not isinstance(mime_type, str):
            problems.append(Violation("mimeType", "invalid_type", "must be a string"))
            mime_type = None
        return InlineImageSource(data=value, mime_type=mime_type)
    if key == "imagePath":
        return FileImageSource(path=value)

    full_page = payload.get("fullPage", False)
    if not isinstance(full_page, bool):
        problems.append(Violation("fullPage", "invalid_type", "must be a boolean"))
        full_page = False
    return WebpageSource(
        url=value,
        wait_for_ms=_optional_int(payload, "waitFor", DEFAULT_WAIT_FOR_MS, problems),
        viewport_width=_optional_int(
            payload, "viewportWidth", DEFAULT_VIEWPORT_WIDTH, problems
        ),
        viewport_height=_optional_int(
            payload, "viewportHeight", DEFAULT_VIEWPORT_HEIGHT, problems
        ),
        full_page=full_page,
    )


def validate_payload(
    payload: Any,
    *,
    expected_source: str | None = None,
) -> StageResult[AnalysisRequest]:
    """Parse and validate a raw request object.

    Args:
        payload: Decoded JSON body or tool-call arguments.
        expected_source: Restrict the request to one source key
            (``image``, ``imagePath`` or ``url``).

    Returns:
        The request, or a ``validation_error`` listing every violation.
    """
    if not isinstance(payload, Mapping):
        error = ValidationError(
            "Invalid input", violations=["body: must be a JSON object"]
        )
        return StageResult.failure(error.to_info())

    problems: list[Violation] = []
    present = [key for key in SOURCE_KEYS if payload.get(key) is not None]

    if expected_source is not None:
        for key in present:
            if key != expected_source:
                problems.append(
                    Violation(key, "not_allowed", f"not accepted here, use {expected_source}")
                )
        present = [key for key in present if key == expected_source]

    source: ImageSource | None = None
    if len(present) > 1:
        problems.append(
            Violation(
                "image",
                "ambiguous_source",
                "only one of image, imagePath or url may be given",
            )
        )
    elif present:
        source = _build_source(payload, present[0], problems)

    question = payload.get("question")
    context = payload.get("context")
    max_tokens = payload.get("maxTokens")

    result = ValidationResult(tuple(problems)).merge(
        validate_question(question),
        validate_context(context),
        validate_max_tokens(max_tokens),
    )
    # Ambiguity and type problems already explain a missing source.
    if source is not None or not problems:
        result = result.merge(validate_image_source(source))

    if not result.valid:
        return StageResult.failure(result.to_error().to_info())

    assert source is not None
    return StageResult.success(
        AnalysisRequest(
            question=question,
            image_source=source,
            context=context,
            max_tokens=None if max_tokens is None else int(max_tokens),
        )
    )

"""Core request pipeline."""

from glance.core.pipeline import AnalysisPipeline
from glance.core.types import (
    AnalysisRequest,
    AnalysisResponse,
    AnalysisResult,
    ErrorEnvelope,
    StageResult,
)
from glance.core.validation import (
    ValidationResult,
    Violation,
    validate_context,
    validate_image_source,
    validate_max_tokens,
    validate_payload,
    validate_question,
    validate_request,
)

__all__ = [
    "AnalysisPipeline",
    "AnalysisRequest",
    "AnalysisResponse",
    "AnalysisResult",
    "ErrorEnvelope",
    "StageResult",
    "ValidationResult",
    "Violation",
    "validate_context",
    "validate_image_source",
    "validate_max_tokens",
    "validate_payload",
    "validate_question",
    "validate_request",
]

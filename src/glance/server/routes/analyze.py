"""Analysis routes and MCP-style tool endpoints."""

import json
import logging
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from glance.core.types import AnalysisResponse, ErrorEnvelope
from glance.core.validation import (
    MAX_CONTEXT_CHARS,
    MAX_MAX_TOKENS,
    MAX_QUESTION_CHARS,
    MIN_MAX_TOKENS,
)
from glance.errors import ErrorInfo, ErrorKind, ValidationError
from glance.images.types import (
    DEFAULT_VIEWPORT_HEIGHT,
    DEFAULT_VIEWPORT_WIDTH,
    DEFAULT_WAIT_FOR_MS,
)

router = APIRouter()
logger = logging.getLogger(__name__)

SERVICE_NAME = "glance-vqa"
SERVICE_VERSION = "1.0.0"

_COMMON_PROPERTIES: dict[str, Any] = {
    "question": {
        "type": "string",
        "description": "The question to ask about the image",
        "minLength": 1,
        "maxLength": MAX_QUESTION_CHARS,
    },
    "context": {
        "type": "string",
        "description": "Optional context for the question",
        "maxLength": MAX_CONTEXT_CHARS,
    },
    "maxTokens": {
        "type": "integer",
        "description": "Maximum tokens in response",
        "minimum": MIN_MAX_TOKENS,
        "maximum": MAX_MAX_TOKENS,
    },
}

TOOLS: dict[str, dict[str, Any]] = {
    "analyze_image": {
        "source": "image",
        "description": "Answer questions about a base64 encoded image",
        "properties": {
            "image": {
                "type": "string",
                "description": "Base64 encoded image data, optionally as a data URL",
            },
            "mimeType": {
                "type": "string",
                "description": "Image mime type when no data URL prefix is given",
            },
        },
    },
    "analyze_image_file": {
        "source": "imagePath",
        "description": "Answer questions about a local image file",
        "properties": {
            "imagePath": {
                "type": "string",
                "description": "Path to the image file (supports JPEG, PNG, GIF, WebP)",
            },
        },
    },
    "analyze_website": {
        "source": "url",
        "description": "Take a screenshot of a website and answer questions about it",
        "properties": {
            "url": {"type": "string", "description": "The URL of the website"},
            "waitFor": {
                "type": "number",
                "description": "Milliseconds to wait after load before the screenshot",
                "default": DEFAULT_WAIT_FOR_MS,
            },
            "viewportWidth": {"type": "number", "default": DEFAULT_VIEWPORT_WIDTH},
            "viewportHeight": {"type": "number", "default": DEFAULT_VIEWPORT_HEIGHT},
            "fullPage": {"type": "boolean", "default": False},
        },
    },
}


def tool_schema(name: str) -> dict[str, Any]:
    tool = TOOLS[name]
    return {
        "type": "object",
        "properties": {**_COMMON_PROPERTIES, **tool["properties"]},
        "required": ["question", tool["source"]],
        "additionalProperties": False,
    }


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


def _envelope_response(envelope: ErrorEnvelope, status_code: int | None = None) -> JSONResponse:
    return JSONResponse(
        envelope.to_dict(), status_code=status_code or envelope.http_status
    )


def _to_response(response: AnalysisResponse) -> JSONResponse:
    return JSONResponse(response.to_dict(), status_code=response.http_status)


async def _read_payload(request: Request) -> tuple[Any, ErrorEnvelope | None]:
    max_bytes = request.app.state.config.server.max_body_bytes
    too_large = f"body: must be at most {max_bytes} bytes"
    problem: str | None = None
    payload: Any = None
    declared = request.headers.get("content-length", "")
    # Refuse oversized bodies before buffering them.
    if declared.isdigit() and int(declared) > max_bytes:
        problem = too_large
    else:
        body = await request.body()
        if len(body) > max_bytes:
            problem = too_large
        else:
            try:
                payload = json.loads(body or b"null")
            except (UnicodeDecodeError, json.JSONDecodeError):
                problem = "body: must be valid JSON"
    if problem is None:
        return payload, None
    error = ValidationError("Invalid input", violations=[problem])
    return None, ErrorEnvelope.from_info(error.to_info(), request_id=_request_id(request))


async def _run(request: Request, expected_source: str | None) -> JSONResponse:
    payload, envelope = await _read_payload(request)
    if envelope is not None:
        return _envelope_response(envelope)
    pipeline = request.app.state.pipeline
    response = await pipeline.run(
        payload,
        request_id=_request_id(request),
        expected_source=expected_source,
    )
    return _to_response(response)


@router.get("/mcp")
async def discovery() -> dict[str, Any]:
    """Service discovery listing the available tools."""
    return {
        "name": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "description": "Visual question answering over images, files and web pages",
        "tools": [
            {
                "name": name,
                "description": tool["description"],
                "schema": tool_schema(name),
            }
            for name, tool in TOOLS.items()
        ],
    }


@router.post("/analyze")
async def analyze(request: Request) -> JSONResponse:
    """Answer a question about any supported image source."""
    return await _run(request, expected_source=None)


@router.post("/mcp/tools/{tool_name}")
async def call_tool(tool_name: str, request: Request) -> JSONResponse:
    """Invoke one of the discovery tools."""
    tool = TOOLS.get(tool_name)
    if tool is None:
        envelope = ErrorEnvelope.from_info(
            ErrorInfo(
                kind=ErrorKind.VALIDATION,
                code="tool_not_found",
                message=f"Unknown tool: {tool_name}",
            ),
            request_id=_request_id(request),
        )
        return _envelope_response(envelope, status_code=404)
    return await _run(request, expected_source=tool["source"])

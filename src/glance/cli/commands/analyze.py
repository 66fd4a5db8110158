"""One-shot question answering from the command line."""

import asyncio
import uuid
from pathlib import Path
from typing import Annotated, Any

import typer

from glance.cli.console import error, print_json
from glance.config import load_config, require_credentials
from glance.core.pipeline import create_pipeline
from glance.errors import ConfigurationError


def register(app: typer.Typer) -> None:
    """Register the analyze command."""

    @app.command()
    def analyze(
        question: Annotated[str, typer.Argument(help="Question about the image")],
        image_path: Annotated[
            str | None,
            typer.Option("--image-path", "-f", help="Local image file"),
        ] = None,
        url: Annotated[
            str | None,
            typer.Option("--url", "-u", help="Web page to screenshot"),
        ] = None,
        image: Annotated[
            str | None,
            typer.Option("--image", help="Base64 image data or data URL"),
        ] = None,
        context: Annotated[
            str | None,
            typer.Option("--context", help="Extra context for the question"),
        ] = None,
        max_tokens: Annotated[
            int | None,
            typer.Option("--max-tokens", help="Maximum tokens in the answer"),
        ] = None,
        wait_for: Annotated[
            int | None,
            typer.Option("--wait-for", help="Milliseconds to wait before the screenshot"),
        ] = None,
        viewport_width: Annotated[
            int | None, typer.Option("--viewport-width")
        ] = None,
        viewport_height: Annotated[
            int | None, typer.Option("--viewport-height")
        ] = None,
        full_page: Annotated[
            bool, typer.Option("--full-page", help="Capture the full scrollable page")
        ] = False,
        config: Annotated[
            Path | None,
            typer.Option("--config", "-c", help="Path to configuration file"),
        ] = None,
    ) -> None:
        """Answer a question about an image, file or web page."""
        try:
            glance_config = load_config(config)
            require_credentials(glance_config)
        except ConfigurationError as e:
            error(f"Configuration error: {e.message}")
            if e.details:
                error(e.details)
            raise typer.Exit(1) from None

        payload: dict[str, Any] = {
            "question": question,
            "image": image,
            "imagePath": image_path,
            "url": url,
            "context": context,
            "maxTokens": max_tokens,
        }
        if url is not None:
            payload.update(
                waitFor=wait_for,
                viewportWidth=viewport_width,
                viewportHeight=viewport_height,
                fullPage=full_page,
            )
        payload = {key: value for key, value in payload.items() if value is not None}

        pipeline = create_pipeline(glance_config)
        response = asyncio.run(pipeline.run(payload, request_id=uuid.uuid4().hex))

        print_json(response.to_dict())
        if not response.ok:
            raise typer.Exit(1)

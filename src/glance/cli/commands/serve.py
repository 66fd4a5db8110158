"""Server command for running the Glance HTTP API."""

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer

from glance.cli.console import error

if TYPE_CHECKING:
    from glance.config import GlanceConfig

logger = logging.getLogger(__name__)


def register(app: typer.Typer) -> None:
    """Register the serve command."""

    @app.command()
    def serve(
        config: Annotated[
            Path | None,
            typer.Option(
                "--config",
                "-c",
                help="Path to configuration file",
            ),
        ] = None,
        host: Annotated[
            str | None,
            typer.Option(
                "--host",
                "-h",
                help="Host to bind to (defaults to server.host)",
            ),
        ] = None,
        port: Annotated[
            int | None,
            typer.Option(
                "--port",
                "-p",
                help="Port to bind to (defaults to server.port / PORT)",
            ),
        ] = None,
    ) -> None:
        """Start the Glance HTTP server."""
        from glance.config import load_config, require_credentials
        from glance.errors import ConfigurationError
        from glance.logging import configure_logging

        configure_logging(use_rich=True, log_to_file=True)

        # Refuse to start on bad configuration, before binding a socket.
        try:
            glance_config = load_config(config)
            require_credentials(glance_config)
        except ConfigurationError as e:
            error(f"Configuration error: {e.message}")
            if e.details:
                error(e.details)
            raise typer.Exit(1) from None

        try:
            asyncio.run(
                _run_server(
                    glance_config,
                    host or glance_config.server.host,
                    port or glance_config.server.port,
                )
            )
        except KeyboardInterrupt:
            print("\nServer stopped")


async def _run_server(config: "GlanceConfig", host: str, port: int) -> None:
    import uvicorn

    from glance.server.app import create_app

    app = create_app(config)
    logger.info("server_listening", extra={"host": host, "port": port})
    uvicorn_config = uvicorn.Config(
        app,
        host=host,
        port=port,
        log_level="info",
        log_config=None,  # Use shared logging config, not uvicorn's
    )
    await uvicorn.Server(uvicorn_config).serve()

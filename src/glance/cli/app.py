"""Main CLI application."""

import typer

from glance.cli.commands import analyze, serve

app = typer.Typer(
    name="glance",
    help="Glance - visual question answering",
    no_args_is_help=True,
)

serve.register(app)
analyze.register(app)


def main() -> None:
    app()

"""Main CLI entry point for canvas-cli."""

import logging

import typer
from rich.console import Console

from canvas_cli.cli.commands import auth
from canvas_cli.core.config import ConfigError, validate_all
from canvas_cli.core.config.schema import ConfigSchema
from canvas_cli.core.config.validation import load_env_var
from canvas_cli.core.logging import configure_root_logging

app = typer.Typer(
    name="canvas",
    help="Canvas CLI - command-line access to Canvas LMS",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# Add subcommands
app.add_typer(auth.app, name="auth", help="Authentication management")


@app.command()
def version() -> None:
    """Show version information."""
    from canvas_cli import __version__

    console = Console()
    console.print(f"[bold cyan]canvas[/bold cyan] version [green]{__version__}[/green]")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    """Canvas CLI."""
    errors = validate_all()
    if errors:
        console = Console(stderr=True)
        for error in errors:
            console.print(f"[red]Configuration error:[/red] {error}")
        raise typer.Exit(1) from None

    try:
        level = "DEBUG" if verbose else load_env_var(ConfigSchema.LOG_LEVEL)
    except ConfigError:
        level = "WARNING"
    configure_root_logging(level)
    logging.getLogger(__name__).debug("Verbose logging enabled")


if __name__ == "__main__":
    app()

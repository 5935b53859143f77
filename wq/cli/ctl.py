import asyncio
from pathlib import Path
from typing import Optional

import typer

from wq import __version__
from wq.core.config import PREVIEW_FILE_NAME, get_settings
from wq.core.errors import ClusterConnectionError, ConfigurationError
from wq.core.logger import setup_logger, set_level
from wq.tools.cql import run_query_text

logger = setup_logger(__name__, include_location=True)

cli_app = typer.Typer(no_args_is_help=True, help="CQL preview tool for zed")


def _load_settings():
    try:
        settings = get_settings()
    except ConfigurationError as e:
        typer.echo(f"Configuration error: {e}", err=True)
        raise typer.Exit(code=1)
    set_level(settings.log_level)
    return settings


@cli_app.command("query")
def query_command(
    preview_dir_path: Path = typer.Argument(..., help="Directory that receives the .pw.cql.md report."),
    query: Optional[str] = typer.Option(None, "--query", "-q", help="CQL text with one or more ';' separated statements."),
    file: Optional[Path] = typer.Option(None, "--file", "-f", exists=True, dir_okay=False, readable=True, help="Read the CQL text from a file."),
    fail_on_error: bool = typer.Option(False, "--fail-on-error", help="Exit with code 1 when any statement failed."),
):
    """Execute CQL statements and write a Markdown preview of the results."""
    if (query is None) == (file is None):
        typer.echo("Exactly one of --query or --file is required.", err=True)
        raise typer.Exit(code=2)
    if file is not None:
        query = file.read_text(encoding="utf-8")

    settings = _load_settings()
    try:
        summary = asyncio.run(run_query_text(query, preview_dir_path, settings=settings))
    except ClusterConnectionError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    except ConfigurationError as e:
        typer.echo(f"Configuration error: {e}", err=True)
        raise typer.Exit(code=1)
    except OSError as e:
        logger.error(f"Failed to write report: {e}")
        typer.echo(f"Error: failed to write report: {e}", err=True)
        raise typer.Exit(code=1)

    if fail_on_error and summary.failed:
        raise typer.Exit(code=1)


@cli_app.command("info")
def info_command():
    """Show the effective connection configuration."""
    settings = _load_settings()
    try:
        host, port = settings.node_address
    except ConfigurationError as e:
        typer.echo(f"Configuration error: {e}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"wq {__version__}")
    typer.echo(f"Node address:              {host}:{port}")
    typer.echo(f"Connection timeout:        {settings.connect_timeout}s")
    typer.echo(f"Request timeout:           {settings.request_timeout}s")
    typer.echo(f"Metadata refresh interval: {settings.metadata_refresh_interval}s")
    typer.echo(f"Preview file name:         {PREVIEW_FILE_NAME}")
    typer.echo(f"Log level:                 {settings.log_level}")


if __name__ == "__main__":
    cli_app()

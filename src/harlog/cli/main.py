"""harlog CLI - inspect recorded HAR files."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

import harlog
from harlog.config import get_settings
from harlog.exceptions import HARParseError
from harlog.har.parser import load_har
from harlog.logging import configure_logging, get_logger

# Configure logging early from HARLOG_* settings; -v and --log-format in
# main_callback() may reconfigure later.
configure_logging()

LOG = get_logger(__name__)

app = typer.Typer(
    name="harlog",
    help="Inspect HTTP exchanges recorded as HAR files.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)
console = Console()


@app.callback()
def main_callback(
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose",
            "-v",
            count=True,
            help="Increase verbosity (-v for info, -vv for debug)",
        ),
    ] = 0,
    log_format: Annotated[
        str | None,
        typer.Option(
            "--log-format",
            help="Log output format: console (human-readable) or json (structured)",
        ),
    ] = None,
) -> None:
    """harlog - record HTTP traffic as HAR files and replay it."""
    settings = get_settings()
    json_output = (log_format or settings.log_format) == "json"

    if verbose >= 2:
        configure_logging(level="DEBUG", json_output=json_output)
    elif verbose >= 1:
        configure_logging(level="INFO", json_output=json_output)
    elif log_format is not None:
        configure_logging(json_output=json_output)


@app.command("version")
def version() -> None:
    """Show harlog version."""
    console.print(f"harlog v{harlog.__version__}")


@app.command("config")
def show_config() -> None:
    """Show the effective configuration."""
    settings = get_settings()
    console.print(
        Panel(
            f"[dim]Output dir:[/dim] {settings.output_dir}\n"
            f"[dim]Creator:[/dim]    {settings.creator_name} {settings.creator_version}\n"
            f"[dim]Log level:[/dim]  {settings.log_level}\n"
            f"[dim]Log format:[/dim] {settings.log_format}",
            title="harlog configuration",
            border_style="cyan",
        )
    )


@app.command("inspect")
def inspect(
    har_file: Annotated[
        Path,
        typer.Argument(
            help="Path to HAR file to inspect",
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
        ),
    ],
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print one JSON object per entry instead of a table"),
    ] = False,
) -> None:
    """List the exchanges recorded in a HAR file."""
    try:
        har = load_har(har_file)
    except HARParseError as exc:
        console.print(f"[red]Failed to parse HAR file: {exc}[/red]")
        raise typer.Exit(1) from None

    if as_json:
        for entry in har.entries:
            typer.echo(
                json.dumps(
                    {
                        "method": entry.request.method,
                        "url": entry.request.url,
                        "status": entry.response.status,
                        "size": entry.response.content.size,
                        "time": entry.time,
                    }
                )
            )
        return

    if not har.entries:
        console.print("[dim]No entries found.[/dim]")
        return

    table = Table(
        title=f"{har_file.name} ({har.creator.name} {har.creator.version})",
        title_style="bold",
        header_style="bold cyan",
        border_style="dim",
    )
    table.add_column("#", justify="right", style="dim")
    table.add_column("Method", style="cyan")
    table.add_column("URL", style="white", overflow="fold")
    table.add_column("Status", justify="right")
    table.add_column("Size", justify="right")
    table.add_column("Time (ms)", justify="right")

    for idx, entry in enumerate(har.entries):
        status = entry.response.status
        status_style = "green" if status < 400 else "red"
        table.add_row(
            str(idx),
            entry.request.method,
            entry.request.url,
            f"[{status_style}]{status}[/{status_style}]",
            str(entry.response.content.size),
            f"{entry.time:.1f}",
        )

    console.print(table)

"""
Leadring CLI — `leadring` command.

Commands:
  leadring serve           Run the Socket.IO monitoring server
  leadring watch <sheet>   Poll a sheet in-process and print new leads
  leadring listen <sheet>  Monitor a sheet through a running server
  leadring sheet-id <url>  Print the bare spreadsheet id
"""

import asyncio
from pathlib import Path
from typing import Optional

import click
from pydantic import ValidationError
from rich.console import Console

from leadring import __version__
from leadring.config import Settings, load_settings
from leadring.errors import RejectedRequest
from leadring.logging_config import setup_logging
from leadring.registry import normalize_source_id

console = Console()


def _settings(config_path: Optional[str], **overrides) -> Settings:
    try:
        settings = load_settings(Path(config_path) if config_path else None, **overrides)
    except ValidationError as e:
        for error in e.errors():
            field = ".".join(str(part) for part in error["loc"])
            console.print(f"[red]Invalid setting {field}: {error['msg']}[/red]")
        raise SystemExit(1)
    setup_logging(settings.log_level)
    return settings


def _run(coro):
    return asyncio.run(coro)


@click.group()
@click.version_option(__version__)
def main():
    """Get notified when new rows land in a Google Sheet."""


@main.command("sheet-id")
@click.argument("value")
def sheet_id_cmd(value: str):
    """Print the spreadsheet id contained in VALUE (URL or id)."""
    try:
        click.echo(normalize_source_id(value))
    except RejectedRequest as e:
        console.print(f"[red]{e.message}[/red]")
        raise SystemExit(1)


# Register subcommands from separate modules
from leadring.cli.serve import serve
from leadring.cli.monitor import listen_cmd, watch_cmd

main.add_command(serve)
main.add_command(watch_cmd)
main.add_command(listen_cmd)


if __name__ == "__main__":
    main()

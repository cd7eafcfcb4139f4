"""CLI: leadring watch, leadring listen"""

import asyncio
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from leadring.models.messages import MonitoringError, NewLeads, OutboundMessage
from leadring.models.session import SessionInfo

console = Console()

WATCH_CONNECTION_ID = "cli"


def _settings(config_path: Optional[str], **overrides):
    from leadring.cli.main import _settings
    return _settings(config_path, **overrides)


def _run(coro):
    from leadring.cli.main import _run
    return _run(coro)


def print_message(message: OutboundMessage) -> None:
    if isinstance(message, NewLeads):
        leads = message.as_leads()
        table = Table(title=f"{len(leads)} new lead(s), {message.total} rows total")
        width = max((len(lead.cells) for lead in leads), default=0)
        table.add_column("Seen", style="dim")
        for i in range(width):
            table.add_column(f"#{i + 1}")
        for lead in leads:
            seen = lead.observed_at.astimezone().strftime("%H:%M:%S")
            table.add_row(seen, *lead.cells, *([""] * (width - len(lead.cells))))
        console.print(table)
    elif isinstance(message, MonitoringError):
        console.print(f"[red]Monitoring stopped:[/red] {message.message}")


def describe_session(info: SessionInfo) -> str:
    if info.last_row_count < 0:
        return f"Session {info.status.value} on {info.source_id} before the first read"
    return f"Session {info.status.value} on {info.source_id} at {info.last_row_count} rows"


@click.command("watch")
@click.argument("sheet")
@click.option("--token", envvar="LEADRING_ACCESS_TOKEN", default=None, help="OAuth access token")
@click.option("--interval", default=None, type=float, help="Seconds between sheet reads")
@click.option("--config", "config_path", default=None, type=click.Path(dir_okay=False))
def watch_cmd(sheet: str, token: Optional[str], interval: Optional[float], config_path: Optional[str]):
    """Poll SHEET in-process and print new leads (Ctrl+C to exit)."""
    from leadring.broadcast import CallbackBroadcaster
    from leadring.errors import RejectedRequest
    from leadring.registry import SessionRegistry
    from leadring.sheets import GoogleSheetsReader

    settings = _settings(config_path, access_token=token, poll_interval=interval)

    async def _watch():
        reader = GoogleSheetsReader(
            base_url=settings.sheets_base_url,
            sheet_range=settings.sheet_range,
            timeout=settings.request_timeout,
        )
        registry = SessionRegistry(
            reader,
            CallbackBroadcaster(lambda _cid, message: print_message(message)),
            interval=settings.poll_interval,
        )
        credentials = {"access_token": settings.access_token} if settings.access_token else None
        try:
            session = await registry.start(WATCH_CONNECTION_ID, sheet, credentials)
            console.print(f"[cyan]Watching {session.source_id} (Ctrl+C to exit)[/cyan]")
            await session.wait()
            console.print(f"[dim]{describe_session(session.info())}[/dim]")
        except RejectedRequest as e:
            console.print(f"[red]{e.message}[/red]")
        finally:
            await registry.close()
            await reader.close()

    try:
        _run(_watch())
    except KeyboardInterrupt:
        pass


@click.command("listen")
@click.argument("sheet")
@click.option("--url", default="http://localhost:3000", show_default=True, help="Leadring server URL")
@click.option("--token", envvar="LEADRING_ACCESS_TOKEN", default=None, help="OAuth access token")
def listen_cmd(sheet: str, url: str, token: Optional[str]):
    """Monitor SHEET through a running leadring server (Ctrl+C to exit)."""
    from leadring.client import LeadringClient

    async def _listen():
        client = LeadringClient(url, access_token=token)
        with console.status("Connecting..."):
            await client.connect()
        try:
            ack = await client.start_monitoring(sheet)
            if not ack.accepted:
                console.print(f"[red]Rejected:[/red] {ack.reason}")
                return
            console.print(f"[cyan]Monitoring {ack.spreadsheet_id} (Ctrl+C to exit)[/cyan]")
            async for message in client.messages():
                print_message(message)
        except asyncio.CancelledError:
            pass
        finally:
            await client.disconnect()

    try:
        _run(_listen())
    except KeyboardInterrupt:
        pass

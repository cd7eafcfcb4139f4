"""CLI: leadring serve"""

from typing import Optional

import click
from rich.console import Console

console = Console()


@click.command("serve")
@click.option("--host", default=None, help="Bind address (default 0.0.0.0)")
@click.option("--port", default=None, type=int, help="Bind port (default 3000)")
@click.option("--interval", default=None, type=float, help="Seconds between sheet reads")
@click.option("--config", "config_path", default=None, type=click.Path(dir_okay=False))
def serve(host: Optional[str], port: Optional[int], interval: Optional[float], config_path: Optional[str]):
    """Run the Socket.IO monitoring server."""
    import uvicorn

    from leadring.cli.main import _settings
    from leadring.transport.socketio import create_app

    settings = _settings(config_path, host=host, port=port, poll_interval=interval)
    console.print(f"[green]Server running on http://{settings.host}:{settings.port}[/green]")
    # Logging is configured by setup_logging; keep uvicorn's defaults out of it.
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_config=None)

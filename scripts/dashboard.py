#!/usr/bin/env python3
"""
Dashboard.

Shows today's entry, all entries newest first, usage charts and insights.
With --watch it keeps refreshing every POLL_INTERVAL_SECONDS.
"""

import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import logging
import signal
import threading

import typer
from dotenv import load_dotenv
from rich.console import Console

from screendiary.core.config import Config
from screendiary.review.charts import ConsoleRenderer, RenderSession
from screendiary.review.controller import DashboardController
from screendiary.review.dashboard import format_snapshot
from screendiary.session.gate import connect

app = typer.Typer(help="Digital wellness dashboard")
console = Console()


@app.command()
def main(
    watch: bool = typer.Option(False, "--watch", "-w", help="Auto-refresh until Ctrl+C"),
    plain: bool = typer.Option(False, "--plain", "-p", help="Plain text output"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
):
    """
    Render the dashboard for the signed-in user.

    Without a signed-in user every available entry is shown.
    """
    load_dotenv()
    config = Config.from_env()
    logging.basicConfig(
        level=logging.DEBUG if verbose else config.log_level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    gate, api = connect(config)

    if plain:
        snapshot = DashboardController(gate, api.list_entries, _PlainRenderer()).refresh()
        print(format_snapshot(snapshot))
        return

    controller = DashboardController(
        gate,
        api.list_entries,
        ConsoleRenderer(console),
        interval_seconds=config.poll_interval_seconds,
    )

    if not watch:
        controller.refresh()
        return

    stopped = threading.Event()

    def signal_handler(sig, frame):
        console.print("\n[yellow]Stopping auto-refresh...[/yellow]")
        stopped.set()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    controller.subscribe(lambda snapshot: console.rule("[dim]refreshed[/dim]"))
    controller.mount()
    console.print(f"[dim]Refreshing every {config.poll_interval_seconds:g}s. Press Ctrl+C to stop.[/dim]")

    try:
        stopped.wait()
    finally:
        controller.unmount()


class _PlainRenderer:
    """Renders nothing; output is printed from the snapshot."""

    def render_text(self, snapshot):
        pass

    def render_series(self, series):
        return RenderSession(series)


if __name__ == "__main__":
    app()

#!/usr/bin/env python3
"""
Run the ScreenDiary API server.
"""

import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import logging

import typer
import uvicorn
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel

from screendiary.core.config import Config
from screendiary.server.app import create_app

app = typer.Typer(help="ScreenDiary API server")
console = Console()


@app.command()
def main(
    host: str = typer.Option(None, "--host", "-h", help="Bind address (default SERVER_HOST)"),
    port: int = typer.Option(None, "--port", "-p", help="Port (default SERVER_PORT)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
):
    """Serve the journal API backed by the local SQLite database."""
    load_dotenv()
    config = Config.from_env()
    logging.basicConfig(
        level=logging.DEBUG if verbose else config.log_level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    host = host or config.server_host
    port = port or config.server_port

    console.print(Panel(
        config.get_summary(),
        title=f"ScreenDiary API on http://{host}:{port}",
        border_style="blue",
    ))

    uvicorn.run(create_app(config), host=host, port=port, log_level="debug" if verbose else "info")


if __name__ == "__main__":
    app()

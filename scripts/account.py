#!/usr/bin/env python3
"""
Account management.

Register, sign in, sign out and show the cached identity.
"""

import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape
from rich.prompt import Prompt
from rich.table import Table

from screendiary.core.config import Config
from screendiary.core.errors import APIError, TransportError
from screendiary.session.gate import connect

app = typer.Typer(help="Manage your ScreenDiary account")
console = Console()


def _load():
    load_dotenv()
    return connect(Config.from_env())


@app.command()
def register(
    name: str = typer.Option(..., "--name", "-n", prompt=True, help="Display name"),
    email: str = typer.Option(..., "--email", "-e", prompt=True, help="Email"),
):
    """Create an account and sign in."""
    gate, api = _load()
    password = Prompt.ask("Password", password=True, console=console)

    try:
        user = gate.remember(api.register(name, email, password))
    except APIError as e:
        console.print(f"[red]Registration failed: {escape(e.message)}[/red]")
        raise typer.Exit(1)
    except TransportError as e:
        console.print(f"[red]Server error: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]Welcome, {escape(user.name)}! You are signed in.[/green]")


@app.command()
def login(
    email: str = typer.Option(..., "--email", "-e", prompt=True, help="Email"),
):
    """Sign in and cache the identity locally."""
    gate, api = _load()
    password = Prompt.ask("Password", password=True, console=console)

    try:
        user = gate.remember(api.login(email, password))
    except APIError as e:
        console.print(f"[red]Login failed: {escape(e.message)}[/red]")
        raise typer.Exit(1)
    except TransportError as e:
        console.print(f"[red]Server error: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]Welcome, {escape(user.name)}[/green]")


@app.command()
def logout():
    """Sign out. The local identity is cleared even if the server is down."""
    gate, api = _load()
    gate.logout(api.logout)
    console.print("[green]Signed out.[/green]")


@app.command()
def whoami(
    refresh: bool = typer.Option(False, "--refresh", "-r", help="Re-check with the server"),
):
    """Show the cached identity."""
    gate, api = _load()

    if refresh and not gate.refresh():
        console.print("[yellow]Session expired. Please sign in again.[/yellow]")
        raise typer.Exit(1)

    user = gate.current_user()
    if user is None:
        console.print("[yellow]Not signed in.[/yellow]")
        raise typer.Exit(1)

    table = Table(title="ScreenDiary Account", show_header=False)
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("User ID", str(user.id))
    table.add_row("Name", escape(user.name))
    table.add_row("Email", escape(user.email or "-"))
    table.add_row("Session", "active" if user.token else "no token")
    console.print(table)


if __name__ == "__main__":
    app()

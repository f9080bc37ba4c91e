#!/usr/bin/env python3
"""
Log a journal entry.

Walks through the three capture steps: apps, screen time, reflection and
tags. Optionally asks for AI guidance before saving.
"""

import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import logging

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Confirm, IntPrompt, Prompt

from screendiary.capture.wizard import EntryWizard, Selection, WizardStep
from screendiary.core.config import Config
from screendiary.core.errors import TransportError, ValidationError
from screendiary.core.schemas import AnalysisResult
from screendiary.review.charts import ConsoleRenderer
from screendiary.review.controller import DashboardController
from screendiary.session.gate import connect

app = typer.Typer(help="Log a journal entry")
console = Console()


def _pick(selection: Selection, toggle, title: str) -> None:
    """Let the user toggle catalog options by number until done."""
    while True:
        console.print(f"\n[bold]{title}[/bold]")
        for index, label in enumerate(selection.catalog, start=1):
            mark = "[green]✔[/green]" if selection.is_selected(label) else " "
            console.print(f"  {mark} {index:>2}. {escape(label)}")

        choice = Prompt.ask("Toggle number (enter when done)", default="", console=console)
        if not choice.strip():
            return

        for part in choice.replace(",", " ").split():
            if part.isdigit() and 1 <= int(part) <= len(selection.catalog):
                toggle(selection.catalog[int(part) - 1])
            else:
                console.print(f"[yellow]Ignoring '{escape(part)}'[/yellow]")


def _show_analysis(result: AnalysisResult) -> None:
    body = [
        "[bold]📊 Analysis[/bold]",
        escape(result.analysis),
        "",
        "[bold]💡 Suggestions[/bold]",
        *[f"  • {escape(item)}" for item in result.suggestions],
        "",
        "[bold]🎯 Micro Habits[/bold]",
        *[f"  • {escape(item)}" for item in result.micro_habits],
        "",
        "[bold]🌟 Motivational Tip[/bold]",
        escape(result.motivational_tip),
    ]
    title = "🤖 Your AI Digital Wellness Analysis"
    if result.is_fallback:
        title += " (offline tips)"
    console.print(Panel("\n".join(body), title=title, border_style="magenta"))


@app.command()
def main(
    ai: bool = typer.Option(False, "--ai", "-a", help="Get AI analysis before saving"),
    dashboard: bool = typer.Option(True, "--dashboard/--no-dashboard", help="Show the dashboard after saving"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
):
    """
    Capture today's digital consumption.

    Requires a signed-in account (see account.py login).
    """
    load_dotenv()
    config = Config.from_env()
    logging.basicConfig(
        level=logging.DEBUG if verbose else config.log_level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    gate, api = connect(config)
    user = gate.current_user()
    if user is None:
        console.print("[red]Not signed in.[/red] Run [bold]account.py login[/bold] first.")
        raise typer.Exit(1)

    wizard = EntryWizard(
        gate=gate,
        save=api.create_entry,
        analyze=api.analyze,
        app_catalog=config.app_catalog,
        tag_catalog=config.tag_catalog,
    )
    if dashboard:
        controller = DashboardController(gate, api.list_entries, ConsoleRenderer(console))
        wizard.on_saved(controller.handle_entry_saved)
    wizard.open()

    console.print(Panel(f"Hi {escape(user.name)}, let's log today's screen time.", title="Make an Entry"))

    # Step 1: apps
    while wizard.step is WizardStep.APP_SELECTION:
        _pick(wizard.apps, wizard.toggle_app, "Which apps did you use?")
        try:
            wizard.next()
        except ValidationError as e:
            console.print(f"[red]{escape(e.message)}[/red]")

    # Step 2: screen time
    minutes = IntPrompt.ask(
        f"\nScreen time in minutes ({wizard.time_control.minimum}-{wizard.time_control.maximum})",
        default=wizard.time_control.value,
        console=console,
    )
    wizard.set_screen_time(minutes)
    console.print(f"[dim]{wizard.time_control.hours_label} hours[/dim]")
    wizard.next()

    # Step 3: reflection and tags
    while wizard.step is WizardStep.REFLECTION_AND_TAGS:
        wizard.set_reflection(Prompt.ask("\nHow did it feel? Write a short reflection", console=console))
        _pick(wizard.tags, wizard.toggle_tag, "How would you tag it?")

        try:
            if ai:
                result = wizard.finish_with_analysis()
            else:
                entry_id = wizard.finish()
                console.print(f"\n[green]Entry #{entry_id} saved successfully![/green]\n")
        except ValidationError as e:
            console.print(f"[red]{escape(e.message)}[/red]")
        except TransportError as e:
            console.print(f"[red]Error saving entry: {escape(str(e))}[/red]")
            if not Confirm.ask("Try again?", console=console, default=True):
                wizard.cancel()
                raise typer.Exit(1)

    if not ai:
        return

    _show_analysis(result)

    if Confirm.ask("Save entry & apply tips?", console=console, default=True):
        try:
            entry_id = wizard.confirm_analysis()
        except TransportError as e:
            console.print(f"[red]Error saving entry: {escape(str(e))}[/red]")
            raise typer.Exit(1)
        console.print(
            f"\n[green]Entry #{entry_id} saved! Start applying the AI suggestions "
            f"to improve your digital wellness.[/green]\n"
        )
    else:
        wizard.dismiss_analysis()
        console.print("[yellow]Entry discarded.[/yellow]")


if __name__ == "__main__":
    app()

"""
Chart and panel rendering for the terminal.

render_series() hands back a RenderSession the caller owns; the caller
disposes it before rendering a replacement.
"""

import logging
from typing import List, Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from screendiary.review.dashboard import ChartSeries, DashboardSnapshot

logger = logging.getLogger(__name__)

BAR_WIDTH = 30


class RenderSession:
    """Owned handle to one rendered chart."""

    def __init__(self, series: ChartSeries):
        self.series = series
        self.disposed = False

    def dispose(self) -> None:
        """Release the chart. Safe to call more than once."""
        if not self.disposed:
            self.disposed = True
            logger.debug(f"Disposed {self.series.kind} chart")

    def __repr__(self) -> str:
        state = "disposed" if self.disposed else "live"
        return f"<RenderSession {self.series.kind} {state}>"


def _bar(value: float, peak: float) -> str:
    if peak <= 0:
        return ""
    return "█" * max(1, int(round(value / peak * BAR_WIDTH))) if value > 0 else ""


class ConsoleRenderer:
    """
    Renders dashboard snapshots with rich.

    Bar, pie and doughnut series all draw as horizontal bar tables; pie and
    doughnut add a share column.
    """

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def render_series(self, series: ChartSeries) -> RenderSession:
        table = Table(title=series.title, show_header=True, header_style="bold cyan")
        table.add_column("Label", style="cyan")
        table.add_column("Value", justify="right", style="green")

        total = sum(series.values) or 1
        if series.kind != "bar":
            table.add_column("Share", justify="right")
        table.add_column("")

        peak = max(series.values) if series.values else 0
        for label, value in zip(series.labels, series.values):
            row = [escape(label), f"{value:g}"]
            if series.kind != "bar":
                row.append(f"{value / total * 100:.0f}%")
            row.append(_bar(value, peak))
            table.add_row(*row)

        self.console.print(table)
        return RenderSession(series)

    def render_text(self, snapshot: DashboardSnapshot) -> None:
        if snapshot.error:
            self.console.print(f"[yellow]{escape(snapshot.error)}[/yellow]")

        if snapshot.welcome:
            welcome = snapshot.welcome
            self.console.print(Panel(
                f"{escape(welcome.message)}\n\nRun [bold]log_entry.py[/bold] to make your first entry.",
                title=escape(welcome.title),
                border_style="green",
            ))
            self.console.print(Panel(
                "\n".join(escape(line) for line in welcome.journey_lines),
                title=escape(welcome.journey_title),
                border_style="blue",
            ))
            return

        if snapshot.today:
            self.console.print(Panel(
                "\n".join(escape(line) for line in snapshot.today.lines),
                title=escape(snapshot.today.title),
                border_style="green" if snapshot.today.entry else "dim",
            ))

        for card in snapshot.cards:
            body: List[str] = [
                f"⏱️ Screen Time: {card.screen_time}",
                f"💭 Reflection: {escape(card.reflection)}",
                f"🏷️ Tags: {escape(', '.join(card.tags))}",
                f"[dim italic]{card.timestamp}[/dim italic]",
            ]
            badge = f"[bold black on green] {card.badge} [/]" if card.is_today else f"[dim]{card.badge}[/dim]"
            self.console.print(Panel("\n".join(body), title=f"{escape(card.heading)}  {badge}", title_align="left"))

        if snapshot.insights:
            self.console.print(Panel(
                "\n".join(escape(line) for line in snapshot.insights.lines),
                title=escape(snapshot.insights.title),
                border_style="blue",
            ))

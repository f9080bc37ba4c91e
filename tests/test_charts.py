"""
Tests for the rich terminal renderer.

Output goes to an in-memory console so the rendered text can be checked.
"""

import sys
from datetime import datetime, timezone
from io import StringIO
from pathlib import Path

from rich.console import Console

# Add parent to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from screendiary.core.schemas import CurrentUser
from screendiary.review.charts import ConsoleRenderer, RenderSession
from screendiary.review.dashboard import ChartSeries, reconcile

NOW = datetime(2026, 1, 3, 4, 0, tzinfo=timezone.utc)


def make_renderer():
    buffer = StringIO()
    console = Console(file=buffer, width=120, force_terminal=False, color_system=None)
    return ConsoleRenderer(console), buffer


def record(entry_id, reflection="Scrolled a bit", apps='["YouTube"]', tags='["✅ Productive"]'):
    return {
        "id": entry_id,
        "user_id": 1,
        "apps": apps,
        "screen_time": 90,
        "reflection": reflection,
        "tags": tags,
        "created_at": "2026-01-02 19:00:00",
    }


class TestRenderSeries:
    """Test chart tables and their owned sessions."""

    def test_bar_table(self):
        renderer, buffer = make_renderer()
        session = renderer.render_series(
            ChartSeries(kind="bar", title="Total Screen Time (hours)", labels=["YouTube", "Reddit"], values=[1.5, 0.5])
        )

        output = buffer.getvalue()
        assert "Total Screen Time (hours)" in output
        assert "YouTube" in output
        assert "1.5" in output
        assert "Share" not in output
        assert isinstance(session, RenderSession)
        assert session.disposed is False

    def test_pie_and_doughnut_show_share(self):
        renderer, buffer = make_renderer()
        renderer.render_series(ChartSeries(kind="pie", title="Tag Distribution", labels=["a", "b"], values=[3, 1]))
        renderer.render_series(ChartSeries(kind="doughnut", title="App Frequency", labels=["c"], values=[2]))

        output = buffer.getvalue()
        assert "Tag Distribution" in output
        assert "App Frequency" in output
        assert "75%" in output
        assert "100%" in output

    def test_dispose_is_idempotent(self):
        renderer, _ = make_renderer()
        session = renderer.render_series(ChartSeries(kind="bar", title="t", labels=["x"], values=[1.0]))

        session.dispose()
        session.dispose()

        assert session.disposed is True
        assert "disposed" in repr(session)


class TestRenderText:
    """Test panels for snapshots."""

    def test_welcome_panels(self):
        renderer, buffer = make_renderer()
        renderer.render_text(reconcile([], CurrentUser(id=1, name="Asha"), now=NOW))

        output = buffer.getvalue()
        assert "Welcome, Asha!" in output
        assert "Digital Wellness Journey" in output
        assert "log_entry.py" in output

    def test_entry_panels(self):
        renderer, buffer = make_renderer()
        renderer.render_text(reconcile([record(1)], CurrentUser(id=1, name="Asha"), now=NOW))

        output = buffer.getvalue()
        assert "Today's Entry" in output
        assert "Scrolled a bit" in output
        assert "Today" in output
        assert "Digital Wellness Report" in output

    def test_error_line(self):
        renderer, buffer = make_renderer()
        snapshot = reconcile([], None, now=NOW)
        snapshot.error = "Could not load [entries]"
        renderer.render_text(snapshot)

        assert "Could not load [entries]" in buffer.getvalue()


class TestBracketedText:
    """User text with markup-like brackets is printed literally."""

    def test_reflection_with_closing_tag(self):
        renderer, buffer = make_renderer()
        reflection = "watched tutorials [/b] then doomscrolled"
        renderer.render_text(reconcile([record(1, reflection=reflection)], None, now=NOW))

        assert reflection in buffer.getvalue()

    def test_labels_and_name_with_brackets(self):
        renderer, buffer = make_renderer()
        snapshot = reconcile(
            [record(1, apps='["[bold]App"]', tags='["[/red] tag"]')],
            CurrentUser(id=1, name="[i]Asha"),
            now=NOW,
        )
        renderer.render_text(snapshot)
        for series in snapshot.charts:
            renderer.render_series(series)

        output = buffer.getvalue()
        assert "[bold]App" in output
        assert "[/red] tag" in output
        assert "[i]Asha" in output

    def test_welcome_name_with_brackets(self):
        renderer, buffer = make_renderer()
        renderer.render_text(reconcile([], CurrentUser(id=1, name="[/]Asha"), now=NOW))

        assert "Welcome, [/]Asha!" in buffer.getvalue()

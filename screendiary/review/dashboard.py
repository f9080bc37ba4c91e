"""
Dashboard reconciler.

Turns a raw, server-scoped entry list into what the dashboard shows:
today's entry, a newest-first card list, three chart series and a
narrative insights block.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from screendiary.core.schemas import CurrentUser, Entry
from screendiary.core.utils import (
    format_ist_date,
    format_ist_time,
    format_time_to_hours,
    ids_match,
    is_same_ist_day,
    minutes_to_hours,
    round_half_up,
)

logger = logging.getLogger(__name__)

PRODUCTIVE_TAGS = frozenset({"✅ Productive", "🧘 Mindful Use"})
DISTRACTING_TAGS = frozenset({"😵 Overwhelmed", "⏳ Wasted Time", "🔥 Deep Dive"})

DEFAULT_USER_NAME = "User"


@dataclass
class TodayView:
    """Today's entry panel."""
    entry: Optional[Entry]
    title: str
    lines: List[str] = field(default_factory=list)


@dataclass
class EntryCard:
    """One card in the reverse-chronological list."""
    entry_id: Any
    heading: str
    badge: str
    is_today: bool
    screen_time: str
    reflection: str
    tags: List[str]
    timestamp: str


@dataclass
class ChartSeries:
    """Labels and values for one chart."""
    kind: str  # "bar", "pie" or "doughnut"
    title: str
    labels: List[str]
    values: List[float]

    @property
    def is_empty(self) -> bool:
        return not self.labels


@dataclass
class Aggregates:
    """Per-app and per-tag accumulations, insertion ordered."""
    screen_time_by_app: Dict[str, int]
    app_counts: Dict[str, int]
    tag_counts: Dict[str, int]


@dataclass
class Insights:
    """Narrative report block."""
    title: str
    total_entries: int
    total_screen_time: str
    average_screen_time: str
    productivity_pct: int
    distraction_pct: int
    most_common_tag: Optional[str]
    motivation: str
    lines: List[str] = field(default_factory=list)


@dataclass
class WelcomePayload:
    """Shown instead of charts when there is nothing to reconcile."""
    title: str
    message: str
    journey_title: str
    journey_lines: List[str]


@dataclass
class DashboardSnapshot:
    """Everything one reconciliation cycle produces."""
    user_name: str
    entries: List[Entry]
    today: Optional[TodayView] = None
    cards: List[EntryCard] = field(default_factory=list)
    charts: List[ChartSeries] = field(default_factory=list)
    insights: Optional[Insights] = None
    welcome: Optional[WelcomePayload] = None
    error: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.entries


# Scoping and ordering

def scope_entries(entries: Iterable[Entry], user: Optional[CurrentUser]) -> List[Entry]:
    """
    Keep only the current user's entries.

    Without a user nothing is filtered.
    """
    entries = list(entries)
    if user is None:
        return entries

    return [entry for entry in entries if ids_match(user.id, entry.user_id)]


def sort_entries(entries: Iterable[Entry]) -> List[Entry]:
    """Newest first, stable for equal timestamps."""
    return sorted(entries, key=lambda entry: entry.created_at, reverse=True)


# Views

def build_today_view(entries: List[Entry], now: datetime) -> TodayView:
    """Newest entry made today (IST), or a prompt to make one."""
    todays = [entry for entry in entries if is_same_ist_day(entry.created_at, now)]

    if not todays:
        return TodayView(
            entry=None,
            title="No entry for today",
            lines=["Make your first entry to start tracking your digital consumption!"],
        )

    latest = sort_entries(todays)[0]
    return TodayView(
        entry=latest,
        title="📱 Today's Entry",
        lines=[
            f"Apps: {', '.join(latest.apps)}",
            f"Screen Time: {format_time_to_hours(latest.screen_time_minutes)}",
            f"Reflection: {latest.reflection}",
            f"Tags: {', '.join(latest.tags)}",
            f"Added at {format_ist_time(latest.created_at)}",
        ],
    )


def build_cards(entries: List[Entry], now: datetime) -> List[EntryCard]:
    cards = []
    for entry in sort_entries(entries):
        is_today = is_same_ist_day(entry.created_at, now)
        cards.append(
            EntryCard(
                entry_id=entry.id,
                heading=f"📱 {', '.join(entry.apps)}",
                badge="Today" if is_today else format_ist_date(entry.created_at),
                is_today=is_today,
                screen_time=format_time_to_hours(entry.screen_time_minutes),
                reflection=entry.reflection,
                tags=list(entry.tags),
                timestamp=format_ist_time(entry.created_at),
            )
        )
    return cards


# Aggregation

def aggregate(entries: Iterable[Entry]) -> Aggregates:
    """
    Accumulate minutes and entry counts per app, occurrences per tag.

    Maps keep first-seen order.
    """
    screen_time_by_app: Dict[str, int] = {}
    app_counts: Counter = Counter()
    tag_counts: Counter = Counter()

    for entry in entries:
        for app in entry.apps:
            screen_time_by_app[app] = screen_time_by_app.get(app, 0) + (entry.screen_time_minutes or 0)
            app_counts[app] += 1

        for tag in entry.tags:
            tag_counts[tag] += 1

    return Aggregates(
        screen_time_by_app=screen_time_by_app,
        app_counts=dict(app_counts),
        tag_counts=dict(tag_counts),
    )


def build_chart_series(aggregates: Aggregates) -> List[ChartSeries]:
    return [
        ChartSeries(
            kind="bar",
            title="Total Screen Time (hours)",
            labels=list(aggregates.screen_time_by_app),
            values=[minutes_to_hours(v) for v in aggregates.screen_time_by_app.values()],
        ),
        ChartSeries(
            kind="pie",
            title="Tag Distribution",
            labels=list(aggregates.tag_counts),
            values=list(aggregates.tag_counts.values()),
        ),
        ChartSeries(
            kind="doughnut",
            title="App Frequency",
            labels=list(aggregates.app_counts),
            values=list(aggregates.app_counts.values()),
        ),
    ]


def classified_ratio(entries: List[Entry], vocabulary: Iterable[str]) -> int:
    """
    Percent of entries with at least one tag in vocabulary.

    Classification is per entry, not per tag occurrence.
    """
    if not entries:
        return 0

    vocabulary = set(vocabulary)
    matching = sum(1 for entry in entries if vocabulary.intersection(entry.tags))
    return round_half_up(matching / len(entries) * 100)


def productivity_ratio(entries: List[Entry]) -> int:
    return classified_ratio(entries, PRODUCTIVE_TAGS)


def most_common_tag(tag_counts: Dict[str, int]) -> Optional[str]:
    """Arg-max over counts; ties go to the first-seen tag."""
    best = None
    best_count = 0

    for tag, count in tag_counts.items():
        if count > best_count:
            best, best_count = tag, count

    return best


def motivational_message(productivity_pct: int) -> str:
    if productivity_pct >= 70:
        return "🌟 Excellent! You're maintaining a healthy balance with technology."
    elif productivity_pct >= 50:
        return "👍 Good progress! You're becoming more mindful of your digital habits."
    elif productivity_pct >= 30:
        return "💪 Keep going! Every step towards mindful technology use counts."
    else:
        return "🎯 Focus on small changes. Try setting specific time limits for your most-used apps."


def build_insights(entries: List[Entry], user_name: str) -> Insights:
    """Summarise a non-empty, already sorted entry list."""
    total_entries = len(entries)
    total_minutes = sum(entry.screen_time_minutes or 0 for entry in entries)
    average_minutes = round_half_up(total_minutes / total_entries)

    tag_counts = aggregate(entries).tag_counts
    top_tag = most_common_tag(tag_counts)
    productivity_pct = productivity_ratio(entries)
    distraction_pct = classified_ratio(entries, DISTRACTING_TAGS)
    motivation = motivational_message(productivity_pct)

    total_label = format_time_to_hours(total_minutes)
    average_label = format_time_to_hours(average_minutes)

    lines = [
        f"📈 Progress: You've made {total_entries} entries and tracked {total_label} of screen time.",
        f"⏰ Average: You spend an average of {average_label} per session.",
        f"🎯 Productivity: {productivity_pct}% of your sessions are productive or mindful.",
    ]
    if top_tag:
        lines.append(
            f'🏷️ Most Common Feeling: "{top_tag}" - This is your most frequent '
            f"emotional response to digital consumption."
        )
    lines.append(f"💡 {motivation}")

    return Insights(
        title=f"📊 {user_name}'s Digital Wellness Report",
        total_entries=total_entries,
        total_screen_time=total_label,
        average_screen_time=average_label,
        productivity_pct=productivity_pct,
        distraction_pct=distraction_pct,
        most_common_tag=top_tag,
        motivation=motivation,
        lines=lines,
    )


def build_welcome(user_name: str, signed_in: bool) -> WelcomePayload:
    """Deterministic zero-entry payload."""
    if signed_in:
        message = "You haven't made any entries yet. Start your digital wellness journey!"
    else:
        message = "Start your digital wellness journey by making your first entry."

    return WelcomePayload(
        title=f"👋 Welcome, {user_name}!",
        message=message,
        journey_title=f"📊 {user_name}'s Digital Wellness Journey",
        journey_lines=[
            "🎯 Ready to Start: Track your apps, screen time, and emotions to unlock personalized insights!",
            "💡 Your Goal: Build awareness of your digital habits and create a healthier relationship with technology.",
        ],
    )


def reconcile(
    records: Iterable[Dict[str, Any]],
    user: Optional[CurrentUser],
    now: Optional[datetime] = None,
) -> DashboardSnapshot:
    """
    Run one full reconciliation over raw server records.

    Records that cannot be read as entries are skipped.
    """
    now = now or datetime.now(timezone.utc)
    user_name = user.name if user and user.name else DEFAULT_USER_NAME

    entries = []
    for record in records:
        if not isinstance(record, dict):
            logger.warning(f"Skipping non-object entry record: {record!r}")
            continue
        entries.append(Entry.from_record(record))

    entries = sort_entries(scope_entries(entries, user))
    logger.debug(f"Reconciling {len(entries)} entries for {user_name}")

    if not entries:
        return DashboardSnapshot(
            user_name=user_name,
            entries=[],
            welcome=build_welcome(user_name, signed_in=user is not None),
        )

    return DashboardSnapshot(
        user_name=user_name,
        entries=entries,
        today=build_today_view(entries, now),
        cards=build_cards(entries, now),
        charts=build_chart_series(aggregate(entries)),
        insights=build_insights(entries, user_name),
    )


def format_snapshot(snapshot: DashboardSnapshot) -> str:
    """
    Format a snapshot as plain text.
    """
    lines = []

    if snapshot.error:
        lines.extend([f"⚠️ {snapshot.error}", ""])

    if snapshot.welcome:
        welcome = snapshot.welcome
        lines.extend([welcome.title, welcome.message, "", welcome.journey_title])
        lines.extend(f"- {line}" for line in welcome.journey_lines)
        return "\n".join(lines)

    if snapshot.today:
        lines.append(snapshot.today.title)
        lines.extend(snapshot.today.lines)
        lines.append("")

    for card in snapshot.cards:
        lines.append(f"{card.heading}  [{card.badge}]")
        lines.append(f"  Screen Time: {card.screen_time}")
        lines.append(f"  Reflection: {card.reflection}")
        lines.append(f"  Tags: {', '.join(card.tags)}")
        lines.append(f"  {card.timestamp}")
        lines.append("")

    if snapshot.insights:
        lines.append(snapshot.insights.title)
        lines.extend(snapshot.insights.lines)

    return "\n".join(lines)

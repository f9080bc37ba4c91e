"""
Domain records shared by the client-side core.

These are plain dataclasses, detached from any database session.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from screendiary.core.utils import parse_string_list, parse_timestamp

# Bounds of the screen time control, in minutes
SCREEN_TIME_MIN = 0
SCREEN_TIME_MAX = 1440


@dataclass(frozen=True)
class Entry:
    """A persisted journal entry as seen by the dashboard."""

    id: Any
    user_id: Any
    apps: List[str]
    screen_time_minutes: int
    reflection: str
    tags: List[str]
    created_at: datetime

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Entry":
        """
        Build from a server record.

        Accepts stored column names (user_id, screen_time, created_at) and
        camelCase payload names. Malformed lists and timestamps degrade.
        """
        user_id = record.get("user_id", record.get("userId"))
        screen_time = record.get("screen_time", record.get("screenTimeMinutes"))
        created_at = record.get("created_at", record.get("createdAt"))

        try:
            minutes = int(screen_time or 0)
        except (TypeError, ValueError):
            minutes = 0

        return cls(
            id=record.get("id"),
            user_id=user_id,
            apps=parse_string_list(record.get("apps")),
            screen_time_minutes=minutes,
            reflection=str(record.get("reflection") or ""),
            tags=parse_string_list(record.get("tags")),
            created_at=parse_timestamp(created_at),
        )


@dataclass(frozen=True)
class CurrentUser:
    """Resolved identity of the person using the client."""

    id: Any
    name: str = "User"
    email: Optional[str] = None
    token: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "token": self.token,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CurrentUser":
        """Create from dictionary."""
        return cls(
            id=data.get("id"),
            name=data.get("name") or "User",
            email=data.get("email"),
            token=data.get("token"),
        )


@dataclass(frozen=True)
class AnalysisResult:
    """Structured AI guidance for a draft entry."""

    analysis: str
    suggestions: List[str] = field(default_factory=list)
    micro_habits: List[str] = field(default_factory=list)
    motivational_tip: str = ""
    is_fallback: bool = False

    @classmethod
    def from_payload(cls, payload: Dict[str, Any], is_fallback: bool = False) -> "AnalysisResult":
        """Create from the wire shape {analysis, suggestions, microHabits, motivationalTip}."""
        return cls(
            analysis=str(payload.get("analysis") or ""),
            suggestions=parse_string_list(payload.get("suggestions")),
            micro_habits=parse_string_list(payload.get("microHabits")),
            motivational_tip=str(payload.get("motivationalTip") or ""),
            is_fallback=is_fallback,
        )

    def to_payload(self) -> dict:
        """Convert to the wire shape."""
        return {
            "analysis": self.analysis,
            "suggestions": list(self.suggestions),
            "microHabits": list(self.micro_habits),
            "motivationalTip": self.motivational_tip,
        }

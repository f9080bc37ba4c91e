"""
Configuration management for ScreenDiary.

Loads settings from environment variables.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional


DEFAULT_APP_CATALOG = [
    "Instagram",
    "YouTube",
    "WhatsApp",
    "Twitter",
    "Facebook",
    "Snapchat",
    "Netflix",
    "Reddit",
    "LinkedIn",
    "TikTok",
]

DEFAULT_TAG_CATALOG = [
    "✅ Productive",
    "🧘 Mindful Use",
    "😵 Overwhelmed",
    "⏳ Wasted Time",
    "🔥 Deep Dive",
]


def _split_list(raw: Optional[str], default: List[str]) -> List[str]:
    """Parse a comma separated env value, falling back to default."""
    if not raw:
        return list(default)

    items = [item.strip() for item in raw.split(",")]
    return [item for item in items if item] or list(default)


def _optional_float(raw: Optional[str]) -> Optional[float]:
    if raw is None or not raw.strip():
        return None
    return float(raw)


@dataclass
class Config:
    """Application configuration."""

    # Database (server side)
    database_path: str = "data/screendiary.db"

    # Server
    server_host: str = "127.0.0.1"
    server_port: int = 8000
    session_ttl_hours: int = 24 * 7

    # Client
    api_base_url: str = "http://127.0.0.1:8000"
    session_file: str = str(Path.home() / ".screendiary" / "session.json")
    request_timeout: Optional[float] = None  # None means wait indefinitely

    # Dashboard auto-refresh
    poll_interval_seconds: float = 30.0

    # AI analysis provider (OpenAI-compatible chat completions)
    ai_api_url: str = "https://api.openai.com/v1/chat/completions"
    ai_api_key: Optional[str] = None
    ai_model: str = "gpt-4o-mini"

    # Wizard vocabularies
    app_catalog: List[str] = field(default_factory=lambda: list(DEFAULT_APP_CATALOG))
    tag_catalog: List[str] = field(default_factory=lambda: list(DEFAULT_TAG_CATALOG))

    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        defaults = cls()

        return cls(
            database_path=os.getenv("SCREENDIARY_DB_PATH", defaults.database_path),
            server_host=os.getenv("SERVER_HOST", defaults.server_host),
            server_port=int(os.getenv("SERVER_PORT", str(defaults.server_port))),
            session_ttl_hours=int(os.getenv("SESSION_TTL_HOURS", str(defaults.session_ttl_hours))),
            api_base_url=os.getenv("SCREENDIARY_API_URL", defaults.api_base_url).rstrip("/"),
            session_file=os.getenv("SCREENDIARY_SESSION_FILE", defaults.session_file),
            request_timeout=_optional_float(os.getenv("REQUEST_TIMEOUT")),
            poll_interval_seconds=float(
                os.getenv("POLL_INTERVAL_SECONDS", str(defaults.poll_interval_seconds))
            ),
            ai_api_url=os.getenv("AI_API_URL", defaults.ai_api_url),
            ai_api_key=os.getenv("AI_API_KEY") or None,
            ai_model=os.getenv("AI_MODEL", defaults.ai_model),
            app_catalog=_split_list(os.getenv("APP_CATALOG"), DEFAULT_APP_CATALOG),
            tag_catalog=_split_list(os.getenv("TAG_CATALOG"), DEFAULT_TAG_CATALOG),
            log_level=os.getenv("LOG_LEVEL", defaults.log_level).upper(),
        )

    def get_summary(self) -> str:
        """Get a summary of current settings."""
        return f"""Database: {self.database_path}
Server: {self.server_host}:{self.server_port}
API: {self.api_base_url}
Session file: {self.session_file}
Request timeout: {self.request_timeout if self.request_timeout else "none"}
Auto-refresh: every {self.poll_interval_seconds:.0f}s

AI Analysis:
  Model: {self.ai_model}
  Provider: {self.ai_api_url}
  Key: {"configured" if self.ai_api_key else "missing (fallback tips only)"}

Apps: {len(self.app_catalog)}
Tags: {len(self.tag_catalog)}
"""

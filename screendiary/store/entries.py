"""
Entry and user persistence.

The server's only gateway to the database. Returns detached plain dicts so
callers never touch a closed session.
"""

import json
import logging
from typing import List, Optional

from sqlalchemy import select

from screendiary.core.config import Config
from screendiary.core.db import session_scope
from screendiary.core.errors import ValidationError
from screendiary.core.models import Entry, User
from screendiary.core.schemas import SCREEN_TIME_MAX, SCREEN_TIME_MIN
from screendiary.core.utils import utcnow

logger = logging.getLogger(__name__)


def validate_entry_fields(
    apps: List[str],
    screen_time_minutes: int,
    reflection: str,
    tags: List[str],
) -> None:
    """
    Check entry invariants before anything is written.

    Raises ValidationError with a user-facing message.
    """
    if not [app for app in apps if app and app.strip()]:
        raise ValidationError("Please select at least one app")

    if isinstance(screen_time_minutes, bool) or not isinstance(screen_time_minutes, int):
        raise ValidationError("Screen time must be a whole number of minutes")

    if not SCREEN_TIME_MIN <= screen_time_minutes <= SCREEN_TIME_MAX:
        raise ValidationError(
            f"Screen time must be between {SCREEN_TIME_MIN} and {SCREEN_TIME_MAX} minutes"
        )

    if not reflection or not reflection.strip():
        raise ValidationError("Please write a reflection")

    if not [tag for tag in tags if tag and tag.strip()]:
        raise ValidationError("Please select at least one tag")


def _user_to_dict(user: User) -> dict:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "password": user.password,
        "created_at": user.created_at,
    }


def _entry_to_dict(entry: Entry) -> dict:
    return {
        "id": entry.id,
        "user_id": entry.user_id,
        "apps": entry.apps,
        "screen_time": entry.screen_time,
        "reflection": entry.reflection,
        "tags": entry.tags,
        "created_at": entry.created_at,
    }


def create_user(config: Config, name: str, email: str, password_hash: str) -> dict:
    """
    Insert a user.

    Raises ValidationError if the email is taken.
    """
    email = email.strip().lower()

    with session_scope(config) as session:
        existing = session.scalar(select(User).where(User.email == email))
        if existing is not None:
            raise ValidationError("An account with this email already exists")

        user = User(
            name=name.strip(),
            email=email,
            password=password_hash,
            created_at=utcnow(),
        )
        session.add(user)
        session.flush()

        logger.info(f"Created user: {user}")
        return _user_to_dict(user)


def get_user(config: Config, user_id: int) -> Optional[dict]:
    """Look up a user by id."""
    with session_scope(config) as session:
        user = session.get(User, user_id)
        return _user_to_dict(user) if user else None


def get_user_by_email(config: Config, email: str) -> Optional[dict]:
    """Look up a user by email (case-insensitive)."""
    with session_scope(config) as session:
        user = session.scalar(select(User).where(User.email == email.strip().lower()))
        return _user_to_dict(user) if user else None


def create_entry(
    config: Config,
    user_id: int,
    apps: List[str],
    screen_time_minutes: int,
    reflection: str,
    tags: List[str],
) -> dict:
    """
    Validate and insert a journal entry.

    created_at is assigned here, never by the client.
    """
    validate_entry_fields(apps, screen_time_minutes, reflection, tags)

    with session_scope(config) as session:
        if session.get(User, user_id) is None:
            raise ValidationError(f"Unknown user: {user_id}")

        entry = Entry(
            user_id=user_id,
            apps=json.dumps(apps, ensure_ascii=False),
            screen_time=screen_time_minutes,
            reflection=reflection,
            tags=json.dumps(tags, ensure_ascii=False),
            created_at=utcnow(),
        )
        session.add(entry)
        session.flush()

        logger.info(f"Saved entry: {entry}")
        return _entry_to_dict(entry)


def list_entries(config: Config, user_id: Optional[int] = None) -> List[dict]:
    """
    List entries, newest first.

    Without user_id every entry is returned.
    """
    with session_scope(config) as session:
        query = select(Entry)

        if user_id is not None:
            query = query.where(Entry.user_id == user_id)

        entries = session.scalars(
            query.order_by(Entry.created_at.desc(), Entry.id.desc())
        ).all()

        return [_entry_to_dict(entry) for entry in entries]

"""
Utility functions for ScreenDiary.
"""

import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, List, Optional

from screendiary.core.errors import DataError

logger = logging.getLogger(__name__)

# Dashboard dates are always shown in IST, whatever the host timezone is.
IST_OFFSET = timedelta(hours=5, minutes=30)
IST = timezone(IST_OFFSET, "IST")

# Display-only cap, stored minutes are never touched
MAX_DISPLAY_HOURS = 12.0

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def utcnow() -> datetime:
    """Naive UTC timestamp, matching what SQLite stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def format_time_to_hours(minutes: Optional[int]) -> str:
    """
    Convert minutes to a human-readable hours string.

    Examples:
        30 -> "0.5 hours"
        60 -> "1.0 hour"
        900 -> "12.0 hours" (capped)
    """
    hours = (minutes or 0) / 60

    if hours > MAX_DISPLAY_HOURS:
        hours = MAX_DISPLAY_HOURS

    if hours == 1:
        return "1.0 hour"

    return f"{hours:.1f} hours"


def minutes_to_hours(minutes: Optional[int]) -> float:
    """Minutes as hours rounded to one decimal (uncapped, for charts)."""
    return round((minutes or 0) / 60, 1)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(value + 0.5) if value >= 0 else -int(-value + 0.5)


def parse_timestamp(value: Any) -> datetime:
    """
    Parse a stored timestamp into an aware UTC datetime.

    Accepts datetimes, ISO strings and SQLite "YYYY-MM-DD HH:MM:SS" text.
    Naive values are treated as UTC. Unparseable values degrade to the epoch.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            logger.warning(f"Unparseable timestamp {value!r}, using epoch")
            return EPOCH
    else:
        if value is not None:
            logger.warning(f"Unparseable timestamp {value!r}, using epoch")
        return EPOCH

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def to_ist(moment: datetime) -> datetime:
    """Shift a UTC moment to IST."""
    return parse_timestamp(moment).astimezone(IST)


def is_same_ist_day(moment: datetime, now: datetime) -> bool:
    """True when both moments fall on the same IST calendar date."""
    return to_ist(moment).date() == to_ist(now).date()


def format_ist_date(moment: datetime) -> str:
    """Format as DD/MM/YY in IST."""
    return to_ist(moment).strftime("%d/%m/%y")


def format_ist_time(moment: datetime) -> str:
    """
    Format as "DD/MM/YY, H:MM:SS AM/PM" in IST.

    The hour is not zero padded, midnight and noon show as 12.
    """
    ist = to_ist(moment)
    hour = ist.hour % 12 or 12
    ampm = "PM" if ist.hour >= 12 else "AM"
    return f"{ist.strftime('%d/%m/%y')}, {hour}:{ist.strftime('%M:%S')} {ampm}"


def decode_string_list(value: Any) -> List[str]:
    """
    Decode a stored app/tag list from a list or JSON array text.

    Raises DataError when the value is not a list.
    """
    if value is None or value == "":
        return []

    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError as e:
            raise DataError(f"Malformed list field {value[:50]!r}: {e}") from e

    if not isinstance(value, list):
        raise DataError(f"Expected list, got {type(value).__name__}")

    return [str(item) for item in value if item is not None]


def parse_string_list(value: Any) -> List[str]:
    """Decode a stored app/tag list, degrading anything malformed to []."""
    try:
        return decode_string_list(value)
    except DataError as e:
        logger.warning(f"{e}, using empty list")
        return []


def normalize_user_id(value: Any) -> Optional[str]:
    """
    Canonical string form of a user id.

    1, "1", 1.0 and " 01 " all normalize to "1".
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return str(value)

    text = str(value).strip()
    if not text:
        return None

    if text.lstrip("-").isdigit():
        return str(int(text))

    try:
        number = float(text)
    except ValueError:
        return text

    return str(int(number)) if number.is_integer() else text


def ids_match(left: Any, right: Any) -> bool:
    """Compare two user ids by value, not representation."""
    left_id = normalize_user_id(left)
    return left_id is not None and left_id == normalize_user_id(right)

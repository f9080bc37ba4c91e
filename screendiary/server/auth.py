"""
Account and session handling for the journal server.

Passwords are hashed with passlib. Sessions are opaque bearer tokens kept
in memory; a server restart signs everyone out.
"""

import logging
import secrets
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, Optional

from passlib.context import CryptContext

from screendiary.core.utils import utcnow

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

MIN_PASSWORD_LENGTH = 6


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


@dataclass
class SessionRecord:
    """One signed-in session."""
    user_id: int
    expires_at: datetime


class SessionRegistry:
    """In-memory token -> session map with sliding expiry."""

    def __init__(self, ttl_hours: int = 24 * 7):
        self.ttl = timedelta(hours=ttl_hours)
        self._sessions: Dict[str, SessionRecord] = {}
        self._lock = threading.Lock()

    def issue(self, user_id: int) -> str:
        token = secrets.token_urlsafe(32)
        with self._lock:
            self._sessions[token] = SessionRecord(user_id, utcnow() + self.ttl)
        logger.info(f"Session issued for user {user_id}")
        return token

    def resolve(self, token: Optional[str]) -> Optional[int]:
        """User id for a live token, or None."""
        if not token:
            return None

        with self._lock:
            record = self._sessions.get(token)
            if record is None:
                return None
            if record.expires_at <= utcnow():
                del self._sessions[token]
                logger.info(f"Session expired for user {record.user_id}")
                return None
            return record.user_id

    def touch(self, token: str) -> bool:
        """Extend a live session. Returns False if it is gone."""
        with self._lock:
            record = self._sessions.get(token)
            if record is None or record.expires_at <= utcnow():
                return False
            record.expires_at = utcnow() + self.ttl
            return True

    def revoke(self, token: Optional[str]) -> bool:
        if not token:
            return False
        with self._lock:
            return self._sessions.pop(token, None) is not None

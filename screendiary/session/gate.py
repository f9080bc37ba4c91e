"""
Session gate.

Resolves who the current user is from a local identity cache, and wraps
scoped requests in a single refresh-and-retry cycle.
"""

import json
import logging
import threading
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple, TypeVar

from screendiary.core.config import Config
from screendiary.core.errors import TransportError
from screendiary.core.schemas import CurrentUser
from screendiary.core.utils import ids_match

logger = logging.getLogger(__name__)

T = TypeVar("T")


class IdentityCache:
    """
    Locally persisted identity record plus a logged-in flag.

    Both live in one JSON file so they are always written and cleared
    together.
    """

    def __init__(self, path: str):
        self.path = Path(path).expanduser()
        self._lock = threading.Lock()

    def load(self) -> Optional[CurrentUser]:
        """Return the cached user, or None if absent, logged out or corrupt."""
        with self._lock:
            if not self.path.exists():
                return None

            try:
                data = json.loads(self.path.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError) as e:
                logger.warning(f"Ignoring unreadable identity cache {self.path}: {e}")
                return None

        if not isinstance(data, dict) or data.get("isLoggedIn") is not True:
            return None

        user = data.get("user")
        if not isinstance(user, dict) or user.get("id") is None:
            return None

        return CurrentUser.from_dict(user)

    def save(self, user: CurrentUser) -> None:
        """Write the identity and set the logged-in flag."""
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(
                json.dumps({"user": user.to_dict(), "isLoggedIn": True}, ensure_ascii=False),
                encoding="utf-8",
            )

    def clear(self) -> None:
        """Remove identity and flag. Safe when nothing is cached."""
        with self._lock:
            self.path.unlink(missing_ok=True)


class SessionGate:
    """
    Single source of the current identity.

    Scoped operations run through call(), which allows at most one
    refresh and one retry per operation.
    """

    def __init__(
        self,
        cache: IdentityCache,
        refresher: Optional[Callable[[], Dict[str, Any]]] = None,
    ):
        self.cache = cache
        self.refresher = refresher

    # Identity

    def current_user(self) -> Optional[CurrentUser]:
        return self.cache.load()

    def current_user_id(self) -> Optional[Any]:
        user = self.current_user()
        return user.id if user else None

    def token(self) -> Optional[str]:
        user = self.current_user()
        return user.token if user else None

    def is_logged_in(self) -> bool:
        return self.current_user() is not None

    def owns(self, user_id: Any) -> bool:
        """True if user_id belongs to the current user (value equality)."""
        user = self.current_user()
        return user is not None and ids_match(user.id, user_id)

    def remember(self, response: Dict[str, Any]) -> Optional[CurrentUser]:
        """
        Write through a successful auth response.

        Expects {success, userId, userEmail, userName[, token]}. A response
        without a token keeps the cached one.
        """
        if not response.get("success") or response.get("userId") is None:
            return None

        previous = self.current_user()
        token = response.get("token") or (previous.token if previous else None)

        user = CurrentUser(
            id=response["userId"],
            name=response.get("userName") or "User",
            email=response.get("userEmail"),
            token=token,
        )
        self.cache.save(user)
        logger.info(f"Identity cached for user {user.id}")
        return user

    def forget(self) -> None:
        self.cache.clear()
        logger.info("Identity cache cleared")

    # Refresh

    def refresh(self) -> bool:
        """
        Refresh identity from the server.

        On success the cache is overwritten, on failure it is cleared.
        """
        if self.refresher is None:
            self.forget()
            return False

        try:
            response = self.refresher()
        except TransportError as e:
            logger.warning(f"Session refresh failed: {e}")
            response = {"success": False}

        if self.remember(response or {}) is not None:
            return True

        self.forget()
        return False

    def call(self, operation: Callable[[], T]) -> T:
        """
        Run a scoped operation.

        On TransportError: refresh once, then retry once if the refresh
        succeeded. Any further failure propagates.
        """
        try:
            return operation()
        except TransportError as e:
            logger.warning(f"Scoped request failed, refreshing session: {e}")
            if not self.refresh():
                raise

        return operation()

    def logout(self, logout_call: Callable[[], Any]) -> bool:
        """Run the logout call and clear the cache regardless of outcome."""
        try:
            return bool(logout_call())
        except TransportError as e:
            logger.warning(f"Logout request failed: {e}")
            return False
        finally:
            self.forget()


def connect(config: Config) -> Tuple["SessionGate", "JournalAPI"]:
    """Wire a session gate and API client that share one identity."""
    from screendiary.client.api import JournalAPI

    gate = SessionGate(IdentityCache(config.session_file))
    api = JournalAPI(config, token_provider=gate.token)
    gate.refresher = api.refresh_session
    return gate, api

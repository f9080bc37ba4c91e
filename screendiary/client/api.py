"""
HTTP client for the ScreenDiary server.

Every call is a plain blocking request. Identity is attached through a
token provider so the session gate stays the single source of truth.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

import requests

from screendiary.core.config import Config
from screendiary.core.errors import APIError, TransportError
from screendiary.core.guidance import CONNECTION_FALLBACK, SERVICE_FALLBACK
from screendiary.core.schemas import AnalysisResult

logger = logging.getLogger(__name__)


def _error_message(response: requests.Response) -> str:
    """Pull a human-readable message out of an error response."""
    try:
        data = response.json()
    except ValueError:
        return response.text.strip() or response.reason or "Unknown error"

    if isinstance(data, dict):
        message = data.get("error") or data.get("detail") or data.get("message")
        if message:
            return str(message)

    return "Unknown error"


class JournalAPI:
    """
    Client for the journal server endpoints.

    Raises TransportError for network failures and APIError for non-success
    responses, except for AI analysis which always yields guidance.
    """

    def __init__(
        self,
        config: Config,
        token_provider: Optional[Callable[[], Optional[str]]] = None,
        http: Optional[requests.Session] = None,
    ):
        self.config = config
        self.base_url = config.api_base_url.rstrip("/")
        self.timeout = config.request_timeout
        self.token_provider = token_provider
        self.http = http or requests.Session()

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        token = self.token_provider() if self.token_provider else None
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _request(self, method: str, path: str, payload: Optional[dict] = None) -> requests.Response:
        url = f"{self.base_url}{path}"

        try:
            response = self.http.request(
                method,
                url,
                json=payload,
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"{method} {path} failed: {e}")
            raise TransportError(f"Could not reach server: {e}") from e

        logger.debug(f"{method} {path} -> {response.status_code}")
        return response

    def _json(self, method: str, path: str, payload: Optional[dict] = None) -> Dict[str, Any]:
        response = self._request(method, path, payload)

        if not response.ok:
            raise APIError(_error_message(response), response.status_code)

        try:
            return response.json()
        except ValueError as e:
            raise APIError(f"Invalid JSON from {path}", response.status_code) from e

    # Entries

    def create_entry(self, payload: Dict[str, Any]) -> Any:
        """
        Persist a new entry.

        Returns the stored entry id.
        """
        data = self._json("POST", "/api/entries", payload)
        entry_id = data.get("id")
        logger.info(f"Entry saved: id={entry_id}")
        return entry_id

    def list_entries(self) -> List[Dict[str, Any]]:
        """Fetch entries visible to the caller."""
        data = self._json("GET", "/api/entries")
        entries = data.get("entries") or []
        logger.debug(f"Fetched {len(entries)} entries")
        return entries

    # AI analysis

    def analyze(self, payload: Dict[str, Any]) -> AnalysisResult:
        """
        Request AI guidance for a draft.

        Never raises: failures yield the server's fallback or static tips.
        """
        try:
            response = self._request("POST", "/api/ai-analysis", payload)
        except TransportError:
            return CONNECTION_FALLBACK

        try:
            data = response.json()
        except ValueError:
            data = {}

        if response.ok and isinstance(data, dict):
            return AnalysisResult.from_payload(data)

        logger.warning(f"AI analysis failed: [{response.status_code}] {_error_message(response)}")

        fallback = data.get("fallback") if isinstance(data, dict) else None
        if isinstance(fallback, dict):
            return AnalysisResult.from_payload(fallback, is_fallback=True)

        return SERVICE_FALLBACK

    # Session

    def refresh_session(self) -> Dict[str, Any]:
        """Ask the server who we are. Returns {success: false} on any failure."""
        try:
            data = self._json("GET", "/api/session/refresh")
        except TransportError as e:
            logger.warning(f"Session refresh failed: {e}")
            return {"success": False}

        return data if isinstance(data, dict) else {"success": False}

    def login(self, email: str, password: str) -> Dict[str, Any]:
        """Authenticate. Raises APIError on bad credentials."""
        return self._json("POST", "/api/login", {"email": email, "password": password})

    def register(self, name: str, email: str, password: str) -> Dict[str, Any]:
        """Create an account and sign in."""
        return self._json(
            "POST",
            "/api/register",
            {"name": name, "email": email, "password": password},
        )

    def logout(self) -> bool:
        """End the server session. Returns success flag."""
        data = self._json("POST", "/api/logout")
        return bool(data.get("success"))

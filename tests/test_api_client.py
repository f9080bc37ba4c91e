"""
Unit tests for the HTTP client.

The requests session is mocked; no server is needed.
"""

import pytest
import requests
import sys
from pathlib import Path
from unittest.mock import MagicMock

# Add parent to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from screendiary.client.api import JournalAPI
from screendiary.core.config import Config
from screendiary.core.errors import APIError, TransportError
from screendiary.core.guidance import CONNECTION_FALLBACK, SERVICE_FALLBACK


def make_response(status_code=200, data=None):
    response = MagicMock()
    response.status_code = status_code
    response.ok = status_code < 400
    response.text = ""
    response.reason = "Error"
    if data is None:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = data
    return response


@pytest.fixture
def http():
    return MagicMock()


@pytest.fixture
def api(http):
    config = Config(api_base_url="http://journal.test/")
    return JournalAPI(config, token_provider=lambda: "tok", http=http)


class TestRequests:
    """Test request construction and error mapping."""

    def test_list_entries(self, api, http):
        http.request.return_value = make_response(200, {"entries": [{"id": 1}]})

        assert api.list_entries() == [{"id": 1}]
        method, url = http.request.call_args[0]
        assert method == "GET"
        assert url == "http://journal.test/api/entries"
        assert http.request.call_args[1]["headers"]["Authorization"] == "Bearer tok"

    def test_no_token_no_header(self, http):
        api = JournalAPI(Config(), token_provider=lambda: None, http=http)
        http.request.return_value = make_response(200, {"entries": []})
        api.list_entries()

        assert "Authorization" not in http.request.call_args[1]["headers"]

    def test_timeout_passed_through(self, http):
        api = JournalAPI(Config(request_timeout=5.0), http=http)
        http.request.return_value = make_response(200, {"entries": []})
        api.list_entries()

        assert http.request.call_args[1]["timeout"] == 5.0

    def test_create_entry_returns_id(self, api, http):
        http.request.return_value = make_response(201, {"success": True, "id": 12})
        assert api.create_entry({"apps": ["YouTube"]}) == 12

    def test_error_response(self, api, http):
        http.request.return_value = make_response(400, {"success": False, "error": "Please write a reflection"})

        with pytest.raises(APIError) as exc_info:
            api.create_entry({})

        assert exc_info.value.status_code == 400
        assert exc_info.value.message == "Please write a reflection"

    def test_network_failure(self, api, http):
        http.request.side_effect = requests.ConnectionError("refused")

        with pytest.raises(TransportError):
            api.list_entries()


class TestAnalyze:
    """Test that analysis always yields guidance."""

    def test_success(self, api, http):
        http.request.return_value = make_response(200, {
            "analysis": "Balanced day.",
            "suggestions": ["a", "b"],
            "microHabits": ["c"],
            "motivationalTip": "d",
        })
        result = api.analyze({})

        assert result.analysis == "Balanced day."
        assert result.micro_habits == ["c"]
        assert result.is_fallback is False

    def test_server_fallback(self, api, http):
        http.request.return_value = make_response(503, {
            "error": "AI provider not configured",
            "fallback": {"analysis": "Server tips", "suggestions": [], "microHabits": [], "motivationalTip": ""},
        })
        result = api.analyze({})

        assert result.analysis == "Server tips"
        assert result.is_fallback is True

    def test_error_without_fallback(self, api, http):
        http.request.return_value = make_response(500)
        assert api.analyze({}) is SERVICE_FALLBACK

    def test_unreachable(self, api, http):
        http.request.side_effect = requests.Timeout("slow")
        assert api.analyze({}) is CONNECTION_FALLBACK


class TestSession:
    """Test session endpoints."""

    def test_refresh_failure_is_unsuccessful(self, api, http):
        http.request.side_effect = requests.ConnectionError("refused")
        assert api.refresh_session() == {"success": False}

    def test_refresh_expired(self, api, http):
        http.request.return_value = make_response(200, {"success": False})
        assert api.refresh_session() == {"success": False}

    def test_login_bad_credentials(self, api, http):
        http.request.return_value = make_response(401, {"success": False, "error": "Invalid email or password"})

        with pytest.raises(APIError) as exc_info:
            api.login("asha@example.com", "wrong")

        assert exc_info.value.status_code == 401

    def test_logout(self, api, http):
        http.request.return_value = make_response(200, {"success": True})
        assert api.logout() is True

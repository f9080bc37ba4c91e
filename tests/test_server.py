"""
API tests for the journal server using FastAPI's TestClient.

The AI provider is mocked; the database is a temporary SQLite file.
"""

import json
import pytest
import sys
from pathlib import Path
from unittest.mock import MagicMock

from fastapi.testclient import TestClient

# Add parent to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from screendiary.core.config import Config
from screendiary.core.db import dispose_engine
from screendiary.core.schemas import AnalysisResult
from screendiary.server.ai import ProviderError
from screendiary.server.app import create_app

ENTRY = {
    "apps": ["YouTube", "Reddit"],
    "screenTimeMinutes": 90,
    "reflection": "Doomscrolled after dinner",
    "tags": ["⏳ Wasted Time"],
}


@pytest.fixture
def config(tmp_path):
    config = Config(database_path=str(tmp_path / "server.db"))
    yield config
    dispose_engine(config)


@pytest.fixture
def provider():
    return MagicMock()


@pytest.fixture
def client(config, provider):
    return TestClient(create_app(config, provider=provider))


def register(client, name="Asha", email="asha@example.com", password="secret1"):
    response = client.post("/api/register", json={"name": name, "email": email, "password": password})
    assert response.status_code == 201
    return response.json()


def auth(token):
    return {"Authorization": f"Bearer {token}"}


class TestAccounts:
    """Test register, login, refresh and logout."""

    def test_health(self, client):
        assert client.get("/").json()["status"] == "ScreenDiary API running"

    def test_register_signs_in(self, client):
        data = register(client)
        assert data["success"] is True
        assert data["userName"] == "Asha"
        assert data["userEmail"] == "asha@example.com"
        assert data["token"]

    def test_duplicate_email(self, client):
        register(client)
        response = client.post("/api/register", json={"name": "B", "email": "ASHA@example.com", "password": "secret1"})
        assert response.status_code == 400

    def test_short_password(self, client):
        response = client.post("/api/register", json={"name": "B", "email": "b@example.com", "password": "123"})
        assert response.status_code == 400
        assert "at least 6" in response.json()["error"]

    def test_login(self, client):
        register(client)
        response = client.post("/api/login", json={"email": "asha@example.com", "password": "secret1"})
        assert response.status_code == 200
        assert response.json()["token"]

    def test_login_wrong_password(self, client):
        register(client)
        response = client.post("/api/login", json={"email": "asha@example.com", "password": "nope"})
        assert response.status_code == 401
        assert response.json()["success"] is False

    def test_refresh_and_logout(self, client):
        token = register(client)["token"]

        refreshed = client.get("/api/session/refresh", headers=auth(token)).json()
        assert refreshed["success"] is True
        assert refreshed["userName"] == "Asha"
        assert "token" not in refreshed

        assert client.post("/api/logout", headers=auth(token)).json()["success"] is True
        assert client.get("/api/session/refresh", headers=auth(token)).json() == {"success": False}

    def test_refresh_without_token(self, client):
        assert client.get("/api/session/refresh").json() == {"success": False}


class TestEntries:
    """Test entry creation and listing."""

    def test_create_and_list(self, client):
        token = register(client)["token"]
        created = client.post("/api/entries", json=ENTRY, headers=auth(token))

        assert created.status_code == 201
        assert created.json()["success"] is True

        entries = client.get("/api/entries", headers=auth(token)).json()["entries"]
        assert len(entries) == 1
        assert json.loads(entries[0]["apps"]) == ["YouTube", "Reddit"]
        assert entries[0]["screen_time"] == 90
        assert entries[0]["created_at"].endswith("Z")

    def test_listing_scoped_to_session(self, client):
        asha = register(client)
        ravi = register(client, name="Ravi", email="ravi@example.com")
        client.post("/api/entries", json=ENTRY, headers=auth(asha["token"]))
        client.post("/api/entries", json=ENTRY, headers=auth(ravi["token"]))

        mine = client.get("/api/entries", headers=auth(asha["token"])).json()["entries"]
        assert [e["user_id"] for e in mine] == [asha["userId"]]
        assert len(client.get("/api/entries").json()["entries"]) == 2

    def test_user_id_without_session(self, client):
        user_id = register(client)["userId"]
        response = client.post("/api/entries", json={**ENTRY, "userId": str(user_id)})
        assert response.status_code == 201

    def test_missing_user_id_without_session(self, client):
        assert client.post("/api/entries", json=ENTRY).status_code == 400

    def test_mismatched_user_id(self, client):
        token = register(client)["token"]
        response = client.post("/api/entries", json={**ENTRY, "userId": 999}, headers=auth(token))
        assert response.status_code == 403

    def test_invalid_token(self, client):
        assert client.get("/api/entries", headers=auth("bogus")).status_code == 401

    @pytest.mark.parametrize("changes,message", [
        ({"apps": []}, "Please select at least one app"),
        ({"screenTimeMinutes": 2000}, "Screen time must be between 0 and 1440 minutes"),
        ({"reflection": "  "}, "Please write a reflection"),
        ({"tags": []}, "Please select at least one tag"),
    ])
    def test_invalid_entry(self, client, changes, message):
        token = register(client)["token"]
        response = client.post("/api/entries", json={**ENTRY, **changes}, headers=auth(token))

        assert response.status_code == 400
        assert response.json()["error"] == message
        assert client.get("/api/entries", headers=auth(token)).json()["entries"] == []

    def test_non_integer_minutes(self, client):
        token = register(client)["token"]
        response = client.post("/api/entries", json={**ENTRY, "screenTimeMinutes": "60"}, headers=auth(token))

        assert response.status_code == 400
        assert "screenTimeMinutes" in response.json()["error"]


class TestAnalysis:
    """Test the AI analysis endpoint."""

    def test_success(self, client, provider):
        provider.analyze.return_value = AnalysisResult(
            analysis="Heavy evening use.",
            suggestions=["s"],
            micro_habits=["m"],
            motivational_tip="t",
        )
        response = client.post("/api/ai-analysis", json=ENTRY)

        assert response.status_code == 200
        assert response.json() == {
            "analysis": "Heavy evening use.",
            "suggestions": ["s"],
            "microHabits": ["m"],
            "motivationalTip": "t",
        }

    def test_provider_failure_sends_fallback(self, client, provider):
        provider.analyze.side_effect = ProviderError("AI provider not configured")
        response = client.post("/api/ai-analysis", json=ENTRY)

        assert response.status_code == 503
        body = response.json()
        assert body["error"] == "AI provider not configured"
        assert body["fallback"]["analysis"]
        assert len(body["fallback"]["suggestions"]) == 3

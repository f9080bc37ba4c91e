"""
Tests for entry and user persistence against a temporary SQLite file.
"""

import json
import pytest
import sys
from pathlib import Path

# Add parent to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from screendiary.core.config import Config
from screendiary.core.db import dispose_engine, init_db
from screendiary.core.errors import ValidationError
from screendiary.store import entries as store


@pytest.fixture
def config(tmp_path):
    config = Config(database_path=str(tmp_path / "journal.db"))
    init_db(config)
    yield config
    dispose_engine(config)


@pytest.fixture
def user(config):
    return store.create_user(config, "Asha", "Asha@Example.com", "hashed")


class TestValidation:
    """Test entry invariants."""

    @pytest.mark.parametrize("apps,minutes,reflection,tags,message", [
        ([], 30, "ok", ["✅ Productive"], "Please select at least one app"),
        (["  "], 30, "ok", ["✅ Productive"], "Please select at least one app"),
        (["YouTube"], 30.5, "ok", ["✅ Productive"], "Screen time must be a whole number of minutes"),
        (["YouTube"], True, "ok", ["✅ Productive"], "Screen time must be a whole number of minutes"),
        (["YouTube"], -1, "ok", ["✅ Productive"], "Screen time must be between 0 and 1440 minutes"),
        (["YouTube"], 1441, "ok", ["✅ Productive"], "Screen time must be between 0 and 1440 minutes"),
        (["YouTube"], 30, "   ", ["✅ Productive"], "Please write a reflection"),
        (["YouTube"], 30, "ok", [], "Please select at least one tag"),
    ])
    def test_rejects(self, apps, minutes, reflection, tags, message):
        with pytest.raises(ValidationError) as exc_info:
            store.validate_entry_fields(apps, minutes, reflection, tags)
        assert exc_info.value.message == message

    @pytest.mark.parametrize("minutes", [0, 1440])
    def test_bounds_inclusive(self, minutes):
        store.validate_entry_fields(["YouTube"], minutes, "ok", ["✅ Productive"])


class TestUsers:
    """Test account rows."""

    def test_email_normalized(self, user):
        assert user["email"] == "asha@example.com"
        assert user["id"] is not None

    def test_lookup(self, config, user):
        assert store.get_user(config, user["id"])["name"] == "Asha"
        assert store.get_user_by_email(config, " ASHA@example.com ")["id"] == user["id"]
        assert store.get_user(config, 999) is None

    def test_duplicate_email(self, config, user):
        with pytest.raises(ValidationError):
            store.create_user(config, "Other", "asha@example.com", "hashed")


class TestEntries:
    """Test entry rows."""

    def test_create_stores_json_lists(self, config, user):
        entry = store.create_entry(config, user["id"], ["YouTube", "Reddit"], 90, "Late night", ["⏳ Wasted Time"])

        assert entry["id"] is not None
        assert json.loads(entry["apps"]) == ["YouTube", "Reddit"]
        assert json.loads(entry["tags"]) == ["⏳ Wasted Time"]
        assert entry["screen_time"] == 90
        assert entry["created_at"] is not None

    def test_unknown_user(self, config):
        with pytest.raises(ValidationError):
            store.create_entry(config, 42, ["YouTube"], 10, "ok", ["✅ Productive"])

    def test_invalid_entry_not_written(self, config, user):
        with pytest.raises(ValidationError):
            store.create_entry(config, user["id"], [], 10, "ok", ["✅ Productive"])
        assert store.list_entries(config) == []

    def test_list_newest_first_and_scoped(self, config, user):
        other = store.create_user(config, "Ravi", "ravi@example.com", "hashed")
        first = store.create_entry(config, user["id"], ["YouTube"], 10, "one", ["✅ Productive"])
        store.create_entry(config, other["id"], ["Reddit"], 20, "theirs", ["🔥 Deep Dive"])
        second = store.create_entry(config, user["id"], ["Netflix"], 30, "two", ["🧘 Mindful Use"])

        mine = store.list_entries(config, user_id=user["id"])
        assert [e["id"] for e in mine] == [second["id"], first["id"]]
        assert len(store.list_entries(config)) == 3

"""Tests for storage backends."""

import asyncio
import json
from uuid import uuid4

import pytest

from expense_splitter.models.audit import AuditEventBuilder
from expense_splitter.models.expense import Debt, Expense, ExpenseGroup, SplitterState
from expense_splitter.services.storage import (
    InMemoryAuditStorage,
    InMemoryStateStorage,
    JsonFileAuditStorage,
    JsonFileStateStorage,
    StorageError,
)


@pytest.fixture
def state():
    return SplitterState(
        expenses=[Expense(id="e1", person="Ana", amount=30, group_id="g1")],
        groups=[ExpenseGroup(id="g1", name="Kayak", participants=["Ana", "Luis"])],
        debts=[Debt(person="Luis", amount=15, creditor="Ana")],
    )


class TestJsonFileStateStorage:
    """Tests for the JSON file state backend."""

    def test_missing_file_loads_default_state(self, tmp_path):
        """Test that a fresh install starts empty."""
        storage = JsonFileStateStorage(str(tmp_path / "state.json"))
        assert asyncio.run(storage.load_state()) == SplitterState()

    def test_save_then_load(self, tmp_path, state):
        """Test that a saved state loads back unchanged."""
        storage = JsonFileStateStorage(str(tmp_path / "state.json"))

        assert asyncio.run(storage.save_state(state)) is True
        assert asyncio.run(storage.load_state()) == state

    def test_file_uses_storage_keys(self, tmp_path, state):
        """Test that the file is plain JSON with camelCase keys."""
        path = tmp_path / "state.json"
        asyncio.run(JsonFileStateStorage(str(path)).save_state(state))

        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["version"] == 2
        assert data["expenses"][0]["groupId"] == "g1"
        assert "settledAt" in data["debts"][0]

    def test_creates_parent_directories(self, tmp_path, state):
        """Test saving into a directory that doesn't exist yet."""
        path = tmp_path / "nested" / "dir" / "state.json"
        asyncio.run(JsonFileStateStorage(str(path)).save_state(state))
        assert path.exists()

    def test_loads_and_migrates_v1_file(self, tmp_path):
        """Test that an old file without ids is migrated on load."""
        path = tmp_path / "state.json"
        path.write_text(json.dumps({"expenses": [{"person": "Ana", "amount": 10}]}), encoding="utf-8")

        loaded = asyncio.run(JsonFileStateStorage(str(path)).load_state())

        assert loaded.version == 2
        assert loaded.expenses[0].id.startswith("migrated-0-")

    def test_corrupt_file_raises_storage_error(self, tmp_path):
        """Test that garbage in the file is reported, not ignored."""
        path = tmp_path / "state.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(StorageError):
            asyncio.run(JsonFileStateStorage(str(path)).load_state())

    def test_empty_file_loads_default_state(self, tmp_path):
        """Test that an empty file counts as nothing stored."""
        path = tmp_path / "state.json"
        path.write_text("", encoding="utf-8")
        assert asyncio.run(JsonFileStateStorage(str(path)).load_state()) == SplitterState()

    def test_clear_state(self, tmp_path, state):
        """Test deleting the stored state."""
        path = tmp_path / "state.json"
        storage = JsonFileStateStorage(str(path))
        asyncio.run(storage.save_state(state))

        assert asyncio.run(storage.clear_state()) is True
        assert not path.exists()
        assert asyncio.run(storage.clear_state()) is False


class TestInMemoryStateStorage:
    """Tests for the in-memory state backend."""

    def test_save_then_load(self, state):
        """Test the round trip."""
        storage = InMemoryStateStorage()
        asyncio.run(storage.save_state(state))
        assert asyncio.run(storage.load_state()) == state

    def test_stored_copy_is_isolated(self, state):
        """Test that mutating the saved object doesn't change storage."""
        storage = InMemoryStateStorage()
        asyncio.run(storage.save_state(state))

        state.expenses.clear()

        assert len(asyncio.run(storage.load_state()).expenses) == 1

    def test_initial_v1_data_is_migrated(self):
        """Test seeding with legacy data."""
        storage = InMemoryStateStorage({"expenses": [{"person": "Ana", "amount": 5}]})
        assert asyncio.run(storage.load_state()).version == 2


class TestAuditStorage:
    """Tests for audit backends."""

    def test_json_lines_append_and_query(self, tmp_path):
        """Test appending and reading back by correlation id."""
        storage = JsonFileAuditStorage(str(tmp_path / "audit.jsonl"))
        correlation_id = uuid4()
        other = uuid4()

        asyncio.run(storage.append_event(AuditEventBuilder.state_reset(correlation_id)))
        asyncio.run(storage.append_event(AuditEventBuilder.state_reset(other)))
        asyncio.run(storage.append_event(AuditEventBuilder.expense_removed("e1", correlation_id)))

        related = asyncio.run(storage.get_events_by_correlation_id(correlation_id))
        recent = asyncio.run(storage.get_recent_events(limit=2))

        assert [e.event_type.value for e in related] == ["state_reset", "expense_removed"]
        assert len(recent) == 2
        assert (tmp_path / "audit.jsonl").read_text(encoding="utf-8").count("\n") == 3

    def test_json_lines_missing_file(self, tmp_path):
        """Test reading an audit log that doesn't exist yet."""
        storage = JsonFileAuditStorage(str(tmp_path / "audit.jsonl"))
        assert asyncio.run(storage.get_recent_events()) == []

    def test_in_memory_recent_events_newest_first(self):
        """Test ordering of the in-memory log."""
        storage = InMemoryAuditStorage()
        first = AuditEventBuilder.state_reset(uuid4())
        second = AuditEventBuilder.state_reset(uuid4())
        asyncio.run(storage.append_event(first))
        asyncio.run(storage.append_event(second))

        assert asyncio.run(storage.get_recent_events()) == [second, first]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

"""Tests for settings loading."""

import pytest

from expense_splitter.config import get_settings, validate_all_settings
from expense_splitter.config.settings import AppSettings, SharingSettings, StorageSettings
from expense_splitter.models.expense import Expense
from expense_splitter.validation import ExpenseValidator


@pytest.fixture(autouse=True)
def fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestSettings:
    """Tests for the pydantic-settings classes."""

    def test_defaults(self, monkeypatch, tmp_path):
        """Test defaults when nothing is configured."""
        monkeypatch.chdir(tmp_path)

        assert StorageSettings().state_path == "splitter_state.json"
        assert SharingSettings().max_url_length == 2000
        assert AppSettings().reject_unknown_groups is False

    def test_app_settings_only_hold_used_options(self):
        """Test that every app option is one the code reads."""
        assert set(AppSettings.model_fields) == {
            "log_level",
            "max_expense_amount",
            "max_participants",
            "reject_unknown_groups",
        }

    def test_prefixed_environment_variables(self, monkeypatch, tmp_path):
        """Test that each sub-settings reads its own prefix."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("SPLITTER_STORAGE_STATE_PATH", str(tmp_path / "tab.json"))
        monkeypatch.setenv("SPLITTER_SHARE_BASE_URL", "https://split.example")
        monkeypatch.setenv("REJECT_UNKNOWN_GROUPS", "true")

        settings = get_settings()

        assert settings.storage.state_path == str(tmp_path / "tab.json")
        assert settings.sharing.base_url == "https://split.example"
        assert settings.app.reject_unknown_groups is True

    def test_validator_follows_settings(self, monkeypatch, tmp_path):
        """Test that the strict group policy can be switched on from the environment."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("REJECT_UNKNOWN_GROUPS", "1")

        result = ExpenseValidator().validate_expense(
            Expense(id="e1", person="Ana", amount=10, group_id="missing"), []
        )
        assert result.is_valid is False

    def test_validate_all_settings_reports_errors(self, monkeypatch, tmp_path):
        """Test that a bad value is reported instead of raised."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("SPLITTER_SHARE_MAX_URL_LENGTH", "10")

        results = validate_all_settings()

        assert results["storage"] is True
        assert results["app"] is True
        assert results["sharing"] is False
        assert "sharing_error" in results


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

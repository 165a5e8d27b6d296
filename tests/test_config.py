import sys
import os

import pytest
from pydantic import ValidationError

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from config import Settings, get_settings
from transaction_history import DEFAULT_CAPACITY


@pytest.fixture(autouse=True)
def reset_settings(monkeypatch):
    monkeypatch.delenv("PAYMENTS_HISTORY_CAPACITY", raising=False)
    monkeypatch.delenv("PAYMENTS_LOG_LEVEL", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestSettings:
    def test_defaults(self):
        settings = Settings(_env_file=None)
        assert settings.history_capacity == DEFAULT_CAPACITY
        assert settings.log_level == "WARNING"

    def test_from_environment(self, monkeypatch):
        monkeypatch.setenv("PAYMENTS_HISTORY_CAPACITY", "500")
        monkeypatch.setenv("PAYMENTS_LOG_LEVEL", "debug")
        settings = Settings(_env_file=None)
        assert settings.history_capacity == 500
        assert settings.log_level == "DEBUG"

    def test_rejects_non_positive_capacity(self, monkeypatch):
        monkeypatch.setenv("PAYMENTS_HISTORY_CAPACITY", "0")
        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_rejects_unknown_log_level(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, log_level="chatty")

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()
